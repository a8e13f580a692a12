"""Configuration, result types and errors shared by all parsers."""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import IO, Any, Union

from rich.console import Group

from ..log import dict_view, errors_view, rows_view

FileLike = Union[str, Path, bytes, IO[bytes]]

Record = Union[dict[str, str], list[str]]
"""A header-keyed mapping, or a positional list of fields when there is no header."""

QUOTE_CHAR = '"'


class CsvImportError(Exception):
    """Base class of all errors raised by the importer."""


class EncodingError(CsvImportError):
    """Raised when the input cannot be decoded with a fixed encoding."""


class EncodingExhaustedError(EncodingError):
    """Raised when none of the candidate encodings could decode the input."""


class RowParseError(CsvImportError):
    """A single line could not be tokenized. Recorded as ParseError, never fatal."""


class HeaderParseError(RowParseError):
    """The header line could not be tokenized. Headers degrade to an empty list."""


class StreamReadError(CsvImportError):
    """Raised when pulling the next buffer from a byte stream fails."""


CAMEL_CASE_OPTIONS = {
    "skipEmptyLines": "skip_empty_lines",
    "trimFields": "trim_fields",
    "autoDetectEncoding": "auto_detect_encoding",
    "fieldSizeLimit": "field_size_limit",
}
"""Alternative spelling of option names accepted by ``ImporterConfig.from_options``."""


@dataclass(frozen=True)
class ImporterConfig:
    """Options for a single parse call.

    Frozen, so that it cannot change while a parse is in flight. Use ``replace()`` (or
    ``CsvImporter.set_options``) to obtain a new configuration instead.
    """

    delimiter: str = ","
    encoding: str = "utf-8"
    skip_empty_lines: bool = True
    header: bool = True
    """Whether the first record contains the column names."""
    trim_fields: bool = True
    auto_detect_encoding: bool = True
    field_size_limit: int | None = None
    """Maximum number of characters in a single field. Longer fields fail their row."""

    def __post_init__(self):
        if len(self.delimiter) != 1:
            raise ValueError(f"Delimiter must be a single character, got {self.delimiter!r}.")
        if self.delimiter == QUOTE_CHAR:
            raise ValueError("The quote character cannot be used as delimiter.")
        if self.field_size_limit is not None and self.field_size_limit <= 0:
            raise ValueError(f"Field size limit must be positive, got {self.field_size_limit}.")

    @classmethod
    def from_options(
        cls,
        options: Mapping[str, Any] | None = None,
        base: ImporterConfig | None = None,
    ) -> ImporterConfig:
        """Create a config from (partial) options, filling in missing ones from ``base``.

        Option names may be given in snake_case or camelCase. An empty delimiter or encoding
        means "use the default".
        """
        values = asdict(base or cls())
        known = {f.name for f in fields(cls)}

        for key, value in (options or {}).items():
            name = CAMEL_CASE_OPTIONS.get(key, key)
            if name not in known:
                raise TypeError(f"Unknown importer option: {key!r}")
            if name in ("delimiter", "encoding") and not value:
                continue
            values[name] = value

        return cls(**values)

    def replace(self, **options) -> ImporterConfig:
        return replace(self, **options)

    def options(self) -> dict[str, Any]:
        return asdict(self)

    def __rich__(self):
        return dict_view(self.options(), title="Importer config", width=80)


@dataclass
class ParseError:
    """A recoverable, row-level problem found while parsing."""

    row: int
    """0 for the header, otherwise the 1-based index of the data line."""
    message: str
    field: str | None = None


@dataclass
class ParseResult:
    """Whole-file parse output."""

    headers: list[str] | None
    rows: list[Record] = field(default_factory=list)
    encoding: str | None = None
    errors: list[ParseError] | None = None

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def to_arrow(self, empty_as_null: bool = False):
        """Convert to a string-typed pyarrow table."""
        from .arrow import to_arrow

        return to_arrow(self, empty_as_null=empty_as_null)

    def __rich__(self):
        title = f"Parsed {self.row_count:,} rows (encoding: {self.encoding or 'n/a'})"
        views = [rows_view(self.headers, self.rows, title=title)]
        if self.errors:
            views.append(errors_view(self.errors))
        return Group(*views)


def assemble(
    headers: list[str] | None,
    rows: list[Record],
    errors: list[ParseError] | None = None,
    encoding: str | None = None,
) -> ParseResult:
    """Shape the output of a parse, with no errors represented as None."""
    return ParseResult(headers=headers, rows=rows, encoding=encoding, errors=errors or None)
