"""Quote-aware splitting of single physical lines into fields."""
from __future__ import annotations

from dataclasses import dataclass

from .abc import QUOTE_CHAR, HeaderParseError, ImporterConfig, ParseError, Record, RowParseError


@dataclass(frozen=True)
class Tokenizer:
    """Splits lines on a delimiter, except where the delimiter appears inside double quotes.

    A doubled quote inside a quoted section is an escaped, literal quote. Quotes elsewhere
    only toggle the quoted state and are dropped, so ``a"b,c"d`` becomes the single field
    ``ab,cd``. An unterminated quote simply extends to the end of the line.
    """

    delimiter: str = ","
    trim: bool = True
    field_size_limit: int | None = None

    @classmethod
    def from_config(cls, config: ImporterConfig) -> Tokenizer:
        return cls(
            delimiter=config.delimiter,
            trim=config.trim_fields,
            field_size_limit=config.field_size_limit,
        )

    def finish(self, value: list[str]) -> str:
        field = "".join(value)

        if self.field_size_limit is not None and len(field) > self.field_size_limit:
            raise RowParseError(
                f"Field larger than field limit ({len(field)} > {self.field_size_limit})."
            )

        return field.strip() if self.trim else field

    def parse_line(self, line: str) -> list[str]:
        fields = []
        value: list[str] = []
        in_quotes = False
        i = 0
        n = len(line)

        while i < n:
            char = line[i]

            if char == QUOTE_CHAR:
                if in_quotes and i + 1 < n and line[i + 1] == QUOTE_CHAR:
                    value.append(QUOTE_CHAR)
                    i += 2
                    continue
                in_quotes = not in_quotes
            elif char == self.delimiter and not in_quotes:
                fields.append(self.finish(value))
                value = []
            else:
                value.append(char)

            i += 1

        fields.append(self.finish(value))
        return fields

    __call__ = parse_line

    def parse_header(self, line: str) -> list[str]:
        try:
            return self.parse_line(line)
        except RowParseError as exc:
            raise HeaderParseError(f"Failed to parse header: {exc}") from exc


def make_record(
    headers: list[str] | None,
    values: list[str],
    row: int | None = None,
    errors: list[ParseError] | None = None,
) -> Record:
    """Zip values with header names, or return them as is if there are no headers.

    Missing trailing values are padded with empty strings. If an ``errors`` list is given,
    each padded field is reported in it. Surplus values are dropped. A repeated header name
    takes the last value present for it.
    """
    if headers is None:
        return values

    record = {}
    for i, name in enumerate(headers):
        if i < len(values):
            record[name] = values[i]
        elif name not in record:
            record[name] = ""
            if errors is not None:
                errors.append(
                    ParseError(
                        row=row,
                        message=(
                            f"Column count mismatch: header has {len(headers)} columns "
                            f"but row has only {len(values)}."
                        ),
                        field=name,
                    )
                )

    return record
