"""Parsing of complete, already decoded CSV texts."""
from __future__ import annotations

from ..log import LOG, pformat
from ..utils import is_blank, split_lines
from .abc import (
    HeaderParseError,
    ImporterConfig,
    ParseError,
    ParseResult,
    Record,
    RowParseError,
    assemble,
)
from .tokenizer import Tokenizer, make_record


class BatchParser:
    """Parse a whole CSV text in memory, collecting row-level problems instead of failing."""

    def __init__(self, config: ImporterConfig | None = None, log: bool = False) -> None:
        self.config = config or ImporterConfig()
        self.tokenizer = Tokenizer.from_config(self.config)
        self.log = log

    def parse_header(self, line: str, errors: list[ParseError]) -> list[str]:
        try:
            return self.tokenizer.parse_header(line)
        except HeaderParseError as exc:
            errors.append(ParseError(row=0, message=str(exc)))
            return []

    def parse(self, content: str) -> ParseResult:
        """Split content into lines and tokenize each. The result has no encoding attached."""
        config = self.config
        lines = split_lines(content)
        errors: list[ParseError] = []
        headers = None
        rows: list[Record] = []
        start = 0

        if config.header:
            headers = self.parse_header(lines[0], errors)
            start = 1

        for i in range(start, len(lines)):
            line = lines[i]
            row = i - start + 1

            if config.skip_empty_lines and is_blank(line):
                continue

            try:
                values = self.tokenizer.parse_line(line)
            except RowParseError as exc:
                errors.append(ParseError(row=row, message=f"Failed to parse row: {exc}"))
                continue

            record = make_record(headers, values, row=row, errors=errors)
            if record:
                rows.append(record)

        if errors:
            LOG.warning(f"Found {len(errors)} problems while parsing CSV.")
            if self.log:
                LOG.info(pformat(errors[:20]))

        return assemble(headers, rows, errors)

    __call__ = parse


def parse_csv(content: str, config: ImporterConfig | None = None, log: bool = False) -> ParseResult:
    return BatchParser(config, log=log).parse(content)
