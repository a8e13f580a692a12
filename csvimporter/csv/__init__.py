"""Subpackage for robust parsing of uploaded CSV files.

Helps detecting encodings, splitting quoted fields and streaming large files in chunks.
"""
from .abc import (
    CsvImportError,
    EncodingError,
    EncodingExhaustedError,
    HeaderParseError,
    ImporterConfig,
    ParseError,
    ParseResult,
    RowParseError,
    StreamReadError,
)
from .batch import BatchParser, parse_csv
from .encodings import COMMON_ENCODINGS, EncodingDetector, Heuristic
from .importer import CsvImporter
from .stream import Chunk, StreamingChunkProcessor
from .tokenizer import Tokenizer

__all__ = [
    "BatchParser",
    "Chunk",
    "COMMON_ENCODINGS",
    "CsvImporter",
    "CsvImportError",
    "EncodingDetector",
    "EncodingError",
    "EncodingExhaustedError",
    "HeaderParseError",
    "Heuristic",
    "ImporterConfig",
    "ParseError",
    "ParseResult",
    "parse_csv",
    "RowParseError",
    "StreamingChunkProcessor",
    "StreamReadError",
    "Tokenizer",
]
