"""A package for robust importing of uploaded CSV files, whole or in chunks."""
from __future__ import annotations

from . import utils
from .csv import (
    Chunk,
    CsvImporter,
    CsvImportError,
    EncodingError,
    EncodingExhaustedError,
    Heuristic,
    ImporterConfig,
    ParseError,
    ParseResult,
    StreamReadError,
)
from .csv.abc import FileLike
from .csv.encodings import EncodingDetector
from .csv.stream import DEFAULT_CHUNK_SIZE, ByteSource, ChunkHandler
from .log import CONSOLE, LOG, errors_view, rows_view


def read_csv(
    fp: FileLike,
    config: ImporterConfig | None = None,
    detector: EncodingDetector | None = None,
    locale: str | None = None,
    log: bool = False,
    **options,
) -> ParseResult:
    """Thin wrapper around class-based importer interface."""
    importer = CsvImporter(config, detector=detector, locale=locale, log=log, **options)
    return importer.read_file(fp)


def read_large_file(
    fp: ByteSource,
    on_chunk: ChunkHandler,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    config: ImporterConfig | None = None,
    detector: EncodingDetector | None = None,
    locale: str | None = None,
    log: bool = False,
    **options,
) -> None:
    """Thin wrapper streaming a file through ``on_chunk`` in chunks of ``chunk_size`` rows."""
    importer = CsvImporter(config, detector=detector, locale=locale, log=log, **options)
    importer.read_large_file(fp, on_chunk, chunk_size)


__all__ = [
    "Chunk",
    "CONSOLE",
    "CsvImporter",
    "CsvImportError",
    "EncodingDetector",
    "EncodingError",
    "EncodingExhaustedError",
    "errors_view",
    "Heuristic",
    "ImporterConfig",
    "LOG",
    "ParseError",
    "ParseResult",
    "read_csv",
    "read_large_file",
    "rows_view",
    "StreamReadError",
    "utils",
]

__version__ = "0.1.0"
