"""Importer combining encoding resolution with batch or streaming parsing."""
from __future__ import annotations

from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import Any

from ..log import LOG, pformat
from .abc import FileLike, ImporterConfig, ParseResult, StreamReadError
from .batch import BatchParser
from .encodings import EncodingDetector, Heuristic, resolve, strip_bom
from .stream import (
    DEFAULT_CHUNK_SIZE,
    AsyncByteSource,
    ByteSource,
    Chunk,
    ChunkHandler,
    ErrorHandler,
    StreamingChunkProcessor,
)


def read_bytes(fp: FileLike) -> bytes | str:
    """Read all data from a path or buffer. Text buffers return str."""
    if isinstance(fp, (bytes, bytearray, memoryview)):
        return bytes(fp)

    try:
        if isinstance(fp, (str, Path)):
            return Path(fp).read_bytes()
        return fp.read()
    except OSError as exc:
        raise StreamReadError(f"Failed reading from {fp!r}: {exc}") from exc


class CsvImporter:
    """Reads CSV files into a ``ParseResult``, or streams them in chunks.

    Options can be passed as an ``ImporterConfig``, as keywords, or both (keywords win). The
    ``locale`` is only used to tell Traditional from Simplified Chinese when guessing encodings
    and is ignored if a custom ``detector`` is given.
    """

    def __init__(
        self,
        config: ImporterConfig | None = None,
        detector: EncodingDetector | None = None,
        locale: str | None = None,
        on_error: ErrorHandler | None = None,
        log: bool = False,
        **options,
    ) -> None:
        self.config = ImporterConfig.from_options(options, base=config)
        self.detector = detector or Heuristic(locale=locale)
        self.on_error = on_error
        self.log = log

    def set_options(self, options: Mapping[str, Any] | None = None, **kwds) -> None:
        """Replace the config with a new one merging the given options into the current ones."""
        self.config = ImporterConfig.from_options({**(options or {}), **kwds}, base=self.config)

    def get_options(self) -> dict[str, Any]:
        return self.config.options()

    def decode(self, fp: FileLike, mime_type: str = "") -> tuple[str, str]:
        """Make sure we have text, returning it together with the encoding used."""
        data = read_bytes(fp)

        if isinstance(data, str):
            return strip_bom(data), getattr(fp, "encoding", None) or "utf-8"

        return resolve(data, self.config, detector=self.detector, mime_type=mime_type, log=self.log)

    def parse_csv(self, content: str) -> ParseResult:
        return BatchParser(self.config, log=self.log).parse(content)

    def read_file(self, fp: FileLike, mime_type: str = "") -> ParseResult:
        """Decode and parse a whole file in memory."""
        content, encoding = self.decode(fp, mime_type)
        result = self.parse_csv(content)
        result.encoding = encoding

        if self.log:
            LOG.info(pformat(result))

        return result

    __call__ = read_file

    def processor(self) -> StreamingChunkProcessor:
        return StreamingChunkProcessor(
            self.config,
            detector=self.detector,
            on_error=self.on_error,
            log=self.log,
        )

    def iter_chunks(
        self,
        fp: ByteSource,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        mime_type: str = "",
    ) -> Iterator[Chunk]:
        return self.processor().iter_chunks(fp, chunk_size, mime_type)

    def read_large_file(
        self,
        fp: ByteSource,
        on_chunk: ChunkHandler,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        mime_type: str = "",
    ) -> None:
        """Stream a file, calling ``on_chunk(rows, headers)`` every ``chunk_size`` rows."""
        self.processor().process(fp, on_chunk, chunk_size, mime_type)

    async def aread_large_file(
        self,
        fp: AsyncByteSource,
        on_chunk: ChunkHandler,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        mime_type: str = "",
    ) -> None:
        await self.processor().aprocess(fp, on_chunk, chunk_size, mime_type)
