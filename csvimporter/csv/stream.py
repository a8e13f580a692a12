"""Chunked parsing of large CSV files from byte streams.

The file is pulled buffer by buffer, decoded incrementally (so that multi-byte characters split
across buffers survive), cut into physical lines and tokenized. Rows are handed to the caller in
chunks of a fixed size, one chunk at a time and in file order. The caller's handler must return
(or its awaitable must resolve) before the next buffer is decoded.
"""
from __future__ import annotations

import inspect
from collections.abc import AsyncIterable, AsyncIterator, Awaitable, Callable, Iterable, Iterator
from contextlib import closing
from functools import partial
from pathlib import Path
from typing import Any, NamedTuple, Optional, Union

from ..log import LOG
from ..utils import is_blank, split_lines
from .abc import (
    EncodingError,
    FileLike,
    HeaderParseError,
    ImporterConfig,
    ParseError,
    Record,
    RowParseError,
    StreamReadError,
)
from .encodings import EncodingDetector, incremental_decoder, resolve, strip_bom
from .tokenizer import Tokenizer, make_record

DEFAULT_CHUNK_SIZE: int = 1000
"""Number of rows per chunk."""

BLOCK_SIZE: int = 1 << 16
"""Bytes pulled from the source at a time (64 KiB)."""

SAMPLE_SIZE: int = 1 << 20
"""Bytes used to resolve the encoding before streaming starts (1 MiB)."""

ByteSource = Union[FileLike, Iterable[bytes]]
AsyncByteSource = Union[ByteSource, AsyncIterable[bytes]]

ChunkHandler = Callable[[list[Record], Optional[list[str]]], Union[None, Awaitable[None]]]
ErrorHandler = Callable[[ParseError], Any]


class Chunk(NamedTuple):
    rows: list[Record]
    headers: list[str] | None
    encoding: str


def blocks(source: ByteSource, block_size: int = BLOCK_SIZE) -> Iterator[bytes]:
    """Iterate over a byte source in blocks, releasing it when done.

    Files opened here are closed, and iterator sources that support it (generators) are closed
    too. File objects passed in by the caller stay open.
    """
    fp = None
    close = None

    try:
        if isinstance(source, (bytes, bytearray, memoryview)):
            data = bytes(source)
            it = (data[i : i + block_size] for i in range(0, len(data), block_size))
        elif isinstance(source, (str, Path)):
            fp = open(source, "rb")  # noqa: SIM115
            it = iter(partial(fp.read, block_size), b"")
        elif hasattr(source, "read"):
            it = iter(partial(source.read, block_size), b"")
        else:
            it = iter(source)
            close = getattr(it, "close", None)

        for block in it:
            yield bytes(block)
    except OSError as exc:
        raise StreamReadError(f"Failed reading from {source!r}: {exc}") from exc
    finally:
        if fp is not None:
            fp.close()
        if close is not None:
            close()


async def ablocks(source: AsyncByteSource, block_size: int = BLOCK_SIZE) -> AsyncIterator[bytes]:
    """Async version of ``blocks()``, also accepting async iterables of bytes."""
    if not hasattr(source, "__aiter__"):
        with closing(blocks(source, block_size)) as stream:
            for block in stream:
                yield block
        return

    it = source.__aiter__()
    try:
        async for block in it:
            yield bytes(block)
    except OSError as exc:
        raise StreamReadError(f"Failed reading from {source!r}: {exc}") from exc
    finally:
        aclose = getattr(it, "aclose", None)
        if aclose is not None:
            await aclose()


class StreamState:
    """Everything one streaming call needs to remember between buffers."""

    def __init__(
        self,
        encoding: str,
        config: ImporterConfig,
        on_error: ErrorHandler | None = None,
    ) -> None:
        self.encoding = encoding
        self.config = config
        self.tokenizer = Tokenizer.from_config(config)
        self.on_error = on_error or self.warn
        # A fixed encoding must decode the whole stream, a detected one only the sample
        errors = "replace" if config.auto_detect_encoding else "strict"
        self.decoder = incremental_decoder(encoding, errors=errors)
        self.text = ""
        self.started = False
        self.has_headers = not config.header
        self.headers: list[str] | None = None
        self.chunk: list[Record] = []
        self.n_lines = 0
        self.n_rows = 0

    @staticmethod
    def warn(error: ParseError) -> None:
        LOG.warning(f"Skipping row {error.row}: {error.message}")

    def decode(self, data: bytes, final: bool) -> str:
        try:
            return self.decoder.decode(data, final=final)
        except UnicodeDecodeError as exc:
            raise EncodingError(f"Cannot decode input as '{self.encoding}': {exc}") from exc

    def feed(self, data: bytes, chunk_size: int) -> list[list[Record]]:
        """Fold a buffer into the state, returning any chunks that are complete."""
        self.consume(self.decode(data, final=False), final=False)
        return self.take(chunk_size)

    def finish(self, chunk_size: int) -> list[list[Record]]:
        """Flush all pending bytes and text, returning the remaining chunks."""
        self.consume(self.decode(b"", final=True), final=True)
        chunks = self.take(chunk_size)
        if self.chunk:
            chunks.append(self.chunk)
            self.chunk = []
        return chunks

    def consume(self, text: str, final: bool) -> None:
        if text and not self.started:
            text = strip_bom(text)
            self.started = True

        lines = split_lines(self.text + text)
        # Last piece may be an incomplete line
        self.text = "" if final else lines.pop()

        for line in lines:
            self.process_line(line)

    def process_line(self, line: str) -> None:
        if not self.has_headers:
            self.has_headers = True
            try:
                self.headers = self.tokenizer.parse_header(line)
            except HeaderParseError as exc:
                self.headers = []
                self.on_error(ParseError(row=0, message=str(exc)))
            return

        self.n_lines += 1
        if self.config.skip_empty_lines and is_blank(line):
            return

        try:
            values = self.tokenizer.parse_line(line)
        except RowParseError as exc:
            self.on_error(ParseError(row=self.n_lines, message=f"Failed to parse row: {exc}"))
            return

        record = make_record(self.headers, values)
        if record:
            self.chunk.append(record)
            self.n_rows += 1

    def take(self, chunk_size: int) -> list[list[Record]]:
        full = len(self.chunk) // chunk_size * chunk_size
        chunks = [self.chunk[i : i + chunk_size] for i in range(0, full, chunk_size)]
        self.chunk = self.chunk[full:]
        return chunks


class StreamingChunkProcessor:
    """Parse byte streams into chunks of rows.

    Each call owns its own ``StreamState``, so a processor may be reused, but the config must
    not be swapped while a call is in flight.
    """

    def __init__(
        self,
        config: ImporterConfig | None = None,
        detector: EncodingDetector | None = None,
        block_size: int = BLOCK_SIZE,
        sample_size: int = SAMPLE_SIZE,
        on_error: ErrorHandler | None = None,
        log: bool = False,
    ) -> None:
        self.config = config or ImporterConfig()
        self.detector = detector
        self.block_size = block_size
        self.sample_size = sample_size
        self.on_error = on_error
        self.log = log

    @staticmethod
    def check_chunk_size(chunk_size: int) -> None:
        if chunk_size <= 0:
            raise ValueError(f"Chunk size must be a positive integer, got {chunk_size}.")

    def start(self, sample: bytes, exhausted: bool, mime_type: str = "") -> StreamState:
        """Resolve the encoding on a leading sample and set up the state for one call."""
        _, encoding = resolve(
            sample,
            self.config,
            detector=self.detector,
            mime_type=mime_type,
            final=exhausted,
            log=self.log,
        )
        if self.log:
            LOG.info(f"Streaming CSV with encoding '{encoding}'.")
        return StreamState(encoding, self.config, on_error=self.on_error)

    def sample(self, stream: Iterator[bytes]) -> tuple[bytes, bool]:
        """Pull blocks until the sample size is reached. Flag whether the stream is exhausted."""
        parts, size = [], 0
        for block in stream:
            parts.append(block)
            size += len(block)
            if size >= self.sample_size:
                return b"".join(parts), False
        return b"".join(parts), True

    async def asample(self, stream: AsyncIterator[bytes]) -> tuple[bytes, bool]:
        parts, size = [], 0
        async for block in stream:
            parts.append(block)
            size += len(block)
            if size >= self.sample_size:
                return b"".join(parts), False
        return b"".join(parts), True

    def summarize(self, state: StreamState, n_chunks: int) -> None:
        if self.log:
            LOG.info(f"Streamed {state.n_rows:,} rows in {n_chunks:,} chunks.")

    def iter_chunks(
        self,
        source: ByteSource,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        mime_type: str = "",
    ) -> Iterator[Chunk]:
        """Yield chunks of rows. Nothing more is read until the consumer asks for the next one."""
        self.check_chunk_size(chunk_size)
        n_chunks = 0

        with closing(blocks(source, self.block_size)) as stream:
            data, exhausted = self.sample(stream)
            state = self.start(data, exhausted, mime_type)

            for rows in state.feed(data, chunk_size):
                n_chunks += 1
                yield Chunk(rows, state.headers, state.encoding)

            for block in stream:
                for rows in state.feed(block, chunk_size):
                    n_chunks += 1
                    yield Chunk(rows, state.headers, state.encoding)

            for rows in state.finish(chunk_size):
                n_chunks += 1
                yield Chunk(rows, state.headers, state.encoding)

        self.summarize(state, n_chunks)

    def process(
        self,
        source: ByteSource,
        on_chunk: ChunkHandler,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        mime_type: str = "",
    ) -> None:
        """Call ``on_chunk(rows, headers)`` for each chunk, blocking until it returns."""
        with closing(self.iter_chunks(source, chunk_size, mime_type)) as chunks:
            for chunk in chunks:
                on_chunk(chunk.rows, chunk.headers)

    async def aprocess(
        self,
        source: AsyncByteSource,
        on_chunk: ChunkHandler,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        mime_type: str = "",
    ) -> None:
        """Like ``process()``, awaiting the handler's result if it returns an awaitable."""
        self.check_chunk_size(chunk_size)
        n_chunks = 0

        async def deliver(rows: list[Record]) -> None:
            result = on_chunk(rows, state.headers)
            if inspect.isawaitable(result):
                await result

        stream = ablocks(source, self.block_size)
        try:
            data, exhausted = await self.asample(stream)
            state = self.start(data, exhausted, mime_type)

            for rows in state.feed(data, chunk_size):
                n_chunks += 1
                await deliver(rows)

            async for block in stream:
                for rows in state.feed(block, chunk_size):
                    n_chunks += 1
                    await deliver(rows)

            for rows in state.finish(chunk_size):
                n_chunks += 1
                await deliver(rows)
        finally:
            await stream.aclose()

        self.summarize(state, n_chunks)
