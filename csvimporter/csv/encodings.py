"""Helpers to detect character encodings in binary buffers and decode them robustly.

Detection is a cheap heuristic over the first KiB of a file, not a certainty. Decoding
therefore always goes through ``resolve()``, which falls back on a fixed list of common
encodings if the detected one fails.
"""
from __future__ import annotations

import codecs
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from typing import BinaryIO

from ..log import LOG
from .abc import EncodingError, EncodingExhaustedError, ImporterConfig

N_BYTES_DEFAULT: int = 1024
"""Number of leading bytes inspected by the heuristic detector."""

CJK_THRESHOLD: float = 0.2
"""Minimum proportion of bytes in CJK lead ranges to guess a double-byte CJK encoding."""

COMMON_ENCODINGS: tuple[str, ...] = (
    "utf-8",
    "gbk",
    "gb2312",
    "big5",
    "shift-jis",
    "euc-kr",
    "iso-8859-1",
    "windows-1252",
)
"""Encodings tried in order when the detected one fails to decode."""

DOUBLE_BYTE_CJK: frozenset[str] = frozenset({"gbk", "gb2312", "big5", "shift-jis", "euc-kr"})

TRADITIONAL_CHINESE_LOCALES: tuple[str, ...] = ("zh-tw", "zh-hk")

BOMS: tuple[tuple[bytes, str], ...] = (
    (codecs.BOM_UTF8, "utf-8"),
    (codecs.BOM_UTF16_LE, "utf-16le"),
    (codecs.BOM_UTF16_BE, "utf-16be"),
)
"""Map BOM (Byte-order mark) to encoding."""

BOM_CHAR = "\ufeff"


@dataclass(frozen=True)
class ByteRange:
    """Inclusive range of byte values."""

    lo: int
    hi: int

    def __contains__(self, byte: int) -> bool:
        return self.lo <= byte <= self.hi


CONTINUATION = ByteRange(0x80, 0xBF)

UTF8_LEADS: tuple[tuple[ByteRange, int], ...] = (
    (ByteRange(0x00, 0x7F), 0),
    (ByteRange(0xC2, 0xDF), 1),
    (ByteRange(0xE0, 0xEF), 2),
)
"""Valid UTF-8 lead bytes and the number of continuation bytes each must be followed by."""

CJK_CANDIDATES: tuple[ByteRange, ...] = (ByteRange(0xB0, 0xF7), ByteRange(0xA1, 0xA9))
"""Byte ranges typical of GBK/Big5 encoded Chinese characters."""


def in_any(byte: int, ranges: Iterable[ByteRange]) -> bool:
    return any(byte in rng for rng in ranges)


def detect_bom(bs: bytes) -> str | None:
    """Detect encoding by looking for a BOM at the start of the file."""
    for bom, enc in BOMS:
        if bs.startswith(bom):
            return enc

    return None


def continuation_count(byte: int) -> int | None:
    """Number of continuation bytes expected after a lead byte, None if not a valid lead."""
    for rng, n in UTF8_LEADS:
        if byte in rng:
            return n

    return None


def is_utf8(window: bytes) -> bool:
    """Strictly validate 1 to 3 byte UTF-8 sequences, stopping at the first mismatch.

    A sequence cut short by the end of the window is accepted, since the window boundary
    says nothing about the encoding of the file.
    """
    i = 0
    size = len(window)

    while i < size:
        n = continuation_count(window[i])
        if n is None:
            return False

        tail = window[i + 1 : i + 1 + n]
        if not all(b in CONTINUATION for b in tail):
            return False

        i += 1 + n

    return True


def is_traditional_chinese(locale: str | None) -> bool:
    if not locale:
        return False

    locale = locale.lower().replace("_", "-")
    return any(tag in locale for tag in TRADITIONAL_CHINESE_LOCALES)


@dataclass
class EncodingDetector(ABC):
    """Base class specifying interface for all encoding detectors."""

    @abstractmethod
    def detect(self, data: bytes | BinaryIO, mime_type: str = "") -> str:
        """Implement me."""


@dataclass
class Heuristic(EncodingDetector):
    """Guess encoding from BOMs, UTF-8 validity and the frequency of CJK-like bytes.

    The ``locale`` decides between the two double-byte Chinese encodings: Big5 for Traditional
    Chinese regions (Taiwan, Hong Kong), GBK otherwise.
    """

    n_bytes: int = N_BYTES_DEFAULT
    """Use this many bytes to detect encoding."""
    locale: str | None = None
    """Language tag of the user, e.g. 'zh-TW'."""
    cjk_threshold: float = CJK_THRESHOLD

    def head(self, data: bytes | BinaryIO) -> bytes:
        if isinstance(data, (bytes, bytearray, memoryview)):
            return bytes(data[: self.n_bytes])

        pos = data.tell()
        try:
            return data.read(self.n_bytes)
        finally:
            data.seek(pos)

    def detect(self, data: bytes | BinaryIO, mime_type: str = "") -> str:
        """Best guess at the encoding of the leading bytes.

        The declared ``mime_type`` of an upload is accepted for interface compatibility but
        browsers rarely report a charset for CSV files, so it is not used.
        """
        window = self.head(data)

        bom_encoding = detect_bom(window)
        if bom_encoding:
            return bom_encoding

        if is_utf8(window):
            return "utf-8"

        high_bytes = sum(1 for b in window if b > 0x7F)
        candidates = sum(1 for b in window if in_any(b, CJK_CANDIDATES))

        if high_bytes and candidates > self.cjk_threshold * len(window):
            return "big5" if is_traditional_chinese(self.locale) else "gbk"

        return "utf-8"


def codec_available(encoding: str) -> bool:
    try:
        codecs.lookup(encoding)
        return True
    except LookupError:
        return False


def codec_name(encoding: str) -> str:
    """The codec actually used to decode ``encoding`` in this runtime.

    Double-byte CJK encodings the runtime doesn't know about degrade to UTF-8, which will
    produce replacement characters rather than fail.
    """
    if encoding.lower() in DOUBLE_BYTE_CJK and not codec_available(encoding):
        return "utf-8"

    return encoding


def is_degraded(encoding: str) -> bool:
    return codec_name(encoding) != encoding


def strip_bom(text: str) -> str:
    return text[1:] if text.startswith(BOM_CHAR) else text


def decode(data: bytes, encoding: str, final: bool = True) -> str:
    """Strictly decode bytes, raising UnicodeDecodeError or LookupError on failure.

    With ``final=False`` an incomplete multi-byte sequence at the end is not an error (used
    to validate samples cut from a longer stream).
    """
    if is_degraded(encoding):
        LOG.warning(f"Runtime has no '{encoding}' codec, decoding as UTF-8 on a best-effort basis.")
        return strip_bom(data.decode(codec_name(encoding), errors="replace"))

    decoder = codecs.getincrementaldecoder(encoding)(errors="strict")
    return strip_bom(decoder.decode(data, final=final))


def incremental_decoder(encoding: str, errors: str = "strict") -> codecs.IncrementalDecoder:
    """A decoder keeping partial multi-byte sequences between calls to ``decode()``.

    Degraded codecs always replace undecodable bytes.
    """
    if is_degraded(encoding):
        errors = "replace"
    return codecs.getincrementaldecoder(codec_name(encoding))(errors=errors)


def resolve(
    data: bytes,
    config: ImporterConfig,
    detector: EncodingDetector | None = None,
    mime_type: str = "",
    final: bool = True,
    candidates: Iterable[str] = COMMON_ENCODINGS,
    log: bool = False,
) -> tuple[str, str]:
    """Decode ``data`` according to the config's encoding policy.

    Returns the decoded text and the name of the encoding that succeeded.
    """
    if not config.auto_detect_encoding:
        try:
            return decode(data, config.encoding, final=final), config.encoding
        except (UnicodeDecodeError, LookupError) as exc:
            raise EncodingError(f"Cannot decode input as '{config.encoding}': {exc}") from exc

    detector = detector or Heuristic()
    detected = detector.detect(data, mime_type)

    try:
        text = decode(data, detected, final=final)
        if log:
            LOG.info(f"Decoded input using detected encoding '{detected}'.")
        return text, detected
    except (UnicodeDecodeError, LookupError):
        LOG.warning(f"Decoding with detected encoding '{detected}' failed, trying others...")

    for encoding in candidates:
        if encoding == detected:
            continue

        try:
            text = decode(data, encoding, final=final)
        except (UnicodeDecodeError, LookupError):
            continue

        if log:
            LOG.info(f"Successfully decoded input using fallback encoding '{encoding}'.")
        return text, encoding

    raise EncodingExhaustedError("Could not decode input with any of the known encodings.")
