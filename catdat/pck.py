from __future__ import annotations

"""gzip pass-through for .pck payloads.

Later titles store many catalog members gzip-compressed (usually with a .pck
suffix) without any additional obfuscation. These helpers detect, unpack and
repack such payloads and guess a sensible extension for the unpacked content.
"""

import zlib

from .constants import (
    GZIP_LEVEL,
    GZIP_MAGIC,
    GZIP_MEM_LEVEL,
    GZIP_WBITS,
    PCK_DEFAULT_EXT,
    PCK_SIGNATURES,
)
from .errors import PckError


def is_compressed(data: bytes) -> bool:
    return len(data) >= 2 and data[:2] == GZIP_MAGIC


def unpack(data: bytes) -> bytes:
    if not is_compressed(data):
        raise PckError("payload is not gzip-compressed")
    d = zlib.decompressobj(GZIP_WBITS)
    try:
        out = d.decompress(data) + d.flush()
    except zlib.error as exc:
        raise PckError(f"gzip decompression failed: {exc}")
    if not d.eof:
        raise PckError("gzip stream is truncated")
    return out


def pack(data: bytes) -> bytes:
    # Empty input stays empty so zero-length members round-trip unchanged
    if not data:
        return b""
    c = zlib.compressobj(GZIP_LEVEL, zlib.DEFLATED, GZIP_WBITS, GZIP_MEM_LEVEL)
    return c.compress(data) + c.flush()


def detect_extension(data: bytes) -> str:
    """Guess the file extension (with leading dot) of unpacked content."""
    for magic, ext in PCK_SIGNATURES:
        if data.startswith(magic):
            return ext
    return PCK_DEFAULT_EXT
