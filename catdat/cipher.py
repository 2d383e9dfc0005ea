from __future__ import annotations

"""XOR stream ciphers used by the .cat/.dat pair.

Two independent single-byte schemes are in play:

- the index cipher XORs byte ``i`` of a .cat file with ``(INDEX_KEY + i) mod 256``.
  The key runs across the whole file and is never reset at line boundaries.
- the data cipher XORs every byte of a .dat file with the constant ``DATA_KEY``.

Both are obfuscation only. XOR is its own inverse, so the same call encodes and
decodes. The byte-wise work is delegated to ``Cryptodome.Util.strxor``.
"""

from typing import Tuple

from Cryptodome.Util.strxor import strxor, strxor_c

from .constants import DATA_KEY, INDEX_KEY


_RAMP = bytes(range(256))


def _keystream(key: int, length: int) -> bytes:
    """Incrementing key bytes ``key, key+1, ...`` (mod 256) of the given length."""
    key &= 0xFF
    period = _RAMP[key:] + _RAMP[:key]
    reps = length // 256 + 1
    return (period * reps)[:length]


def xor_index(data: bytes, key: int = INDEX_KEY) -> Tuple[bytes, int]:
    """Apply the incrementing index cipher starting at ``key``.

    Returns the transformed bytes and the key that applies to the next byte.
    """
    n = len(data)
    next_key = (key + n) & 0xFF
    if n == 0:
        return b"", next_key
    return strxor(bytes(data), _keystream(key, n)), next_key


def xor_data(data: bytes, key: int = DATA_KEY) -> bytes:
    """Apply the constant data cipher."""
    if not data:
        return b""
    return strxor_c(bytes(data), key & 0xFF)


class IndexCipher:
    """Incrementing index cipher whose key carries over between calls.

    Feeding a file through one instance in several pieces gives the same result
    as a single ``xor_index`` call over the concatenation.
    """

    def __init__(self, key: int = INDEX_KEY):
        self.key = key & 0xFF

    def transform(self, data: bytes) -> bytes:
        out, self.key = xor_index(data, self.key)
        return out

    # Encoding and decoding are the same XOR
    encode = transform
    decode = transform
