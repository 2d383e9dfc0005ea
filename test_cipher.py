from __future__ import annotations

import os
import unittest

from catdat.cipher import IndexCipher, xor_data, xor_index
from catdat.constants import DATA_KEY, INDEX_KEY


class IndexCipherTests(unittest.TestCase):
    def test_invertible_for_any_start_key(self):
        for size in (0, 1, 1000):
            data = os.urandom(size)
            for k0 in (0x00, 0x01, INDEX_KEY, 0xFF):
                enc, _ = xor_index(data, k0)
                dec, _ = xor_index(enc, k0)
                self.assertEqual(dec, data, f"size={size} key={k0:#x}")

    def test_key_increments_per_byte(self):
        enc, nxt = xor_index(b"\x00" * 4)
        self.assertEqual(enc, bytes([0xDB, 0xDC, 0xDD, 0xDE]))
        self.assertEqual(nxt, 0xDF)

    def test_key_wraps_around(self):
        enc, nxt = xor_index(b"\x00" * 300, 0xFE)
        self.assertEqual(enc[0], 0xFE)
        self.assertEqual(enc[1], 0xFF)
        self.assertEqual(enc[2], 0x00)
        self.assertEqual(enc[258], 0x00)
        self.assertEqual(nxt, (0xFE + 300) % 256)

    def test_empty_input_keeps_key(self):
        enc, nxt = xor_index(b"", 0x42)
        self.assertEqual(enc, b"")
        self.assertEqual(nxt, 0x42)

    def test_stream_never_resets_between_pieces(self):
        text = b"test.dat\nsome/file.txt 12\nother 3\n"
        whole, _ = xor_index(text)
        c = IndexCipher()
        pieces = b"".join(c.encode(line + b"\n") for line in text.split(b"\n")[:-1])
        self.assertEqual(pieces, whole)
        self.assertEqual(c.key, (INDEX_KEY + len(text)) % 256)

    def test_decode_matches_encode(self):
        plain = os.urandom(777)
        enc = IndexCipher(0x10).encode(plain)
        self.assertEqual(IndexCipher(0x10).decode(enc), plain)


class DataCipherTests(unittest.TestCase):
    def test_constant_key(self):
        self.assertEqual(xor_data(b"\x00\x00\x00"), bytes([DATA_KEY] * 3))
        self.assertEqual(xor_data(b"\x33\xff"), b"\x00\xcc")

    def test_invertible(self):
        data = os.urandom(4096)
        self.assertEqual(xor_data(xor_data(data)), data)
        self.assertEqual(xor_data(xor_data(data, 0x7A), 0x7A), data)

    def test_empty(self):
        self.assertEqual(xor_data(b""), b"")


if __name__ == "__main__":
    unittest.main()
