from __future__ import annotations

import gzip
import os
import unittest

from catdat import pck
from catdat.errors import PckError


class PckTests(unittest.TestCase):
    def test_detect_compressed(self):
        self.assertTrue(pck.is_compressed(b"\x1f\x8b\x08\x00"))
        self.assertTrue(pck.is_compressed(b"\x1f\x8b"))
        self.assertFalse(pck.is_compressed(b"\x1f\x8a\x08"))
        self.assertFalse(pck.is_compressed(b"\x1f"))
        self.assertFalse(pck.is_compressed(b""))

    def test_round_trip_small(self):
        data = b"Hello, X3!"
        packed = pck.pack(data)
        self.assertTrue(packed)
        self.assertTrue(pck.is_compressed(packed))
        self.assertEqual(pck.unpack(packed), data)

    def test_round_trip_large(self):
        data = os.urandom(64 * 1024) + b"A" * 100_000
        self.assertEqual(pck.unpack(pck.pack(data)), data)

    def test_empty_stays_empty(self):
        self.assertEqual(pck.pack(b""), b"")

    def test_interoperates_with_gzip(self):
        data = b"<?xml version=\"1.0\"?>" * 50
        self.assertEqual(gzip.decompress(pck.pack(data)), data)
        self.assertEqual(pck.unpack(gzip.compress(data)), data)

    def test_highly_compressible(self):
        data = b"\x00" * 10_000
        self.assertLess(len(pck.pack(data)), 200)

    def test_unpack_rejects_plain_data(self):
        with self.assertRaises(PckError):
            pck.unpack(b"plain text")
        with self.assertRaises(PckError):
            pck.unpack(b"")

    def test_unpack_rejects_corrupt_or_truncated(self):
        packed = pck.pack(b"some payload " * 100)
        with self.assertRaises(PckError):
            pck.unpack(packed[:len(packed) // 2])
        with self.assertRaises(PckError):
            pck.unpack(b"\x1f\x8b" + b"\xff" * 20)

    def test_detect_extension(self):
        self.assertEqual(pck.detect_extension(b"\xef\xbb\xbf<?xml version"), ".xml")
        self.assertEqual(pck.detect_extension(b"<?xml version"), ".xml")
        self.assertEqual(pck.detect_extension(b"DDS \x7c\x00\x00\x00"), ".dds")
        self.assertEqual(pck.detect_extension(b"BOB1\x00"), ".bob")
        self.assertEqual(pck.detect_extension(b"CUT1\x00"), ".bob")
        self.assertEqual(pck.detect_extension(b"// script text"), ".txt")
        self.assertEqual(pck.detect_extension(b"DDS"), ".txt")
        self.assertEqual(pck.detect_extension(b""), ".txt")


if __name__ == "__main__":
    unittest.main()
