"""
Binary Codec Module

Key components:
- bits.py: bit buffer for packing cell payloads
- writer.py: big-endian byte writer for the bag of cells envelope
- reader.py: matching byte reader
- hashes.py: SHA-256 and CRC32C helpers
"""

from .bits import BitBuffer
from .hashes import crc32c, sha256_bytes
from .reader import BinaryReader
from .writer import BinaryWriter

__all__ = [
    "BinaryReader",
    "BinaryWriter",
    "BitBuffer",
    "crc32c",
    "sha256_bytes",
]
