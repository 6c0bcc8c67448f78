"""
Hash Functions

SHA-256 for cell hashes and CRC32C for bag of cells checksums.
"""

import hashlib

import crc32c as _crc32c


def sha256_bytes(input_bytes: bytes) -> bytes:
    """
    Compute SHA-256 hash of input bytes.

    Args:
        input_bytes: Input bytes to hash

    Returns:
        SHA-256 hash as bytes (32 bytes)
    """
    return hashlib.sha256(input_bytes).digest()


def crc32c(data: bytes) -> int:
    """
    Compute the CRC32C (Castagnoli, reflected) checksum of data.

    The bag of cells footer stores this value as 4 little-endian bytes.
    """
    return _crc32c.crc32c(data)


def crc32c_bytes(data: bytes) -> bytes:
    """CRC32C of data in its on-wire little-endian form."""
    return crc32c(data).to_bytes(4, "little")
