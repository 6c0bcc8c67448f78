"""
Binary Writer

Byte-level encoder for the bag of cells envelope: big-endian unsigned
integers of a declared byte width, single bytes and raw byte strings.
"""

from typing import List


class BinaryWriter:
    """
    Binary writer for bag of cells headers and cell records.

    Integers are written big-endian in a fixed number of bytes; the CRC32C
    footer is the only little-endian field and is appended as raw bytes.
    """

    def __init__(self):
        """Initialize writer with empty byte buffer."""
        self._bb: List[int] = []

    def __len__(self) -> int:
        return len(self._bb)

    def u8(self, v: int) -> None:
        """
        Write unsigned 8-bit integer.

        Args:
            v: Integer value to write (0-255)
        """
        if not 0 <= v <= 0xFF:
            raise ValueError(f"u8 out of range: {v}")
        self._bb.append(v)

    def uint_be(self, v: int, width: int) -> None:
        """
        Write unsigned integer as width big-endian bytes.

        Args:
            v: Non-negative integer value
            width: Number of bytes to use

        Raises:
            ValueError: If v does not fit in width bytes
        """
        if v < 0 or v >= 1 << (8 * width):
            raise ValueError(f"{v} does not fit in {width} bytes")
        self._bb.extend(v.to_bytes(width, "big"))

    def bytes(self, v: bytes) -> None:
        """
        Write raw bytes without length prefix.

        Args:
            v: Bytes to write directly
        """
        self._bb.extend(v)

    def to_bytes(self) -> bytes:
        """
        Return accumulated bytes as immutable bytes object.

        Returns:
            Bytes containing all written data
        """
        return bytes(self._bb)
