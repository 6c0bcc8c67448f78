"""
Binary Reader

Byte-level decoder for the bag of cells envelope. Reading past the end of
the buffer raises UnderflowError; the bag of cells codec turns that into a
format error with the offending section named.
"""

import builtins

from ..runtime.errors import UnderflowError


class BinaryReader:
    """
    Binary reader over an immutable byte buffer with a forward cursor.
    """

    def __init__(self, buf: builtins.bytes):
        """
        Initialize reader with byte buffer.

        Args:
            buf: Byte buffer to read from
        """
        self._buf = buf
        self._off = 0

    @property
    def eof(self) -> bool:
        """
        Check if at end of buffer.

        Returns:
            True if at end of buffer
        """
        return self._off >= len(self._buf)

    @property
    def offset(self) -> int:
        """Current cursor position."""
        return self._off

    @property
    def remaining(self) -> int:
        """Number of unread bytes."""
        return len(self._buf) - self._off

    def _require(self, n: int) -> None:
        if n < 0 or self._off + n > len(self._buf):
            raise UnderflowError(
                f"attempting to read {n} bytes at offset {self._off} beyond end",
                details={"offset": self._off, "length": len(self._buf)},
            )

    def u8(self) -> int:
        """
        Read unsigned 8-bit integer.

        Returns:
            Unsigned 8-bit integer value
        """
        self._require(1)
        val = self._buf[self._off]
        self._off += 1
        return val

    def uint_be(self, width: int) -> int:
        """
        Read a big-endian unsigned integer of width bytes.

        Args:
            width: Number of bytes

        Returns:
            Decoded unsigned integer value
        """
        return int.from_bytes(self.bytes(width), "big")

    def bytes(self, n: int) -> builtins.bytes:
        """
        Read n bytes from buffer.

        Args:
            n: Number of bytes to read

        Returns:
            Bytes of specified length
        """
        self._require(n)
        out = builtins.bytes(self._buf[self._off : self._off + n])
        self._off += n
        return out
