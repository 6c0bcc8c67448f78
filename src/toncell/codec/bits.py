"""
Bit Buffer

Append/read primitive for packing integers, bit strings, byte strings,
coin amounts and addresses with bit-level precision. Bits are big-endian:
the most significant bit of every value is written first.

Writes are checked before anything is appended, so a failed write leaves
the buffer unchanged.
"""

from __future__ import annotations
from typing import Iterable, Optional, Union

from bitarray import bitarray, frozenbitarray
from bitarray.util import ba2int, int2ba

from ..address import Address
from ..runtime.errors import InvalidAddressError, OverflowError, UnderflowError

MAX_CELL_BITS = 1023

# VarUInteger 16: 4-bit byte length, then up to 15 bytes
COINS_LENGTH_BITS = 4
MAX_COINS = (1 << 120) - 1

# addr_std$10 anycast:(Maybe Anycast) workchain_id:int8 address:bits256
ADDRESS_STD_BITS = 2 + 1 + 8 + 256

BitsLike = Union[bitarray, str, bytes, Iterable[int]]


def to_bitarray(raw_bits: BitsLike) -> bitarray:
    """
    Convert a bit string, "0101" string or iterable of 0/1 values to a
    big-endian bitarray. Bytes are taken as whole octets.
    """
    if isinstance(raw_bits, bitarray):
        return bitarray(raw_bits, endian="big")
    out = bitarray(endian="big")
    if isinstance(raw_bits, (bytes, bytearray)):
        out.frombytes(bytes(raw_bits))
        return out
    if isinstance(raw_bits, str):
        return bitarray(raw_bits, endian="big")
    out.extend(int(b) for b in raw_bits)
    return out


def uint_to_bits(value: int, n_bits: int) -> bitarray:
    """Encode value as an n_bits wide unsigned big-endian bit string."""
    if n_bits == 0:
        return bitarray(endian="big")
    return int2ba(value, length=n_bits, endian="big")


def bits_to_uint(bits: bitarray) -> int:
    """Decode a big-endian bit string as an unsigned integer."""
    if len(bits) == 0:
        return 0
    return ba2int(bits)


class BitBuffer:
    """
    Bit buffer with an append end and a read cursor.

    Writes append at the end and are bounded by capacity (1023 bits, the
    payload limit of a cell, unless told otherwise). Reads consume from
    the cursor, which starts at bit 0.
    """

    def __init__(self, bits: Optional[BitsLike] = None, capacity: int = MAX_CELL_BITS):
        """
        Initialize buffer.

        Args:
            bits: Initial content
            capacity: Maximum number of bits the buffer may hold
        """
        if capacity < 0:
            raise ValueError("capacity must be non-negative")
        self._bits = bitarray(endian="big")
        self._capacity = capacity
        self._cursor = 0
        if bits is not None:
            self.write_bits(bits)

    def __len__(self) -> int:
        return len(self._bits)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(length={len(self._bits)}, cursor={self._cursor})"

    @property
    def length(self) -> int:
        """Number of bits written."""
        return len(self._bits)

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def free_bits(self) -> int:
        """Bits that can still be written."""
        return self._capacity - len(self._bits)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def remaining_bits(self) -> int:
        """Bits left to read."""
        return len(self._bits) - self._cursor

    def to_bits(self) -> frozenbitarray:
        """Snapshot of every bit written so far."""
        return frozenbitarray(self._bits)

    # =========================================================================
    # Writing
    # =========================================================================

    def _overflow(self, message: str, **details) -> None:
        raise OverflowError(message, details=details)

    def _ensure_capacity(self, n_bits: int) -> None:
        if len(self._bits) + n_bits > self._capacity:
            self._overflow(
                f"cannot write {n_bits} bits: {len(self._bits)} of {self._capacity} used",
                length=len(self._bits), requested=n_bits, capacity=self._capacity,
            )

    def _append(self, bits: bitarray) -> None:
        self._ensure_capacity(len(bits))
        self._bits.extend(bits)

    def write_bit(self, flag: Union[bool, int]) -> None:
        """Append a single bit."""
        self._ensure_capacity(1)
        self._bits.append(1 if flag else 0)

    def write_uint(self, value: int, n_bits: int) -> None:
        """
        Append an unsigned integer.

        Args:
            value: Integer in range [0, 2**n_bits)
            n_bits: Width in bits

        Raises:
            OverflowError: If value does not fit or the buffer is full
        """
        if n_bits < 0:
            raise ValueError("n_bits must be non-negative")
        if value < 0 or value >= 1 << n_bits:
            raise OverflowError(
                f"{value} does not fit in {n_bits} unsigned bits",
                details={"value": value, "n_bits": n_bits},
            )
        self._ensure_capacity(n_bits)
        self._bits.extend(uint_to_bits(value, n_bits))

    def write_int(self, value: int, n_bits: int) -> None:
        """
        Append a two's complement signed integer.

        Args:
            value: Integer in range [-2**(n_bits-1), 2**(n_bits-1))
            n_bits: Width in bits

        Raises:
            OverflowError: If value does not fit or the buffer is full
        """
        if n_bits < 0:
            raise ValueError("n_bits must be non-negative")
        if n_bits == 0:
            fits = value == 0
        else:
            half = 1 << (n_bits - 1)
            fits = -half <= value < half
        if not fits:
            raise OverflowError(
                f"{value} does not fit in {n_bits} signed bits",
                details={"value": value, "n_bits": n_bits},
            )
        self._ensure_capacity(n_bits)
        if n_bits:
            self._bits.extend(int2ba(value, length=n_bits, endian="big", signed=True))

    def write_bits(self, raw_bits: BitsLike) -> None:
        """Append a bit string."""
        self._append(to_bitarray(raw_bits))

    def write_bytes(self, data: bytes) -> None:
        """Append whole bytes, 8 bits each."""
        bits = bitarray(endian="big")
        bits.frombytes(bytes(data))
        self._append(bits)

    def write_buffer(self, other: "BitBuffer") -> None:
        """Append every bit of another buffer."""
        self._append(other._bits)

    def write_coins(self, amount: int) -> None:
        """
        Append a coin amount as VarUInteger 16: a 4-bit byte length followed
        by the amount in that many bytes.

        Raises:
            OverflowError: If amount is negative, exceeds 120 bits, or the
                buffer is full
        """
        if amount < 0 or amount > MAX_COINS:
            raise OverflowError(f"coin amount out of range: {amount}", details={"value": amount})
        n_bytes = (amount.bit_length() + 7) // 8
        self._ensure_capacity(COINS_LENGTH_BITS + n_bytes * 8)
        self._bits.extend(uint_to_bits(n_bytes, COINS_LENGTH_BITS))
        self._bits.extend(uint_to_bits(amount, n_bytes * 8))

    def write_address(self, address: Optional[Address]) -> None:
        """
        Append an internal address (addr_std without anycast), or addr_none
        when address is None.
        """
        if address is None:
            self._ensure_capacity(2)
            self._bits.extend(bitarray("00", endian="big"))
            return
        self._ensure_capacity(ADDRESS_STD_BITS)
        self._bits.extend(bitarray("100", endian="big"))
        self._bits.extend(int2ba(address.workchain, length=8, endian="big", signed=True))
        bits = bitarray(endian="big")
        bits.frombytes(address.hash_part)
        self._bits.extend(bits)

    # =========================================================================
    # Reading
    # =========================================================================

    def _require(self, n_bits: int) -> None:
        if n_bits < 0:
            raise ValueError("n_bits must be non-negative")
        if self._cursor + n_bits > len(self._bits):
            raise UnderflowError(
                f"cannot read {n_bits} bits: {self.remaining_bits} remaining",
                details={"cursor": self._cursor, "requested": n_bits, "length": len(self._bits)},
            )

    def _take(self, n_bits: int) -> bitarray:
        self._require(n_bits)
        out = self._bits[self._cursor : self._cursor + n_bits]
        self._cursor += n_bits
        return out

    def read_bit(self) -> bool:
        """Read a single bit."""
        return bool(self._take(1)[0])

    def read_uint(self, n_bits: int) -> int:
        """Read an unsigned integer of n_bits."""
        return bits_to_uint(self._take(n_bits))

    def preload_uint(self, n_bits: int) -> int:
        """Read an unsigned integer without moving the cursor."""
        self._require(n_bits)
        return bits_to_uint(self._bits[self._cursor : self._cursor + n_bits])

    def read_int(self, n_bits: int) -> int:
        """Read a two's complement signed integer of n_bits."""
        bits = self._take(n_bits)
        if n_bits == 0:
            return 0
        return ba2int(bits, signed=True)

    def read_bits(self, n_bits: int) -> frozenbitarray:
        """Read n_bits raw bits."""
        return frozenbitarray(self._take(n_bits))

    def read_bytes(self, n: int) -> bytes:
        """Read n whole bytes."""
        return self._take(n * 8).tobytes()

    def skip(self, n_bits: int) -> None:
        """Advance the cursor by n_bits."""
        self._take(n_bits)

    def read_coins(self) -> int:
        """Read a VarUInteger 16 coin amount."""
        self._require(COINS_LENGTH_BITS)
        n_bytes = self.preload_uint(COINS_LENGTH_BITS)
        self._require(COINS_LENGTH_BITS + n_bytes * 8)
        self._cursor += COINS_LENGTH_BITS
        return self.read_uint(n_bytes * 8)

    def read_address(self) -> Optional[Address]:
        """
        Read an internal address; addr_none gives None.

        Raises:
            InvalidAddressError: For external, variable-length or anycast
                address forms
        """
        self._require(2)
        tag = self.preload_uint(2)
        if tag == 0b00:
            self._cursor += 2
            return None
        if tag != 0b10:
            raise InvalidAddressError(f"unsupported address tag {tag:02b}", details={"tag": tag})
        self._require(ADDRESS_STD_BITS)
        if self._bits[self._cursor + 2]:
            raise InvalidAddressError("anycast addresses are not supported")
        self._cursor += 3
        workchain = self.read_int(8)
        return Address(workchain, self.read_bytes(32))
