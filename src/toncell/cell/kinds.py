"""
Cell kinds and level masks.

A level mask is a 3-bit value; bit ``i`` set means the cell's hash at
level ``i + 1`` differs from the one below it. The cell's level is the
highest set bit, so levels run 0..3.
"""

from enum import IntEnum
from typing import List

MAX_LEVEL = 3


class CellType(IntEnum):
    """Cell kinds. Exotic kinds use their on-wire type byte as the value."""

    ORDINARY = -1
    PRUNED_BRANCH = 1
    LIBRARY_REFERENCE = 2
    MERKLE_PROOF = 3
    MERKLE_UPDATE = 4

    @property
    def is_exotic(self) -> bool:
        return self is not CellType.ORDINARY

    @property
    def is_merkle(self) -> bool:
        return self in (CellType.MERKLE_PROOF, CellType.MERKLE_UPDATE)


class LevelMask:
    """Immutable wrapper around a 3-bit level mask."""

    __slots__ = ("_m",)

    def __init__(self, mask: int = 0):
        if not 0 <= mask <= 7:
            raise ValueError(f"level mask must be in 0..7, got {mask}")
        self._m = mask

    def __eq__(self, other) -> bool:
        if isinstance(other, LevelMask):
            return self._m == other._m
        if isinstance(other, int):
            return self._m == other
        return False

    def __hash__(self) -> int:
        return hash(self._m)

    def __int__(self) -> int:
        return self._m

    def __repr__(self) -> str:
        return f"LevelMask({self._m:03b})"

    @property
    def mask(self) -> int:
        return self._m

    @property
    def level(self) -> int:
        return self._m.bit_length()

    @property
    def hash_index(self) -> int:
        """Number of hashes below the top one, i.e. the popcount."""
        return bin(self._m).count("1")

    @property
    def hash_count(self) -> int:
        return self.hash_index + 1

    def apply(self, level: int) -> "LevelMask":
        """Mask as seen from level: bits at and above it are cleared."""
        return LevelMask(self._m & ((1 << level) - 1))

    def is_significant(self, level: int) -> bool:
        return level == 0 or (self._m >> (level - 1)) & 1 == 1

    def significant_levels(self) -> List[int]:
        """Levels that carry a distinct hash, lowest first."""
        return [li for li in range(self.level + 1) if self.is_significant(li)]

    def shift_down(self) -> "LevelMask":
        """Mask of a merkle cell built over children with this mask."""
        return LevelMask(self._m >> 1)

    def __or__(self, other: "LevelMask") -> "LevelMask":
        return LevelMask(self._m | int(other))
