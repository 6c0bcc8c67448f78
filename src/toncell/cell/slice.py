"""Cell slice: a bit reader that can also take references off a cell."""

from typing import Optional, Sequence

from ..codec.bits import BitBuffer, BitsLike
from ..runtime.errors import UnderflowError


class CellSlice(BitBuffer):
    """Reads a cell's bits through the BitBuffer API and its references in order."""

    def __init__(self, bits: BitsLike, references: Sequence = ()):
        super().__init__(bits, capacity=len(bits))
        self._refs = tuple(references)
        self._ref_cursor = 0

    @property
    def remaining_refs(self) -> int:
        return len(self._refs) - self._ref_cursor

    def read_reference(self):
        """
        Take the next reference.

        Raises:
            UnderflowError: If no references remain
        """
        if self._ref_cursor >= len(self._refs):
            raise UnderflowError(
                f"no references left ({len(self._refs)} total)",
                details={"refs": len(self._refs)},
            )
        ref = self._refs[self._ref_cursor]
        self._ref_cursor += 1
        return ref

    def read_maybe_reference(self) -> Optional[object]:
        """Read a presence bit and, when set, the next reference."""
        if self.read_bit():
            return self.read_reference()
        return None
