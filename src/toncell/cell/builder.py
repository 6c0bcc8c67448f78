"""
Cell builder.

A CellBuilder is a 1023-bit BitBuffer that also collects up to four
references and finalizes into an immutable Cell.
"""

from typing import Optional

from ..codec.bits import MAX_CELL_BITS, BitBuffer
from ..runtime.errors import CellOverflowError
from .cell import MAX_REFS, Cell


class CellBuilder(BitBuffer):
    """
    Accumulates bits and references for a new cell.

    Exceeding 1023 bits or 4 references raises CellOverflowError at the
    write that would overflow; nothing is appended in that case.
    """

    def __init__(self):
        super().__init__(capacity=MAX_CELL_BITS)
        self._refs = []

    def __repr__(self) -> str:
        return f"CellBuilder(bits={self.length}, refs={len(self._refs)})"

    def _overflow(self, message: str, **details) -> None:
        raise CellOverflowError(message, details=details)

    @property
    def refs_count(self) -> int:
        return len(self._refs)

    @property
    def free_refs(self) -> int:
        return MAX_REFS - len(self._refs)

    def _ensure_refs(self, n: int) -> None:
        if len(self._refs) + n > MAX_REFS:
            raise CellOverflowError(
                f"cannot add {n} references: {len(self._refs)} of {MAX_REFS} used",
                details={"refs": len(self._refs), "requested": n},
            )

    def store_reference(self, cell: Cell) -> "CellBuilder":
        """Append a child reference."""
        if not isinstance(cell, Cell):
            raise TypeError(f"reference must be a Cell, got {type(cell).__name__}")
        self._ensure_refs(1)
        self._refs.append(cell)
        return self

    def store_maybe_reference(self, cell: Optional[Cell]) -> "CellBuilder":
        """Append a presence bit, then the reference when cell is not None."""
        if cell is None:
            self.write_bit(0)
            return self
        if not isinstance(cell, Cell):
            raise TypeError(f"reference must be a Cell, got {type(cell).__name__}")
        self._ensure_refs(1)
        self._ensure_capacity(1)
        self.write_bit(1)
        return self.store_reference(cell)

    def store_cell(self, cell: Cell) -> "CellBuilder":
        """Append all bits and references of cell."""
        self._ensure_refs(len(cell.references))
        self._ensure_capacity(cell.bit_length)
        self.write_bits(cell.bits)
        self._refs.extend(cell.references)
        return self

    def build(self, exotic: bool = False) -> Cell:
        """
        Finalize into an immutable cell.

        Args:
            exotic: Treat the first byte as an exotic cell type

        Raises:
            MalformedExoticCellError: If exotic and the payload is invalid
        """
        return Cell.create(self.to_bits(), tuple(self._refs), exotic=exotic)


def begin_cell() -> CellBuilder:
    return CellBuilder()
