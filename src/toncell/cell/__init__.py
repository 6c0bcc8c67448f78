"""
Cell Data Model

Key components:
- kinds.py: cell kinds and level masks
- cell.py: immutable ordinary, exotic and absent cells
- hasher.py: memoized per-level hash and depth computation
- builder.py / slice.py: building cells and reading them back
- graph.py: distinct-cell enumeration, ordering and cycle checks
"""

from .kinds import CellType, LevelMask
from .cell import (
    AbsentCell,
    Cell,
    LibraryReferenceCell,
    MerkleProofCell,
    MerkleUpdateCell,
    PrunedBranchCell,
)
from .builder import CellBuilder, begin_cell
from .slice import CellSlice
from .graph import CellGraph, resolve_index_table

__all__ = [
    "AbsentCell",
    "Cell",
    "CellBuilder",
    "CellGraph",
    "CellSlice",
    "CellType",
    "LevelMask",
    "LibraryReferenceCell",
    "MerkleProofCell",
    "MerkleUpdateCell",
    "PrunedBranchCell",
    "begin_cell",
    "resolve_index_table",
]
