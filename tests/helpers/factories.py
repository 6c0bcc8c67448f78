"""
Test factories for building cells consistently.

Provides small cell graphs with known hashes and BOC encodings, shared
between the cell, hasher and bag of cells tests.
"""

from __future__ import annotations
from typing import Sequence

from toncell.cell import Cell, PrunedBranchCell, begin_cell


def mk_cell(data: bytes = b"", refs: Sequence[Cell] = ()) -> Cell:
    """
    Create an ordinary cell holding whole bytes.

    Args:
        data: Payload bytes
        refs: Child cells

    Returns:
        Built cell
    """
    b = begin_cell()
    b.write_bytes(data)
    for ref in refs:
        b.store_reference(ref)
    return b.build()


def mk_chain(length: int) -> Cell:
    """
    Create a linear chain of cells, each holding its position as a byte.

    The root has depth length - 1.
    """
    cell = mk_cell(bytes([0]))
    for i in range(1, length):
        cell = mk_cell(bytes([i % 256]), [cell])
    return cell


def mk_shared_tree() -> Cell:
    """
    Create a root whose two references both point at one leaf.

    Serializes to two distinct cells.
    """
    leaf = mk_cell(b"\x49")
    return mk_cell(b"\x00", [leaf, leaf])


def mk_pruned_tree() -> tuple[Cell, Cell]:
    """
    Create the root 0x00 -> 0x49 tree and the same tree with its child
    pruned at level 1.

    Returns:
        Tuple of (full_root, pruned_root)
    """
    child = mk_cell(b"\x49")
    full = mk_cell(b"\x00", [child])
    pruned = mk_cell(b"\x00", [PrunedBranchCell.from_cell(child)])
    return full, pruned
