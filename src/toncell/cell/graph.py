"""
Cell graphs.

A cell graph is the set of distinct cells reachable from one or more
roots. Cells are shared, never copied: a cell with several parents is one
node, and so are two separately built cells with the same content hash.
"""

import logging
from typing import Dict, Iterable, List, Sequence, Tuple, Union

from ..runtime.errors import CyclicGraphError, IndexOutOfRangeError
from .cell import Cell

logger = logging.getLogger(__name__)

_VISITING = 1
_DONE = 2


def _children(cell: Cell) -> Tuple[Cell, ...]:
    if cell.is_absent:
        return ()
    return cell.references


class CellGraph:
    """
    Distinct cells reachable from roots, in an order where every cell comes
    before all of its references.

    The order is the reverse post-order of a depth-first walk that visits
    references last-to-first, which keeps siblings in reference order.

    Raises:
        CyclicGraphError: If a cell is reachable from itself
    """

    def __init__(self, roots: Union[Cell, Iterable[Cell]]):
        if isinstance(roots, Cell):
            roots = [roots]
        self._roots: Tuple[Cell, ...] = tuple(roots)
        if not self._roots:
            raise ValueError("cell graph needs at least one root")
        self._cells: List[Cell] = []
        self._index: Dict[bytes, int] = {}
        self._refs: List[Tuple[int, ...]] = []
        self._build()

    def _build(self) -> None:
        state: Dict[int, int] = {}
        postorder: List[Cell] = []
        seen = set()

        for root in reversed(self._roots):
            if state.get(id(root)) == _DONE:
                continue
            state[id(root)] = _VISITING
            stack = [(root, iter(reversed(_children(root))))]
            while stack:
                cell, pending = stack[-1]
                child = next(pending, None)
                if child is None:
                    stack.pop()
                    state[id(cell)] = _DONE
                    digest = cell.hash
                    if digest not in seen:
                        seen.add(digest)
                        postorder.append(cell)
                    continue
                child_state = state.get(id(child))
                if child_state == _VISITING:
                    raise CyclicGraphError(
                        "cell graph contains a reference cycle",
                        details={"depth": len(stack)},
                    )
                if child_state == _DONE:
                    continue
                state[id(child)] = _VISITING
                stack.append((child, iter(reversed(_children(child)))))

        postorder.reverse()
        self._cells = postorder
        self._index = {cell.hash: i for i, cell in enumerate(postorder)}
        self._refs = [tuple(self._index[ref.hash] for ref in _children(cell)) for cell in postorder]
        logger.debug("Built cell graph: %d roots, %d distinct cells", len(self._roots), len(postorder))

    def __len__(self) -> int:
        return len(self._cells)

    def __iter__(self):
        return iter(self._cells)

    def __contains__(self, cell: Cell) -> bool:
        return isinstance(cell, Cell) and cell.hash in self._index

    @property
    def roots(self) -> Tuple[Cell, ...]:
        return self._roots

    @property
    def cells(self) -> List[Cell]:
        return list(self._cells)

    @property
    def root_indices(self) -> List[int]:
        return [self._index[root.hash] for root in self._roots]

    def index_of(self, cell: Cell) -> int:
        """
        Position of cell in the graph order.

        Raises:
            KeyError: If no cell with that hash is in the graph
        """
        return self._index[cell.hash]

    def references_of(self, i: int) -> Tuple[int, ...]:
        """Indices of the references of the i-th cell."""
        return self._refs[i]

    def parent_counts(self) -> List[int]:
        """Number of references pointing at each cell."""
        counts = [0] * len(self._cells)
        for refs in self._refs:
            for j in refs:
                counts[j] += 1
        return counts


def resolve_index_table(ref_table: Sequence[Sequence[int]]) -> List[int]:
    """
    Validate an index table where entry i lists the reference indices of
    cell i, and return an order in which every cell follows its references.

    Raises:
        IndexOutOfRangeError: If a reference index is not a valid cell index
        CyclicGraphError: If a cell is reachable from itself
    """
    n = len(ref_table)
    for i, refs in enumerate(ref_table):
        for j in refs:
            if not 0 <= j < n:
                raise IndexOutOfRangeError(
                    f"cell {i} references cell {j}, but there are only {n} cells",
                    details={"cell": i, "reference": j, "cells": n},
                )

    state = [0] * n
    order: List[int] = []
    for start in range(n):
        if state[start]:
            continue
        state[start] = _VISITING
        stack = [(start, iter(ref_table[start]))]
        while stack:
            i, pending = stack[-1]
            j = next(pending, None)
            if j is None:
                stack.pop()
                state[i] = _DONE
                order.append(i)
                continue
            if state[j] == _VISITING:
                raise CyclicGraphError(
                    f"cell {i} references cell {j}, which is one of its ancestors",
                    details={"cell": i, "reference": j},
                )
            if state[j] == _DONE:
                continue
            state[j] = _VISITING
            stack.append((j, iter(ref_table[j])))
    return order
