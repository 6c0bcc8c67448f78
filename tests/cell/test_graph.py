"""
Cell graph tests.

Covers ordering, sharing, multiple roots and cycle detection over both
cell graphs and integer index tables.
"""

import pytest

from toncell.cell import Cell, CellGraph, resolve_index_table
from toncell.runtime.errors import CyclicGraphError, IndexOutOfRangeError

from helpers import mk_cell, mk_shared_tree


def three_cells():
    leaf = Cell(bytes.fromhex("0aaaaa"))
    middle = Cell("1111111", [leaf])
    root = Cell("1", [leaf, middle])
    return root, middle, leaf


class TestCellGraphOrder:
    """Test cell numbering."""

    def test_parents_before_children(self):
        """Test the order and reference indices of a three-cell graph."""
        root, middle, leaf = three_cells()
        graph = CellGraph(root)

        assert graph.cells == [root, middle, leaf]
        assert graph.references_of(0) == (2, 1)
        assert graph.references_of(1) == (2,)
        assert graph.references_of(2) == ()
        assert graph.root_indices == [0]

    def test_siblings_keep_reference_order(self):
        """Test independent children are numbered left to right."""
        a, b, c = mk_cell(b"\x01"), mk_cell(b"\x02"), mk_cell(b"\x03")
        graph = CellGraph(mk_cell(b"", [a, b, c]))

        assert [graph.index_of(x) for x in (a, b, c)] == [1, 2, 3]

    def test_every_reference_points_forward(self):
        """Test reference indices are always greater than the parent's."""
        leaf = mk_cell(b"\x01")
        mid = mk_cell(b"\x02", [leaf])
        root = mk_cell(b"\x03", [leaf, mid, mk_cell(b"\x04", [mid, leaf])])
        graph = CellGraph(root)

        for i in range(len(graph)):
            assert all(j > i for j in graph.references_of(i))

    def test_parent_counts(self):
        """Test incoming reference counts."""
        root, _, _ = three_cells()
        assert CellGraph(root).parent_counts() == [0, 1, 2]


class TestCellGraphSharing:
    """Test deduplication of shared cells."""

    def test_shared_cell_listed_once(self):
        """Test a cell referenced twice is one node."""
        graph = CellGraph(mk_shared_tree())

        assert len(graph) == 2
        assert graph.references_of(0) == (1, 1)

    def test_equal_cells_collapse(self):
        """Test separately built cells with equal content are one node."""
        root = mk_cell(b"", [mk_cell(b"\x49"), mk_cell(b"\x49")])
        assert len(CellGraph(root)) == 2

    def test_contains(self):
        """Test membership is by content."""
        graph = CellGraph(mk_shared_tree())

        assert mk_cell(b"\x49") in graph
        assert mk_cell(b"\x50") not in graph
        assert "cell" not in graph


class TestCellGraphRoots:
    """Test graphs with several roots."""

    def test_root_that_is_also_a_child(self):
        """Test a root reachable from another root."""
        child = mk_cell(b"\x49")
        parent = mk_cell(b"\x00", [child])
        graph = CellGraph([parent, child])

        assert len(graph) == 2
        assert graph.root_indices == [0, 1]

    def test_independent_roots(self):
        """Test unrelated roots are numbered in root order."""
        a, b = mk_cell(b"\x01"), mk_cell(b"\x02")
        graph = CellGraph([a, b])

        assert graph.root_indices == [0, 1]
        assert graph.roots == (a, b)

    def test_no_roots(self):
        """Test an empty root list is rejected."""
        with pytest.raises(ValueError):
            CellGraph([])


class TestCellGraphCycles:
    """Test cycle rejection."""

    def test_cycle_rejected(self):
        """Test a two-cell cycle."""
        a = Cell("1")
        b = Cell("0", [a])
        a._refs = (b,)

        with pytest.raises(CyclicGraphError):
            CellGraph(a)

    def test_cycle_below_root(self):
        """Test a cycle that does not include the root."""
        a = Cell("1")
        b = Cell("0", [a])
        a._refs = (b,)

        with pytest.raises(CyclicGraphError):
            CellGraph(Cell("", [b]))


class TestResolveIndexTable:
    """Test validation of integer reference tables."""

    def test_build_order(self):
        """Test children come before their parents."""
        order = resolve_index_table([[1, 2], [2], []])

        assert order == [2, 1, 0]

    @pytest.mark.parametrize("table", [[[1]], [[0, 5], []], [[-1]]])
    def test_out_of_range(self, table):
        """Test dangling references."""
        with pytest.raises(IndexOutOfRangeError):
            resolve_index_table(table)

    @pytest.mark.parametrize("table", [[[0]], [[1], [0]], [[1], [2], [1]]])
    def test_cycles(self, table):
        """Test self references and longer cycles."""
        with pytest.raises(CyclicGraphError):
            resolve_index_table(table)

    def test_diamond_is_not_a_cycle(self):
        """Test two paths to one cell are accepted."""
        order = resolve_index_table([[1, 2], [3], [3], []])

        assert order.index(3) < order.index(1)
        assert order.index(3) < order.index(2)
        assert order[-1] == 0
