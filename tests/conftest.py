"""
Test bootstrap:
- Make the helpers package importable from every test directory
- Provide shared cell fixtures
"""
import pathlib
import sys

import pytest

TESTS_DIR = pathlib.Path(__file__).parent

if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))


@pytest.fixture
def empty_cell():
    """Cell with no bits and no references."""
    from toncell.cell import Cell
    return Cell()


@pytest.fixture
def two_cell_root():
    """Root 0x00 with a single reference to a 0x49 cell."""
    from helpers import mk_cell
    return mk_cell(b"\x00", [mk_cell(b"\x49")])


@pytest.fixture
def three_cell_boc_hex():
    """
    CRC-less bag of cells with three cells: a root holding one 1 bit with
    references to the other two, a cell of seven 1 bits that also refers
    to the last one, and a 24-bit leaf.
    """
    return "b5ee9c7201010301000e000201c002010101ff0200060aaaaa"
