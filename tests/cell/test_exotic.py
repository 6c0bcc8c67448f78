"""
Exotic cell tests.

Covers pruned branch hash transparency, merkle proof and update
construction, library references, and rejection of malformed payloads.
"""

import pytest

from toncell.cell import (
    Cell,
    CellBuilder,
    CellType,
    LibraryReferenceCell,
    MerkleProofCell,
    MerkleUpdateCell,
    PrunedBranchCell,
    begin_cell,
)
from toncell.runtime.errors import MalformedExoticCellError

from helpers import mk_cell, mk_pruned_tree

LEAF_HASH = "f34ee357295a9693c8bc03861f522747b7fb84d30fc4570ec85043ab98677448"
ROOT_HASH = "d17bb3dceeedf9ed4f5141dea678adfefbd1ebbdb071c32ceaa69df930b4cba3"
PRUNED_LEAF_HASH = "bbf5143a4c81b76e1b2168c93bfab2b28b77ac08de21a806f4cbbc5accde8a2b"
PRUNED_ROOT_HASH = "c39b732194c32924713f59a4563fca29ac085b687c1ecbc0f93de08aed7c78ee"
PROOF_HASH = "1aa4b879a8af67cda4fc1e6677a3cd16362910a2a87f39fcf4ffe9cf8c89eef5"


def exotic(*fields) -> CellBuilder:
    """Start a builder holding (value, n_bits) pairs and raw bytes, in order."""
    b = begin_cell()
    for field in fields:
        if isinstance(field, bytes):
            b.write_bytes(field)
        else:
            b.write_uint(*field)
    return b


class TestPrunedBranch:
    """Test pruned branch cells."""

    def test_layout_and_fields(self):
        """Test a level-1 pruned branch stores the level-0 hash and depth."""
        leaf = mk_cell(b"\x49")
        pruned = PrunedBranchCell.from_cell(leaf)

        assert pruned.kind is CellType.PRUNED_BRANCH
        assert pruned.is_exotic
        assert pruned.bit_length == 16 + 256 + 16
        assert pruned.level_mask == 1
        assert pruned.level == 1
        assert pruned.pruned_hashes == (leaf.hash,)
        assert pruned.pruned_depths == (0,)
        assert pruned.descriptors().hex() == "2848"

    def test_hashes(self):
        """Test the pruned branch answers level 0 from its payload."""
        pruned = PrunedBranchCell.from_cell(mk_cell(b"\x49"))

        assert pruned.get_hash(0).hex() == LEAF_HASH
        assert pruned.hash.hex() == PRUNED_LEAF_HASH
        assert len(pruned.level_hashes()) == 2

    def test_parent_hash_transparency(self):
        """Test pruning a subtree keeps the parent's level-0 hash."""
        full, pruned_root = mk_pruned_tree()

        assert full.hash.hex() == ROOT_HASH
        assert pruned_root.get_hash(0).hex() == ROOT_HASH
        assert pruned_root.get_depth(0) == full.depth
        assert pruned_root.level == 1
        assert pruned_root.hash.hex() == PRUNED_ROOT_HASH

    def test_pruning_at_level_two(self):
        """Test a second pruning level keeps both lower hashes."""
        _, pruned_root = mk_pruned_tree()
        twice = PrunedBranchCell.from_cell(pruned_root, level=2)

        assert twice.level_mask == 0b011
        assert twice.get_hash(0).hex() == ROOT_HASH
        assert twice.get_hash(1).hex() == PRUNED_ROOT_HASH
        assert twice.get_hash(2) not in (twice.get_hash(0), twice.get_hash(1))

    def test_build_dispatches_on_type_byte(self):
        """Test an exotic build with type byte 1 gives a pruned branch."""
        pruned = PrunedBranchCell.from_cell(mk_cell(b"\x49"))
        rebuilt = begin_cell().store_cell(pruned).build(exotic=True)

        assert isinstance(rebuilt, PrunedBranchCell)
        assert rebuilt == pruned

    @pytest.mark.parametrize("level", [0, 4])
    def test_invalid_pruning_level(self, level):
        """Test pruning levels outside 1..3."""
        with pytest.raises(ValueError):
            PrunedBranchCell.from_cell(Cell(), level=level)

    def test_pruning_below_cell_level(self):
        """Test a level-1 cell cannot be pruned at level 1."""
        _, pruned_root = mk_pruned_tree()
        with pytest.raises(ValueError):
            PrunedBranchCell.from_cell(pruned_root, level=1)


class TestMerkleProof:
    """Test merkle proof cells."""

    def test_proof_over_pruned_tree(self):
        """Test the proof hash and virtual root fields."""
        _, pruned_root = mk_pruned_tree()
        proof = MerkleProofCell.from_cell(pruned_root)

        assert proof.kind is CellType.MERKLE_PROOF
        assert proof.level == 0
        assert proof.virtual_hash.hex() == ROOT_HASH
        assert proof.virtual_depth == 1
        assert proof.hash.hex() == PROOF_HASH
        assert proof.depth == 2

    def test_proof_hash_mismatch(self):
        """Test a proof whose stored hash does not match its reference."""
        b = exotic((3, 8), bytes(32), (1, 16))
        b.store_reference(mk_cell(b"\x00", [mk_cell(b"\x49")]))
        with pytest.raises(MalformedExoticCellError):
            b.build(exotic=True)

    def test_proof_depth_mismatch(self):
        """Test a proof whose stored depth does not match its reference."""
        root = mk_cell(b"\x00", [mk_cell(b"\x49")])
        b = exotic((3, 8), root.hash, (7, 16))
        b.store_reference(root)
        with pytest.raises(MalformedExoticCellError):
            b.build(exotic=True)

    def test_proof_needs_one_reference(self):
        """Test a proof without a reference."""
        with pytest.raises(MalformedExoticCellError):
            exotic((3, 8), bytes(32), (0, 16)).build(exotic=True)


class TestMerkleUpdate:
    """Test merkle update cells."""

    def test_update_fields(self):
        """Test old/new hashes and depths and the level mask."""
        _, old = mk_pruned_tree()
        new = mk_cell(b"\x01", [PrunedBranchCell.from_cell(mk_cell(b"\x49"))])
        update = MerkleUpdateCell.from_cells(old, new)

        assert update.kind is CellType.MERKLE_UPDATE
        assert update.old_hash == old.get_hash(0)
        assert update.new_hash == new.get_hash(0)
        assert update.old_depth == 1
        assert update.new_depth == 1
        assert update.level_mask == 0
        assert update.references == (old, new)

    def test_update_needs_two_references(self):
        """Test an update with one reference."""
        leaf = Cell()
        b = exotic((4, 8), leaf.hash, leaf.hash, (0, 16), (0, 16))
        b.store_reference(leaf)
        with pytest.raises(MalformedExoticCellError):
            b.build(exotic=True)


class TestLibraryReference:
    """Test library reference cells."""

    def test_from_hash(self):
        """Test the stored library hash."""
        library_hash = bytes(range(32))
        cell = LibraryReferenceCell.from_hash(library_hash)

        assert cell.kind is CellType.LIBRARY_REFERENCE
        assert cell.library_hash == library_hash
        assert cell.level == 0
        assert cell.bit_length == 8 + 256

    def test_wrong_length(self):
        """Test a library reference without a full hash."""
        with pytest.raises(MalformedExoticCellError):
            exotic((2, 8), bytes(31)).build(exotic=True)

    def test_no_references(self):
        """Test a library reference with a reference."""
        b = exotic((2, 8), bytes(32))
        b.store_reference(Cell())
        with pytest.raises(MalformedExoticCellError):
            b.build(exotic=True)


class TestMalformedExotic:
    """Test rejection of invalid exotic payloads."""

    def test_missing_type_byte(self):
        """Test an exotic cell shorter than its type byte."""
        with pytest.raises(MalformedExoticCellError):
            Cell.create("1010", exotic=True)

    @pytest.mark.parametrize("type_byte", [0, 5, 255])
    def test_unknown_type(self, type_byte):
        """Test type bytes outside the known kinds."""
        with pytest.raises(MalformedExoticCellError):
            exotic((type_byte, 8), bytes(32)).build(exotic=True)

    def test_pruned_mask_zero(self):
        """Test a pruned branch must prune at least one level."""
        with pytest.raises(MalformedExoticCellError):
            exotic((1, 8), (0, 8)).build(exotic=True)

    def test_pruned_wrong_length(self):
        """Test a pruned branch with fewer hashes than its mask needs."""
        with pytest.raises(MalformedExoticCellError):
            exotic((1, 8), (3, 8), bytes(32), (0, 16)).build(exotic=True)

    def test_pruned_with_reference(self):
        """Test a pruned branch cannot carry references."""
        b = exotic((1, 8), (1, 8), bytes(32), (0, 16))
        b.store_reference(Cell())
        with pytest.raises(MalformedExoticCellError):
            b.build(exotic=True)

    def test_non_exotic_build_ignores_type_byte(self):
        """Test the same bits build an ordinary cell without the flag."""
        cell = exotic((1, 8), (1, 8), bytes(32), (0, 16)).build()
        assert cell.kind is CellType.ORDINARY
