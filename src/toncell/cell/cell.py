"""
Cells: immutable nodes with at most 1023 bits of payload and at most four
ordered references.

``Cell`` is the ordinary kind. Exotic kinds are subclasses, each exposing
only the fields valid for it:

- ``PrunedBranchCell``: hashes and depths of a subtree cut out of the cell
- ``LibraryReferenceCell``: hash of a library cell
- ``MerkleProofCell``: a proof over one subtree
- ``MerkleUpdateCell``: a proof of transition between two subtrees

``AbsentCell`` stands in for a cell a bag of cells mentions only by hash.

Cell equality is content equality: two cells are equal when their
representation hashes are.
"""

from __future__ import annotations
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Type

from bitarray import bitarray, frozenbitarray
from bitarray.util import ba2hex

from ..codec.bits import MAX_CELL_BITS, BitBuffer, BitsLike, bits_to_uint, to_bitarray
from ..runtime.errors import AbsentCellError, CellOverflowError, MalformedExoticCellError
from .hasher import DEPTH_BYTES, ensure_hashes
from .kinds import MAX_LEVEL, CellType, LevelMask
from .slice import CellSlice

MAX_REFS = 4
HASH_BYTES = 32
HASH_BITS = HASH_BYTES * 8
DEPTH_BITS = DEPTH_BYTES * 8
TYPE_BITS = 8


def bits_to_hex(bits: bitarray) -> str:
    """
    Hex form of a bit string; a length that is not a multiple of four is
    completed with a ``1`` and zeros and marked with a trailing ``_``.
    """
    rem = len(bits) % 4
    if not rem:
        return ba2hex(bits) if len(bits) else ""
    padded = bitarray(bits, endian="big")
    padded.append(1)
    padded.extend([0] * (3 - rem))
    return ba2hex(padded) + "_"


class Cell:
    """
    Ordinary cell.

    Args:
        bits: Payload, at most 1023 bits
        references: Child cells, at most 4

    Raises:
        CellOverflowError: On too many bits or references
    """

    kind = CellType.ORDINARY
    is_absent = False

    def __init__(self, bits: Optional[BitsLike] = None, references: Iterable["Cell"] = ()):
        payload = frozenbitarray(to_bitarray(bits) if bits is not None else bitarray(endian="big"))
        refs = tuple(references)
        if len(payload) > MAX_CELL_BITS:
            raise CellOverflowError(
                f"cell payload of {len(payload)} bits exceeds {MAX_CELL_BITS}",
                details={"bits": len(payload)},
            )
        if len(refs) > MAX_REFS:
            raise CellOverflowError(
                f"cell has {len(refs)} references, at most {MAX_REFS} allowed",
                details={"refs": len(refs)},
            )
        for ref in refs:
            if not isinstance(ref, Cell):
                raise TypeError(f"cell reference must be a Cell, got {type(ref).__name__}")
        self._bits = payload
        self._refs = refs
        self._hashes: Optional[List[bytes]] = None
        self._depths: Optional[List[int]] = None
        self._validate()
        self._level_mask = self._compute_level_mask()

    @staticmethod
    def create(bits: Optional[BitsLike] = None, references: Iterable["Cell"] = (),
               exotic: bool = False) -> "Cell":
        """
        Build a cell of the kind its payload declares.

        Exotic payloads start with a type byte that selects the variant.

        Raises:
            CellOverflowError: On too many bits or references
            MalformedExoticCellError: On an unknown type byte or a payload
                that does not match its type
        """
        if not exotic:
            return Cell(bits, references)
        payload = to_bitarray(bits) if bits is not None else bitarray(endian="big")
        if len(payload) < TYPE_BITS:
            raise MalformedExoticCellError(
                f"exotic cell needs a type byte, got {len(payload)} bits",
                details={"bits": len(payload)},
            )
        type_byte = bits_to_uint(payload[:TYPE_BITS])
        variant = _EXOTIC_VARIANTS.get(type_byte)
        if variant is None:
            raise MalformedExoticCellError(f"unknown exotic cell type {type_byte}",
                                           details={"type": type_byte})
        return variant(payload, references)

    # =========================================================================
    # Shape
    # =========================================================================

    def _validate(self) -> None:
        """Check kind-specific payload shape."""

    def _compute_level_mask(self) -> LevelMask:
        mask = LevelMask(0)
        for ref in self._refs:
            mask = mask | ref._level_mask
        return mask

    @property
    def bits(self) -> frozenbitarray:
        return self._bits

    @property
    def bit_length(self) -> int:
        return len(self._bits)

    @property
    def references(self) -> Tuple["Cell", ...]:
        return self._refs

    @property
    def refs_count(self) -> int:
        return len(self._refs)

    @property
    def is_exotic(self) -> bool:
        return self.kind.is_exotic

    @property
    def level_mask(self) -> int:
        return self._level_mask.mask

    @property
    def level(self) -> int:
        return self._level_mask.level

    @property
    def data(self) -> bytes:
        """Payload bytes, zero-padded to a whole byte."""
        return self._bits.tobytes()

    def reference(self, i: int) -> "Cell":
        """
        Return the i-th child.

        Raises:
            IndexError: If i is out of range
        """
        if not 0 <= i < len(self._refs):
            raise IndexError(f"reference index {i} out of range for cell with {len(self._refs)} references")
        return self._refs[i]

    def parse_reader(self) -> BitBuffer:
        """Read cursor over this cell's own bits."""
        return BitBuffer(self._bits, capacity=len(self._bits))

    def begin_parse(self) -> CellSlice:
        """Read cursor over this cell's bits and references."""
        return CellSlice(self._bits, self._refs)

    # =========================================================================
    # Serialization pieces
    # =========================================================================

    def descriptors(self, level_mask: Optional[LevelMask] = None) -> bytes:
        """
        The two descriptor bytes.

        d1 = references + 8 * exotic + 32 * level mask
        d2 = floor(bits / 8) + ceil(bits / 8)
        """
        mask = self._level_mask if level_mask is None else level_mask
        d1 = len(self._refs) + (8 if self.is_exotic else 0) + 32 * mask.mask
        n = len(self._bits)
        d2 = n // 8 + (n + 7) // 8
        return bytes((d1, d2))

    def padded_payload(self) -> bytes:
        """
        Payload bytes; a length that is not a multiple of eight is completed
        with a single ``1`` bit and then zeros.
        """
        if len(self._bits) % 8 == 0:
            return self._bits.tobytes()
        padded = bitarray(self._bits, endian="big")
        padded.append(1)
        return padded.tobytes()

    # =========================================================================
    # Hashes
    # =========================================================================

    def _hash_slot(self, level: int) -> int:
        ensure_hashes(self)
        return self._level_mask.apply(level).hash_index

    def get_hash(self, level: int = MAX_LEVEL) -> bytes:
        """Hash as seen from level; the default is the representation hash."""
        slot = self._hash_slot(level)
        return self._hashes[slot]

    def get_depth(self, level: int = MAX_LEVEL) -> int:
        """Depth as seen from level."""
        slot = self._hash_slot(level)
        return self._depths[slot]

    @property
    def hash(self) -> bytes:
        """Representation hash (32 bytes)."""
        return self.get_hash(MAX_LEVEL)

    @property
    def depth(self) -> int:
        return self.get_depth(MAX_LEVEL)

    def hash_hex(self) -> str:
        return self.hash.hex()

    def level_hashes(self) -> List[Tuple[bytes, int]]:
        """(hash, depth) for every significant level, lowest first."""
        return [(self.get_hash(li), self.get_depth(li))
                for li in self._level_mask.significant_levels()]

    def __eq__(self, other: Any) -> bool:
        if self is other:
            return True
        if isinstance(other, Cell):
            return self.hash == other.hash
        return False

    def __hash__(self) -> int:
        return hash(self.hash)

    def __repr__(self) -> str:
        name = type(self).__name__
        return f"{name}(x{{{bits_to_hex(self._bits)}}}, refs={len(self._refs)})"


class PrunedBranchCell(Cell):
    """
    Pruned branch: type byte 1, level mask byte, then one hash and one depth
    for each set bit of the mask. It has no references; the hashes stand in
    for the subtree that was cut out.
    """

    kind = CellType.PRUNED_BRANCH

    def _validate(self) -> None:
        if self._refs:
            raise MalformedExoticCellError("pruned branch cannot have references",
                                           details={"refs": len(self._refs)})
        if len(self._bits) < 2 * TYPE_BITS:
            raise MalformedExoticCellError("pruned branch is missing its level mask",
                                           details={"bits": len(self._bits)})
        mask = bits_to_uint(self._bits[TYPE_BITS:2 * TYPE_BITS])
        if not 1 <= mask <= 7:
            raise MalformedExoticCellError(f"pruned branch level mask {mask} out of range 1..7",
                                           details={"mask": mask})
        stored = LevelMask(mask).hash_index
        expected = 2 * TYPE_BITS + stored * (HASH_BITS + DEPTH_BITS)
        if len(self._bits) != expected:
            raise MalformedExoticCellError(
                f"pruned branch with mask {mask} must have {expected} bits, got {len(self._bits)}",
                details={"mask": mask, "bits": len(self._bits)},
            )
        reader = self.parse_reader()
        reader.skip(2 * TYPE_BITS)
        self._pruned_mask = LevelMask(mask)
        self.pruned_hashes = tuple(reader.read_bytes(HASH_BYTES) for _ in range(stored))
        self.pruned_depths = tuple(reader.read_uint(DEPTH_BITS) for _ in range(stored))

    def _compute_level_mask(self) -> LevelMask:
        return self._pruned_mask

    def _stored_slot(self, level: int) -> Optional[int]:
        slot = self._level_mask.apply(level).hash_index
        if slot != self._level_mask.hash_index:
            return slot
        return None

    def get_hash(self, level: int = MAX_LEVEL) -> bytes:
        slot = self._stored_slot(level)
        if slot is not None:
            return self.pruned_hashes[slot]
        ensure_hashes(self)
        return self._hashes[0]

    def get_depth(self, level: int = MAX_LEVEL) -> int:
        slot = self._stored_slot(level)
        if slot is not None:
            return self.pruned_depths[slot]
        ensure_hashes(self)
        return self._depths[0]

    @classmethod
    def from_cell(cls, cell: Cell, level: int = 1) -> "PrunedBranchCell":
        """
        Prune cell at level: the result carries cell's hashes and depths for
        every level below and hashes to the same value there.
        """
        if not 1 <= level <= MAX_LEVEL:
            raise ValueError(f"pruning level must be in 1..{MAX_LEVEL}, got {level}")
        if cell.level >= level:
            raise ValueError(f"cannot prune a level {cell.level} cell at level {level}")
        mask = LevelMask(cell.level_mask | (1 << (level - 1)))
        buf = BitBuffer()
        buf.write_uint(CellType.PRUNED_BRANCH.value, TYPE_BITS)
        buf.write_uint(mask.mask, TYPE_BITS)
        below = [li for li in mask.significant_levels() if li < mask.level]
        for li in below:
            buf.write_bytes(cell.get_hash(li))
        for li in below:
            buf.write_uint(cell.get_depth(li), DEPTH_BITS)
        return cls(buf.to_bits())


class LibraryReferenceCell(Cell):
    """Library reference: type byte 2 followed by the library cell's hash."""

    kind = CellType.LIBRARY_REFERENCE

    def _validate(self) -> None:
        expected = TYPE_BITS + HASH_BITS
        if len(self._bits) != expected:
            raise MalformedExoticCellError(
                f"library reference must have {expected} bits, got {len(self._bits)}",
                details={"bits": len(self._bits)},
            )
        if self._refs:
            raise MalformedExoticCellError("library reference cannot have references",
                                           details={"refs": len(self._refs)})
        self.library_hash = self._bits[TYPE_BITS:].tobytes()

    def _compute_level_mask(self) -> LevelMask:
        return LevelMask(0)

    @classmethod
    def from_hash(cls, library_hash: bytes) -> "LibraryReferenceCell":
        if len(library_hash) != HASH_BYTES:
            raise ValueError(f"library hash must be {HASH_BYTES} bytes")
        buf = BitBuffer()
        buf.write_uint(CellType.LIBRARY_REFERENCE.value, TYPE_BITS)
        buf.write_bytes(library_hash)
        return cls(buf.to_bits())


def _check_merkle_child(kind: str, child: Cell, stored_hash: bytes, stored_depth: int) -> None:
    if child.get_hash(0) != stored_hash:
        raise MalformedExoticCellError(
            f"{kind} hash does not match its reference",
            details={"stored": stored_hash.hex(), "actual": child.get_hash(0).hex()},
        )
    if child.get_depth(0) != stored_depth:
        raise MalformedExoticCellError(
            f"{kind} depth does not match its reference",
            details={"stored": stored_depth, "actual": child.get_depth(0)},
        )


class MerkleProofCell(Cell):
    """
    Merkle proof: type byte 3, the level-0 hash and depth of the single
    reference (the virtual root).
    """

    kind = CellType.MERKLE_PROOF

    def _validate(self) -> None:
        expected = TYPE_BITS + HASH_BITS + DEPTH_BITS
        if len(self._bits) != expected:
            raise MalformedExoticCellError(
                f"merkle proof must have {expected} bits, got {len(self._bits)}",
                details={"bits": len(self._bits)},
            )
        if len(self._refs) != 1:
            raise MalformedExoticCellError("merkle proof must have exactly one reference",
                                           details={"refs": len(self._refs)})
        reader = self.parse_reader()
        reader.skip(TYPE_BITS)
        self.virtual_hash = reader.read_bytes(HASH_BYTES)
        self.virtual_depth = reader.read_uint(DEPTH_BITS)
        _check_merkle_child("merkle proof", self._refs[0], self.virtual_hash, self.virtual_depth)

    def _compute_level_mask(self) -> LevelMask:
        return self._refs[0]._level_mask.shift_down()

    @classmethod
    def from_cell(cls, root: Cell) -> "MerkleProofCell":
        """Wrap root (usually with pruned subtrees) into a proof."""
        buf = BitBuffer()
        buf.write_uint(CellType.MERKLE_PROOF.value, TYPE_BITS)
        buf.write_bytes(root.get_hash(0))
        buf.write_uint(root.get_depth(0), DEPTH_BITS)
        return cls(buf.to_bits(), (root,))


class MerkleUpdateCell(Cell):
    """
    Merkle update: type byte 4, old and new level-0 hashes, old and new
    depths, and the two subtrees as references.
    """

    kind = CellType.MERKLE_UPDATE

    def _validate(self) -> None:
        expected = TYPE_BITS + 2 * (HASH_BITS + DEPTH_BITS)
        if len(self._bits) != expected:
            raise MalformedExoticCellError(
                f"merkle update must have {expected} bits, got {len(self._bits)}",
                details={"bits": len(self._bits)},
            )
        if len(self._refs) != 2:
            raise MalformedExoticCellError("merkle update must have exactly two references",
                                           details={"refs": len(self._refs)})
        reader = self.parse_reader()
        reader.skip(TYPE_BITS)
        self.old_hash = reader.read_bytes(HASH_BYTES)
        self.new_hash = reader.read_bytes(HASH_BYTES)
        self.old_depth = reader.read_uint(DEPTH_BITS)
        self.new_depth = reader.read_uint(DEPTH_BITS)
        _check_merkle_child("merkle update (old)", self._refs[0], self.old_hash, self.old_depth)
        _check_merkle_child("merkle update (new)", self._refs[1], self.new_hash, self.new_depth)

    def _compute_level_mask(self) -> LevelMask:
        return (self._refs[0]._level_mask | self._refs[1]._level_mask).shift_down()

    @classmethod
    def from_cells(cls, old: Cell, new: Cell) -> "MerkleUpdateCell":
        buf = BitBuffer()
        buf.write_uint(CellType.MERKLE_UPDATE.value, TYPE_BITS)
        buf.write_bytes(old.get_hash(0))
        buf.write_bytes(new.get_hash(0))
        buf.write_uint(old.get_depth(0), DEPTH_BITS)
        buf.write_uint(new.get_depth(0), DEPTH_BITS)
        return cls(buf.to_bits(), (old, new))


_EXOTIC_VARIANTS: Dict[int, Type[Cell]] = {
    CellType.PRUNED_BRANCH.value: PrunedBranchCell,
    CellType.LIBRARY_REFERENCE.value: LibraryReferenceCell,
    CellType.MERKLE_PROOF.value: MerkleProofCell,
    CellType.MERKLE_UPDATE.value: MerkleUpdateCell,
}


class AbsentCell(Cell):
    """
    Hash-only stand-in for a cell whose content a bag of cells omits.

    Parents can hash over it; its payload and references cannot be read.
    """

    is_absent = True

    def __init__(self, hashes: Sequence[bytes], depths: Sequence[int], level_mask: int = 0):
        mask = LevelMask(level_mask)
        if len(hashes) != mask.hash_count or len(depths) != mask.hash_count:
            raise ValueError(
                f"absent cell with mask {level_mask} needs {mask.hash_count} hashes and depths"
            )
        for h in hashes:
            if len(h) != HASH_BYTES:
                raise ValueError(f"absent cell hashes must be {HASH_BYTES} bytes")
        self._bits = frozenbitarray(endian="big")
        self._refs = ()
        self._level_mask = mask
        self._hashes = [bytes(h) for h in hashes]
        self._depths = list(depths)

    @classmethod
    def from_cell(cls, cell: Cell) -> "AbsentCell":
        """Keep only cell's hashes."""
        pairs = cell.level_hashes()
        return cls([h for h, _ in pairs], [d for _, d in pairs], cell.level_mask)

    def _absent(self, what: str) -> AbsentCellError:
        return AbsentCellError(f"cannot read {what} of an absent cell",
                               details={"hash": self.hash.hex()})

    @property
    def bits(self) -> frozenbitarray:
        raise self._absent("bits")

    @property
    def bit_length(self) -> int:
        raise self._absent("bit length")

    @property
    def references(self) -> Tuple[Cell, ...]:
        raise self._absent("references")

    @property
    def refs_count(self) -> int:
        raise self._absent("references")

    @property
    def data(self) -> bytes:
        raise self._absent("data")

    def reference(self, i: int) -> Cell:
        raise self._absent("references")

    def parse_reader(self) -> BitBuffer:
        raise self._absent("bits")

    def begin_parse(self) -> CellSlice:
        raise self._absent("bits")

    def padded_payload(self) -> bytes:
        raise self._absent("payload")

    def __repr__(self) -> str:
        return f"AbsentCell({self.hash.hex()})"
