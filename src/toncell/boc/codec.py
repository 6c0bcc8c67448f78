"""
Bag of Cells Codec

Serializes one or more root cells, with every cell reachable from them,
into the bag of cells envelope, and decodes such envelopes back into
shared cell graphs.

Envelope layout (big-endian unless noted)::

    magic           4 bytes   b5ee9c72; legacy 68ff65f3 / acc3a728
    flags           1 byte    has_idx:1 has_crc32c:1 has_cache_bits:1 flags:2 size:3
                              (legacy magics: this byte is size alone)
    off_bytes       1 byte
    cells           size bytes
    roots           size bytes
    absent          size bytes
    tot_cells_size  off_bytes bytes
    root_list       roots * size bytes   (not present in legacy envelopes)
    index           cells * off_bytes    (when has_idx)
    cell_data       tot_cells_size bytes
    crc32c          4 bytes, little-endian (when has_crc32c)

Cells are numbered so that every reference points to a later cell, and
are rebuilt from the last one to the first.
"""

import base64
import binascii
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from bitarray import bitarray

from ..cell.cell import HASH_BYTES, AbsentCell, Cell
from ..cell.graph import CellGraph, resolve_index_table
from ..cell.hasher import DEPTH_BYTES
from ..cell.kinds import LevelMask
from ..codec.hashes import crc32c_bytes
from ..codec.reader import BinaryReader
from ..codec.writer import BinaryWriter
from ..runtime.errors import (
    BocError,
    ChecksumMismatchError,
    IndexOutOfRangeError,
    UnderflowError,
    UnknownFormatError,
)
from .options import BocParseOptions, BocSerializeOptions

logger = logging.getLogger(__name__)

REACH_BOC_MAGIC = bytes.fromhex("b5ee9c72")
LEAN_BOC_MAGIC = bytes.fromhex("68ff65f3")
LEAN_BOC_MAGIC_CRC = bytes.fromhex("acc3a728")

MAX_REF_SIZE = 4
MAX_OFFSET_SIZE = 8
CRC_BYTES = 4

ABSENT_REFS_MARKER = 7
WITH_HASHES_FLAG = 16
EXOTIC_FLAG = 8


def _byte_width(value: int) -> int:
    """Smallest number of bytes (at least one) that holds value."""
    return max(1, (value.bit_length() + 7) // 8)


@dataclass
class _RawCell:
    """One decoded cell record before references are resolved."""
    bits: bitarray
    refs: List[int]
    exotic: bool
    level_mask: int
    absent: bool = False
    hashes: List[bytes] = field(default_factory=list)
    depths: List[int] = field(default_factory=list)


@dataclass
class _Header:
    has_index: bool
    has_crc32c: bool
    has_cache_bits: bool
    has_root_list: bool
    ref_size: int
    offset_size: int
    cells: int
    roots: int
    absent: int
    tot_cells_size: int


# =============================================================================
# Serialization
# =============================================================================

def _encode_cell(cell: Cell, refs: Sequence[int], ref_size: int, store_hashes: bool) -> bytes:
    w = BinaryWriter()
    mask = cell.level_mask
    if cell.is_absent:
        w.u8(ABSENT_REFS_MARKER | WITH_HASHES_FLAG | 32 * mask)
        w.u8(0)
        pairs = cell.level_hashes()
        for h, _ in pairs:
            w.bytes(h)
        for _, d in pairs:
            w.uint_be(d, DEPTH_BYTES)
        return w.to_bytes()

    d1, d2 = cell.descriptors()
    if store_hashes:
        d1 |= WITH_HASHES_FLAG
    w.u8(d1)
    w.u8(d2)
    if store_hashes:
        pairs = cell.level_hashes()
        for h, _ in pairs:
            w.bytes(h)
        for _, d in pairs:
            w.uint_be(d, DEPTH_BYTES)
    w.bytes(cell.padded_payload())
    for j in refs:
        w.uint_be(j, ref_size)
    return w.to_bytes()


def serialize_cells(roots: Sequence[Cell], options: Optional[BocSerializeOptions] = None) -> bytes:
    """
    Serialize roots and every cell reachable from them.

    Raises:
        CyclicGraphError: If the cells contain a reference cycle
    """
    options = options or BocSerializeOptions()
    graph = CellGraph(roots)
    n = len(graph)
    ref_size = _byte_width(n)

    records = [
        _encode_cell(cell, graph.references_of(i), ref_size, options.store_hashes)
        for i, cell in enumerate(graph)
    ]
    tot_cells_size = sum(len(r) for r in records)
    offset_limit = tot_cells_size * 2 + 1 if options.has_cache_bits else tot_cells_size
    offset_size = _byte_width(offset_limit)
    absent = sum(1 for cell in graph if cell.is_absent)

    logger.debug(
        "Serializing bag of cells: %d cells, %d roots, %d absent, %d data bytes, ref_size=%d, offset_size=%d",
        n, len(graph.roots), absent, tot_cells_size, ref_size, offset_size,
    )

    w = BinaryWriter()
    w.bytes(REACH_BOC_MAGIC)
    w.u8(options.flags_byte(ref_size))
    w.u8(offset_size)
    w.uint_be(n, ref_size)
    w.uint_be(len(graph.roots), ref_size)
    w.uint_be(absent, ref_size)
    w.uint_be(tot_cells_size, offset_size)
    for idx in graph.root_indices:
        w.uint_be(idx, ref_size)

    if options.has_index:
        parents = graph.parent_counts() if options.has_cache_bits else None
        end = 0
        for i, record in enumerate(records):
            end += len(record)
            if parents is not None:
                w.uint_be(end * 2 + (1 if parents[i] > 1 else 0), offset_size)
            else:
                w.uint_be(end, offset_size)

    for record in records:
        w.bytes(record)

    if options.has_crc32c:
        w.bytes(crc32c_bytes(w.to_bytes()))
    return w.to_bytes()


# =============================================================================
# Deserialization
# =============================================================================

def _read_header(data: bytes) -> Tuple[_Header, int]:
    magic = data[:4]
    if magic == REACH_BOC_MAGIC:
        flags = data[4]
        has_index = bool(flags & 0x80)
        has_crc32c = bool(flags & 0x40)
        has_cache_bits = bool(flags & 0x20)
        has_root_list = True
        ref_size = flags & 0x07
    elif magic in (LEAN_BOC_MAGIC, LEAN_BOC_MAGIC_CRC):
        has_index = True
        has_crc32c = magic == LEAN_BOC_MAGIC_CRC
        has_cache_bits = False
        has_root_list = False
        ref_size = data[4]
    else:
        raise UnknownFormatError(f"unknown bag of cells magic {magic.hex()}",
                                 details={"magic": magic.hex()})

    if has_crc32c:
        _verify_crc(data)

    r = BinaryReader(data)
    r.bytes(5)
    offset_size = r.u8()
    if not 1 <= ref_size <= MAX_REF_SIZE:
        raise UnknownFormatError(f"invalid reference size {ref_size}", details={"size": ref_size})
    if not 1 <= offset_size <= MAX_OFFSET_SIZE:
        raise UnknownFormatError(f"invalid offset size {offset_size}", details={"off_bytes": offset_size})
    header = _Header(
        has_index=has_index,
        has_crc32c=has_crc32c,
        has_cache_bits=has_cache_bits,
        has_root_list=has_root_list,
        ref_size=ref_size,
        offset_size=offset_size,
        cells=r.uint_be(ref_size),
        roots=r.uint_be(ref_size),
        absent=r.uint_be(ref_size),
        tot_cells_size=r.uint_be(offset_size),
    )
    return header, r.offset


def _verify_crc(data: bytes) -> None:
    if len(data) < 5 + CRC_BYTES:
        raise UnknownFormatError("bag of cells too short for its checksum", details={"length": len(data)})
    expected = crc32c_bytes(data[:-CRC_BYTES])
    actual = data[-CRC_BYTES:]
    if expected != actual:
        raise ChecksumMismatchError(
            "bag of cells CRC32C mismatch",
            details={"expected": expected.hex(), "actual": actual.hex()},
        )


def _check_header(header: _Header, header_len: int, data_len: int, options: BocParseOptions) -> None:
    if header.cells == 0:
        raise UnknownFormatError("bag of cells declares no cells")
    if header.roots == 0:
        raise UnknownFormatError("bag of cells declares no roots")
    if header.roots + header.absent > header.cells:
        raise UnknownFormatError(
            f"{header.roots} roots and {header.absent} absent cells exceed {header.cells} cells",
            details={"cells": header.cells, "roots": header.roots, "absent": header.absent},
        )
    if not header.has_root_list and header.roots != 1:
        raise UnknownFormatError(f"legacy bag of cells must have one root, got {header.roots}")
    if header.has_cache_bits and not header.has_index:
        raise UnknownFormatError("cache bits require an index")
    if options.max_cells is not None and header.cells > options.max_cells:
        raise UnknownFormatError(
            f"bag of cells declares {header.cells} cells, limit is {options.max_cells}",
            details={"cells": header.cells, "max_cells": options.max_cells},
        )
    # Every cell record takes at least two descriptor bytes
    if header.cells * 2 > header.tot_cells_size:
        raise UnknownFormatError(
            f"{header.cells} cells cannot fit in {header.tot_cells_size} bytes",
            details={"cells": header.cells, "tot_cells_size": header.tot_cells_size},
        )
    expected = (
        header_len
        + (header.roots * header.ref_size if header.has_root_list else 0)
        + (header.cells * header.offset_size if header.has_index else 0)
        + header.tot_cells_size
        + (CRC_BYTES if header.has_crc32c else 0)
    )
    if expected != data_len:
        raise UnknownFormatError(
            f"header describes {expected} bytes, buffer has {data_len}",
            details={"expected": expected, "actual": data_len},
        )


def _read_cell(r: BinaryReader, ref_size: int) -> _RawCell:
    d1 = r.u8()
    d2 = r.u8()
    refs_count = d1 & 7
    exotic = bool(d1 & EXOTIC_FLAG)
    with_hashes = bool(d1 & WITH_HASHES_FLAG)
    level_mask = d1 >> 5

    absent = False
    if refs_count > 4:
        if refs_count != ABSENT_REFS_MARKER or not with_hashes:
            raise UnknownFormatError(f"invalid cell descriptor 0x{d1:02x}", details={"d1": d1})
        absent = True
        refs_count = 0

    hashes: List[bytes] = []
    depths: List[int] = []
    if with_hashes:
        count = LevelMask(level_mask).hash_count
        hashes = [r.bytes(HASH_BYTES) for _ in range(count)]
        depths = [r.uint_be(DEPTH_BYTES) for _ in range(count)]

    if absent:
        return _RawCell(bitarray(endian="big"), [], exotic, level_mask, True, hashes, depths)

    payload = r.bytes((d2 + 1) // 2)
    bits = bitarray(endian="big")
    bits.frombytes(payload)
    if d2 % 2:
        last = payload[-1]
        if last == 0:
            raise UnknownFormatError("cell payload is missing its completion bit", details={"d2": d2})
        if last == 0x80:
            raise UnknownFormatError("cell payload has a whole padding byte", details={"d2": d2})
        trailing_zeros = (last & -last).bit_length() - 1
        del bits[len(bits) - trailing_zeros - 1:]

    refs = [r.uint_be(ref_size) for _ in range(refs_count)]
    return _RawCell(bits, refs, exotic, level_mask, False, hashes, depths)


def _read_cells(cell_data: bytes, header: _Header) -> Tuple[List[_RawCell], List[int]]:
    r = BinaryReader(cell_data)
    raw: List[_RawCell] = []
    ends: List[int] = []
    for i in range(header.cells):
        try:
            raw.append(_read_cell(r, header.ref_size))
        except UnderflowError as e:
            raise UnknownFormatError(f"cell {i} runs past the end of the cell data",
                                     details={"cell": i}, cause=e)
        ends.append(r.offset)
    if not r.eof:
        raise UnknownFormatError(
            f"{r.remaining} bytes of cell data left after {header.cells} cells",
            details={"remaining": r.remaining},
        )
    return raw, ends


def _build_cells(raw: List[_RawCell], options: BocParseOptions) -> List[Cell]:
    ref_table = [cell.refs for cell in raw]
    resolve_index_table(ref_table)
    for i, refs in enumerate(ref_table):
        for j in refs:
            if j <= i:
                raise IndexOutOfRangeError(
                    f"cell {i} references cell {j}, which does not come after it",
                    details={"cell": i, "reference": j},
                )

    built: List[Optional[Cell]] = [None] * len(raw)
    for i in range(len(raw) - 1, -1, -1):
        item = raw[i]
        if item.absent:
            cell = AbsentCell(item.hashes, item.depths, item.level_mask)
        else:
            cell = Cell.create(item.bits, [built[j] for j in item.refs], exotic=item.exotic)
            if cell.level_mask != item.level_mask:
                raise UnknownFormatError(
                    f"cell {i} declares level mask {item.level_mask}, content gives {cell.level_mask}",
                    details={"cell": i},
                )
            if item.hashes and options.verify_hashes:
                stored = list(zip(item.hashes, item.depths))
                if stored != cell.level_hashes():
                    raise ChecksumMismatchError(f"stored hashes of cell {i} do not match its content",
                                                details={"cell": i})
        built[i] = cell
    return built


def deserialize_cells(data: bytes, options: Optional[BocParseOptions] = None) -> List[Cell]:
    """
    Decode a bag of cells and return its roots.

    The CRC32C footer, when flagged, is checked right after the magic and
    flags byte, before any other field is trusted.

    Raises:
        UnknownFormatError: Bad magic or a header inconsistent with the data
        ChecksumMismatchError: CRC32C or stored hash mismatch
        IndexOutOfRangeError: Root or reference index out of range
        CyclicGraphError: References form a cycle
        MalformedExoticCellError: Invalid exotic cell payload
    """
    options = options or BocParseOptions()
    data = bytes(data)
    if options.max_boc_size is not None and len(data) > options.max_boc_size:
        raise UnknownFormatError(
            f"bag of cells of {len(data)} bytes exceeds limit of {options.max_boc_size}",
            details={"length": len(data), "max_boc_size": options.max_boc_size},
        )
    if len(data) < 6:
        raise UnknownFormatError("bag of cells too short for a header", details={"length": len(data)})

    try:
        header, offset = _read_header(data)
    except UnderflowError as e:
        raise UnknownFormatError("bag of cells header is truncated", cause=e)
    _check_header(header, offset, len(data), options)
    logger.debug(
        "Deserializing bag of cells: %d cells, %d roots, %d absent, %d data bytes, index=%s, crc32c=%s",
        header.cells, header.roots, header.absent, header.tot_cells_size,
        header.has_index, header.has_crc32c,
    )

    r = BinaryReader(data)
    r.bytes(offset)
    if header.has_root_list:
        root_indices = [r.uint_be(header.ref_size) for _ in range(header.roots)]
    else:
        root_indices = [0]
    for idx in root_indices:
        if idx >= header.cells:
            raise IndexOutOfRangeError(f"root index {idx} out of range for {header.cells} cells",
                                       details={"root": idx, "cells": header.cells})

    index = None
    if header.has_index:
        index = [r.uint_be(header.offset_size) for _ in range(header.cells)]
    raw, ends = _read_cells(r.bytes(header.tot_cells_size), header)

    if index is not None:
        if header.has_cache_bits:
            index = [entry >> 1 for entry in index]
        if index != ends:
            raise UnknownFormatError("cell index does not match the cell records")

    absent = sum(1 for item in raw if item.absent)
    if absent != header.absent:
        raise UnknownFormatError(
            f"header declares {header.absent} absent cells, found {absent}",
            details={"declared": header.absent, "found": absent},
        )

    cells = _build_cells(raw, options)
    return [cells[idx] for idx in root_indices]


class BagOfCells:
    """
    One or more root cells together with the cells reachable from them.
    """

    def __init__(self, roots: Union[Cell, Iterable[Cell]]):
        if isinstance(roots, Cell):
            roots = [roots]
        self.roots: List[Cell] = list(roots)
        if not self.roots:
            raise ValueError("bag of cells needs at least one root")

    def __len__(self) -> int:
        return len(self.roots)

    def __repr__(self) -> str:
        return f"BagOfCells(roots={len(self.roots)})"

    def single_root(self) -> Cell:
        """
        The only root.

        Raises:
            BocError: If the bag has more than one root
        """
        if len(self.roots) != 1:
            raise BocError(f"expected a single root, bag has {len(self.roots)}",
                           details={"roots": len(self.roots)})
        return self.roots[0]

    def graph(self) -> CellGraph:
        return CellGraph(self.roots)

    def serialize(self, options: Optional[BocSerializeOptions] = None) -> bytes:
        return serialize_cells(self.roots, options)

    def to_base64(self, options: Optional[BocSerializeOptions] = None) -> str:
        return base64.b64encode(self.serialize(options)).decode("ascii")

    def to_hex(self, options: Optional[BocSerializeOptions] = None) -> str:
        return self.serialize(options).hex()

    @classmethod
    def deserialize(cls, data: bytes, options: Optional[BocParseOptions] = None) -> "BagOfCells":
        return cls(deserialize_cells(data, options))

    @classmethod
    def parse_base64(cls, text: str, options: Optional[BocParseOptions] = None) -> "BagOfCells":
        """Decode a base64 (standard or URL-safe) bag of cells."""
        normalized = "".join(text.split()).replace("-", "+").replace("_", "/")
        try:
            data = base64.b64decode(normalized, validate=True)
        except binascii.Error as e:
            raise UnknownFormatError("bag of cells is not valid base64", cause=e)
        return cls.deserialize(data, options)

    @classmethod
    def parse_hex(cls, text: str, options: Optional[BocParseOptions] = None) -> "BagOfCells":
        try:
            data = bytes.fromhex(text)
        except ValueError as e:
            raise UnknownFormatError("bag of cells is not valid hex", cause=e)
        return cls.deserialize(data, options)


def serialize_boc(roots: Union[Cell, Iterable[Cell]], **flags) -> bytes:
    """
    Serialize a root cell or several roots.

    Keyword flags are BocSerializeOptions fields.
    """
    return BagOfCells(roots).serialize(BocSerializeOptions(**flags))


def deserialize_boc(data: bytes, **limits) -> List[Cell]:
    """
    Decode a bag of cells and return its roots.

    Keyword limits are BocParseOptions fields.
    """
    return deserialize_cells(data, BocParseOptions(**limits))
