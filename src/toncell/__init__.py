"""
toncell - TON cells, bag of cells and state init hashing

This package builds, hashes, serializes and parses TON cell graphs:
bit-precise cell payloads, per-level cell hashes, the bag of cells wire
format and account identifiers derived from contract code and data.
"""

# Bit and byte codecs
from .codec import BinaryReader, BinaryWriter, BitBuffer

# Cells
from .cell import (
    AbsentCell,
    Cell,
    CellBuilder,
    CellGraph,
    CellSlice,
    CellType,
    LevelMask,
    LibraryReferenceCell,
    MerkleProofCell,
    MerkleUpdateCell,
    PrunedBranchCell,
    begin_cell,
    resolve_index_table,
)

# Bag of cells
from .boc import (
    BagOfCells,
    BocParseOptions,
    BocSerializeOptions,
    deserialize_boc,
    serialize_boc,
)

# Accounts
from .address import Address
from .state_init import StateInit, TickTock, derive_address

# Errors
from .runtime.errors import (
    AbsentCellError,
    BocError,
    CellOverflowError,
    ChecksumMismatchError,
    CyclicGraphError,
    ErrorCode,
    IndexOutOfRangeError,
    InvalidAddressError,
    MalformedExoticCellError,
    MissingCodeOrDataError,
    OverflowError,
    TonCellError,
    UnderflowError,
    UnknownFormatError,
)

# Star imports must not shadow the builtin OverflowError
BitOverflowError = OverflowError

__version__ = "0.1.0"
__all__ = [
    # Codecs
    "BinaryReader",
    "BinaryWriter",
    "BitBuffer",

    # Cells
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

    # Bag of cells
    "BagOfCells",
    "BocParseOptions",
    "BocSerializeOptions",
    "deserialize_boc",
    "serialize_boc",

    # Accounts
    "Address",
    "StateInit",
    "TickTock",
    "derive_address",

    # Errors
    "AbsentCellError",
    "BocError",
    "BitOverflowError",
    "CellOverflowError",
    "ChecksumMismatchError",
    "CyclicGraphError",
    "ErrorCode",
    "IndexOutOfRangeError",
    "InvalidAddressError",
    "MalformedExoticCellError",
    "MissingCodeOrDataError",
    "TonCellError",
    "UnderflowError",
    "UnknownFormatError",
]
