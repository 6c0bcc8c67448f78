"""
Bag of Cells Module

Key components:
- codec.py: envelope serialization and deserialization
- options.py: serialization flags and parse limits
"""

from .codec import (
    BagOfCells,
    deserialize_boc,
    deserialize_cells,
    serialize_boc,
    serialize_cells,
)
from .options import BocParseOptions, BocSerializeOptions

__all__ = [
    "BagOfCells",
    "BocParseOptions",
    "BocSerializeOptions",
    "deserialize_boc",
    "deserialize_cells",
    "serialize_boc",
    "serialize_cells",
]
