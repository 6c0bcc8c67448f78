"""
Bag of cells option classes.

Typed options for serialization flags and for the limits applied to
untrusted input during deserialization.
"""

from __future__ import annotations
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field, model_validator


class BocSerializeOptions(BaseModel):
    """
    Flags written into the bag of cells header.

    The defaults (no index, CRC32C footer) match the common wire form.
    """
    has_index: bool = Field(default=False, description="Write the cell offset index")
    has_crc32c: bool = Field(default=True, description="Append a CRC32C footer")
    has_cache_bits: bool = Field(
        default=False,
        description="Mark cells with several parents in the index (requires has_index)",
    )
    store_hashes: bool = Field(default=False, description="Store every cell's hashes and depths")

    model_config = {"frozen": True, "extra": "forbid"}

    @model_validator(mode="after")
    def _cache_bits_need_index(self) -> "BocSerializeOptions":
        if self.has_cache_bits and not self.has_index:
            raise ValueError("has_cache_bits requires has_index")
        return self

    def flags_byte(self, ref_size: int) -> int:
        """has_idx:1 has_crc32c:1 has_cache_bits:1 flags:2 size:3"""
        return (
            (0x80 if self.has_index else 0)
            | (0x40 if self.has_crc32c else 0)
            | (0x20 if self.has_cache_bits else 0)
            | ref_size
        )

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()


class BocParseOptions(BaseModel):
    """
    Limits and checks applied while decoding.

    Callers handling untrusted input should set max_boc_size; the cell count
    a header may declare is otherwise bounded only by the buffer length.
    """
    max_boc_size: Optional[int] = Field(default=None, ge=1, description="Reject larger buffers")
    max_cells: Optional[int] = Field(default=None, ge=1, description="Reject headers declaring more cells")
    verify_hashes: bool = Field(
        default=True,
        description="Compare stored cell hashes with the rebuilt cells",
    )

    model_config = {"frozen": True, "extra": "forbid"}

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()
