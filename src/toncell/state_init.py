"""
State Init

An account's identifier is the representation hash of its StateInit cell:

    _ split_depth:(Maybe (## 5)) special:(Maybe TickTock)
      code:(Maybe ^Cell) data:(Maybe ^Cell)
      library:(Maybe ^Cell) = StateInit;

    tick_tock$_ tick:Bool tock:Bool = TickTock;
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Union

from .address import Address
from .cell.builder import begin_cell
from .cell.cell import Cell
from .runtime.errors import MissingCodeOrDataError, OverflowError

SPLIT_DEPTH_BITS = 5
MAX_SPLIT_DEPTH = (1 << SPLIT_DEPTH_BITS) - 1


@dataclass(frozen=True)
class TickTock:
    """Special account flags: run on every tick and/or tock transaction."""
    tick: bool = False
    tock: bool = False


@dataclass
class StateInit:
    """
    Code, data and optional settings an account is deployed with.

    ``special`` accepts a TickTock, or a bool as shorthand for
    ``TickTock(tick=value, tock=value)``.
    """
    code: Optional[Cell] = None
    data: Optional[Cell] = None
    library: Optional[Cell] = None
    split_depth: Optional[int] = None
    special: Optional[Union[TickTock, bool]] = None

    def _special(self) -> Optional[TickTock]:
        if self.special is None or isinstance(self.special, TickTock):
            return self.special
        return TickTock(bool(self.special), bool(self.special))

    def to_cell(self) -> Cell:
        """
        Build the StateInit cell.

        Raises:
            MissingCodeOrDataError: If both code and data are None
            OverflowError: If split_depth is outside 0..31
        """
        if self.code is None and self.data is None:
            raise MissingCodeOrDataError()
        b = begin_cell()
        if self.split_depth is None:
            b.write_bit(0)
        else:
            if not 0 <= self.split_depth <= MAX_SPLIT_DEPTH:
                raise OverflowError(
                    f"split_depth {self.split_depth} out of range 0..{MAX_SPLIT_DEPTH}",
                    details={"split_depth": self.split_depth},
                )
            b.write_bit(1)
            b.write_uint(self.split_depth, SPLIT_DEPTH_BITS)

        special = self._special()
        if special is None:
            b.write_bit(0)
        else:
            b.write_bit(1)
            b.write_bit(special.tick)
            b.write_bit(special.tock)

        b.store_maybe_reference(self.code)
        b.store_maybe_reference(self.data)
        b.store_maybe_reference(self.library)
        return b.build()

    def account_id(self) -> bytes:
        """Representation hash of the StateInit cell (32 bytes)."""
        return self.to_cell().hash

    def address(self, workchain: int = 0) -> Address:
        return Address(workchain, self.account_id())

    @classmethod
    def from_cell(cls, cell: Cell) -> "StateInit":
        """
        Read a StateInit back from its cell.

        Raises:
            UnderflowError: If the cell is too short for the layout
        """
        s = cell.begin_parse()
        split_depth = s.read_uint(SPLIT_DEPTH_BITS) if s.read_bit() else None
        special = None
        if s.read_bit():
            tick = s.read_bit()
            tock = s.read_bit()
            special = TickTock(bool(tick), bool(tock))
        code = s.read_maybe_reference()
        data = s.read_maybe_reference()
        library = s.read_maybe_reference()
        return cls(code=code, data=data, library=library,
                   split_depth=split_depth, special=special)


def derive_address(code: Optional[Cell], data: Optional[Cell], libraries: Optional[Cell] = None,
                   split_depth: Optional[int] = None,
                   special: Optional[Union[TickTock, bool]] = None) -> bytes:
    """
    Account identifier for a contract deployed with code and data.

    Args:
        code: Contract code cell
        data: Initial data cell
        libraries: Library cell
        split_depth: Split depth, 0..31
        special: Tick/tock flags

    Returns:
        32-byte account identifier

    Raises:
        MissingCodeOrDataError: If both code and data are None
        OverflowError: If split_depth is outside 0..31
    """
    state = StateInit(code=code, data=data, library=libraries,
                      split_depth=split_depth, special=special)
    return state.account_id()
