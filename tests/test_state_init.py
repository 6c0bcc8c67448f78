"""
State init tests.

The empty code / empty data identifier is a fixed regression vector.
"""

import pytest

from toncell.address import Address
from toncell.cell import Cell
from toncell.runtime.errors import MissingCodeOrDataError, OverflowError
from toncell.state_init import StateInit, TickTock, derive_address

from helpers import mk_cell

EMPTY_STATE_INIT_ID = "ad31eb762e688fc1ba21575d4359b0f9c48738af653e166a233300bdc6b29ae9"


class TestDeriveAddress:
    """Test account identifier derivation."""

    def test_empty_code_and_data(self):
        """Test the regression vector for empty code and data cells."""
        assert derive_address(Cell(), Cell()).hex() == EMPTY_STATE_INIT_ID

    def test_identifier_is_state_init_hash(self):
        """Test the identifier is the hash of the StateInit cell."""
        code, data = mk_cell(b"\x01"), mk_cell(b"\x02")
        state = StateInit(code=code, data=data)

        assert derive_address(code, data) == state.to_cell().hash
        assert len(derive_address(code, data)) == 32

    def test_missing_code_and_data(self):
        """Test at least one of code and data is required."""
        with pytest.raises(MissingCodeOrDataError):
            derive_address(None, None)

    @pytest.mark.parametrize("code,data", [(Cell(), None), (None, Cell())])
    def test_code_or_data_alone(self, code, data):
        """Test either cell alone is accepted."""
        assert len(derive_address(code, data)) == 32

    def test_every_input_changes_identifier(self):
        """Test optional fields enter the hash."""
        code, data = mk_cell(b"\x01"), mk_cell(b"\x02")
        variants = {
            derive_address(code, data),
            derive_address(data, code),
            derive_address(code, data, libraries=mk_cell(b"\x03")),
            derive_address(code, data, split_depth=0),
            derive_address(code, data, special=True),
            derive_address(code, data, special=TickTock(tick=True)),
        }
        assert len(variants) == 6

    @pytest.mark.parametrize("split_depth", [-1, 32])
    def test_split_depth_range(self, split_depth):
        """Test split depths outside 0..31."""
        with pytest.raises(OverflowError):
            derive_address(Cell(), Cell(), split_depth=split_depth)


class TestStateInitCell:
    """Test the StateInit cell layout."""

    def test_minimal_layout(self):
        """Test presence bits and references for code and data only."""
        code, data = mk_cell(b"\x01"), mk_cell(b"\x02")
        cell = StateInit(code=code, data=data).to_cell()

        assert cell.bits.to01() == "00110"
        assert cell.references == (code, data)

    def test_full_layout(self):
        """Test split depth, tick/tock and library bits."""
        code, data, library = mk_cell(b"\x01"), mk_cell(b"\x02"), mk_cell(b"\x03")
        state = StateInit(code=code, data=data, library=library,
                          split_depth=5, special=TickTock(tick=True, tock=False))
        cell = state.to_cell()

        assert cell.bits.to01() == "1" "00101" "1" "10" "111"
        assert cell.references == (code, data, library)

    def test_bool_special(self):
        """Test a bool special sets both tick and tock."""
        bits = StateInit(code=Cell(), special=True).to_cell().bits.to01()
        assert bits == "0" "1" "11" "100"

    def test_from_cell_round_trip(self):
        """Test reading a StateInit back from its cell."""
        state = StateInit(code=mk_cell(b"\x01"), data=None, library=mk_cell(b"\x03"),
                          split_depth=31, special=TickTock(tick=False, tock=True))

        parsed = StateInit.from_cell(state.to_cell())

        assert parsed == state
        assert parsed.account_id() == state.account_id()

    def test_address(self):
        """Test the address pairs a workchain with the identifier."""
        state = StateInit(code=Cell(), data=Cell())
        address = state.address(-1)

        assert address == Address(-1, bytes.fromhex(EMPTY_STATE_INIT_ID))
        assert state.address().workchain == 0
