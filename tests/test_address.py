"""
Address tests.

Covers the raw and user-friendly forms, flags and checksum validation.
"""

import pytest

from toncell.address import Address, crc16
from toncell.runtime.errors import InvalidAddressError

NON_BOUNCEABLE = "UQCqfGGPYqDhFC2-6FcAldnWwkKHcs_Ez9RoXvJF_in3y_ll"
NON_BOUNCEABLE_RAW = "0:aa7c618f62a0e1142dbee8570095d9d6c2428772cfc4cfd4685ef245fe29f7cb"
BOUNCEABLE = "EQAxN5aREN_WF-He1uKeQsalDxobF3kz2u-5U69x_RAzK3sQ"
BOUNCEABLE_RAW = "0:3137969110dfd617e1ded6e29e42c6a50f1a1b177933daefb953af71fd10332b"


class TestUserFriendlyForm:
    """Test base64 addresses."""

    @pytest.mark.parametrize("text,raw,bounceable", [
        (NON_BOUNCEABLE, NON_BOUNCEABLE_RAW, False),
        (BOUNCEABLE, BOUNCEABLE_RAW, True),
    ])
    def test_known_addresses(self, text, raw, bounceable):
        """Test decoding and re-encoding real addresses."""
        address = Address.from_base64(text)

        assert address.to_raw() == raw
        assert address.bounceable is bounceable
        assert not address.testnet
        assert address.to_base64(bounceable=bounceable) == text

    def test_standard_alphabet(self):
        """Test the standard base64 alphabet is accepted."""
        standard = Address.from_raw(BOUNCEABLE_RAW).to_base64(url_safe=False)

        assert "-" not in standard and "_" not in standard
        assert Address.from_base64(standard) == Address.from_raw(BOUNCEABLE_RAW)

    def test_testnet_flag(self):
        """Test the testnet bit survives a round trip."""
        address = Address(-1, bytes(range(32)))
        parsed = Address.from_base64(address.to_base64(bounceable=False, testnet=True))

        assert parsed == address
        assert parsed.testnet
        assert not parsed.bounceable
        assert parsed.workchain == -1

    def test_checksum_mismatch(self):
        """Test a changed character fails the CRC16 check."""
        tampered = "EQB" + BOUNCEABLE[3:]
        with pytest.raises(InvalidAddressError):
            Address.from_base64(tampered)

    @pytest.mark.parametrize("text", ["", "EQAx", BOUNCEABLE + "A", "!" * 48])
    def test_invalid_strings(self, text):
        """Test wrong lengths and characters."""
        with pytest.raises(InvalidAddressError):
            Address.from_base64(text)

    def test_crc16_check_value(self):
        """Test the CRC16/XMODEM check value of '123456789'."""
        assert crc16(b"123456789") == bytes.fromhex("31c3")


class TestRawForm:
    """Test workchain:hex addresses."""

    def test_round_trip(self):
        """Test parsing and printing the raw form."""
        address = Address.from_raw("-1:" + "ab" * 32)

        assert address.workchain == -1
        assert str(address) == "-1:" + "ab" * 32
        assert repr(address) == f"Address('-1:{'ab' * 32}')"

    @pytest.mark.parametrize("text", ["0" + "ab" * 32, "x:" + "ab" * 32, "0:abcd", "0:" + "zz" * 32])
    def test_invalid(self, text):
        """Test malformed raw addresses."""
        with pytest.raises(InvalidAddressError):
            Address.from_raw(text)

    def test_parse_either_form(self):
        """Test parse picks the form from the text."""
        assert Address.parse(BOUNCEABLE) == Address.parse(BOUNCEABLE_RAW)


class TestAddressValues:
    """Test construction checks and equality."""

    @pytest.mark.parametrize("workchain,hash_part", [(128, bytes(32)), (-129, bytes(32)), (0, bytes(31))])
    def test_invalid_components(self, workchain, hash_part):
        """Test out-of-range workchains and short account ids."""
        with pytest.raises(InvalidAddressError):
            Address(workchain, hash_part)

    def test_equality_ignores_flags(self):
        """Test flags do not affect equality or hashing."""
        a = Address(0, bytes(32), bounceable=True)
        b = Address(0, bytes(32), bounceable=False, testnet=True)

        assert a == b
        assert len({a, b}) == 1

    def test_invalid_address_is_value_error(self):
        """Test the address error can be caught as ValueError."""
        with pytest.raises(ValueError):
            Address.from_raw("nonsense")
