"""
Account address: a workchain id paired with the 32-byte account id that
state init hashing produces.

Two textual forms are supported:

- raw: ``<workchain>:<64 hex digits>``
- user-friendly: 36 bytes (tag, workchain, account id, CRC16/XMODEM)
  encoded as 48 base64 characters, standard or URL-safe alphabet
"""

from __future__ import annotations
import base64
import binascii
from typing import Any

from .runtime.errors import InvalidAddressError

BOUNCEABLE_TAG = 0x11
NON_BOUNCEABLE_TAG = 0x51
TESTNET_FLAG = 0x80


def crc16(data: bytes) -> bytes:
    """CRC16/XMODEM of data, big-endian."""
    return binascii.crc_hqx(data, 0).to_bytes(2, "big")


class Address:
    """Internal account address (workchain id + account id)."""

    def __init__(self, workchain: int, hash_part: bytes,
                 bounceable: bool = True, testnet: bool = False):
        if not isinstance(workchain, int) or not -128 <= workchain <= 127:
            raise InvalidAddressError(f"workchain must fit in int8, got {workchain!r}")
        hash_part = bytes(hash_part)
        if len(hash_part) != 32:
            raise InvalidAddressError(f"account id must be 32 bytes, got {len(hash_part)}")
        self.workchain = workchain
        self.hash_part = hash_part
        # Flags recovered from a user-friendly string; they do not affect equality
        self.bounceable = bounceable
        self.testnet = testnet

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, Address):
            return self.workchain == other.workchain and self.hash_part == other.hash_part
        return False

    def __hash__(self) -> int:
        return hash((self.workchain, self.hash_part))

    def __str__(self) -> str:
        return self.to_raw()

    def __repr__(self) -> str:
        return f"Address('{self.to_raw()}')"

    def to_raw(self) -> str:
        """Raw form, e.g. ``0:aa7c...f7cb``."""
        return f"{self.workchain}:{self.hash_part.hex()}"

    @classmethod
    def from_raw(cls, text: str) -> "Address":
        """Parse the raw ``<workchain>:<hex>`` form."""
        workchain, sep, account = text.strip().partition(":")
        if not sep:
            raise InvalidAddressError(f"raw address must contain ':': {text!r}")
        try:
            wc = int(workchain, 10)
            hash_part = bytes.fromhex(account)
        except ValueError as e:
            raise InvalidAddressError(f"invalid raw address: {text!r}", cause=e)
        return cls(wc, hash_part)

    def to_base64(self, bounceable: bool = True, testnet: bool = False,
                  url_safe: bool = True) -> str:
        """User-friendly form with tag and CRC16 checksum."""
        tag = BOUNCEABLE_TAG if bounceable else NON_BOUNCEABLE_TAG
        if testnet:
            tag |= TESTNET_FLAG
        body = bytes([tag, self.workchain & 0xFF]) + self.hash_part
        raw = body + crc16(body)
        if url_safe:
            return base64.urlsafe_b64encode(raw).decode("ascii")
        return base64.b64encode(raw).decode("ascii")

    @classmethod
    def from_base64(cls, text: str) -> "Address":
        """
        Parse the user-friendly form in either base64 alphabet.

        Raises:
            InvalidAddressError: On bad length, checksum or tag
        """
        text = text.strip()
        if len(text) != 48:
            raise InvalidAddressError(f"user-friendly address must be 48 characters: {text!r}")
        try:
            raw = base64.b64decode(text.replace("-", "+").replace("_", "/"), validate=True)
        except binascii.Error as e:
            raise InvalidAddressError(f"invalid base64 address: {text!r}", cause=e)
        body, checksum = raw[:34], raw[34:]
        if crc16(body) != checksum:
            raise InvalidAddressError(
                f"address checksum mismatch: {text!r}",
                details={"expected": crc16(body).hex(), "actual": checksum.hex()},
            )
        tag = body[0]
        testnet = bool(tag & TESTNET_FLAG)
        tag &= ~TESTNET_FLAG
        if tag not in (BOUNCEABLE_TAG, NON_BOUNCEABLE_TAG):
            raise InvalidAddressError(f"unknown address tag 0x{body[0]:02x}")
        workchain = body[1] - 256 if body[1] >= 128 else body[1]
        return cls(workchain, body[2:], bounceable=tag == BOUNCEABLE_TAG, testnet=testnet)

    @classmethod
    def parse(cls, text: str) -> "Address":
        """Parse either textual form."""
        if ":" in text:
            return cls.from_raw(text)
        return cls.from_base64(text)
