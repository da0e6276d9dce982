"""Fast addresses: bech32m (``set1...``) text <-> raw 32-byte Ed25519 public key.

The ``bech32`` package ships the BIP-173 primitives (charset, polymod, hrp
expansion, bit regrouping). Fast uses the BIP-350 (bech32m) checksum, which
differs only in the constant the polymod is xor-ed with.
"""
from __future__ import annotations

import re

from bech32 import CHARSET, bech32_hrp_expand, bech32_polymod, convertbits

from ...errors import MoneyError, invalid_input
from .schema import PUBLIC_KEY_LENGTH

ADDRESS_HRP = "set"
ADDRESS_PATTERN = re.compile(r"^set1[a-z0-9]{38,}$")

BECH32M_CONST = 0x2BC830A3
MAX_ADDRESS_LENGTH = 90


def _checksum(hrp: str, data: list[int]) -> list[int]:
    values = bech32_hrp_expand(hrp) + data
    polymod = bech32_polymod(values + [0, 0, 0, 0, 0, 0]) ^ BECH32M_CONST
    return [(polymod >> 5 * (5 - i)) & 31 for i in range(6)]


def _verify_checksum(hrp: str, data: list[int]) -> bool:
    return bech32_polymod(bech32_hrp_expand(hrp) + data) == BECH32M_CONST


def pubkey_to_address(public_key: bytes) -> str:
    """Encode a 32-byte public key as a ``set1...`` address."""
    if len(public_key) != PUBLIC_KEY_LENGTH:
        raise invalid_input(
            f"Public key must be {PUBLIC_KEY_LENGTH} bytes, got {len(public_key)}"
        )
    data = convertbits(public_key, 8, 5)
    combined = data + _checksum(ADDRESS_HRP, data)
    return ADDRESS_HRP + "1" + "".join(CHARSET[d] for d in combined)


def address_to_pubkey(address: str) -> bytes:
    """Decode a ``set1...`` address back to its 32-byte public key.

    Raises:
        MoneyError: INVALID_INPUT for a bad checksum, wrong prefix, mixed
            case, unknown characters or a payload that is not 32 bytes.
    """
    if not isinstance(address, str):
        raise invalid_input(f"Address must be a string, got {type(address).__name__}")
    if not address or len(address) > MAX_ADDRESS_LENGTH:
        raise invalid_input(f"Invalid Fast address length: {address!r}", details={"address": address})
    if address.lower() != address and address.upper() != address:
        raise invalid_input(f"Mixed-case Fast address: {address!r}", details={"address": address})
    if any(ord(c) < 33 or ord(c) > 126 for c in address):
        raise invalid_input(f"Invalid characters in address: {address!r}", details={"address": address})

    address = address.lower()
    pos = address.rfind("1")
    hrp, payload = address[:pos], address[pos + 1 :]
    if pos < 1 or hrp != ADDRESS_HRP:
        raise invalid_input(
            f"Address must start with '{ADDRESS_HRP}1': {address!r}",
            details={"address": address},
        )
    if len(payload) < 6 or any(c not in CHARSET for c in payload):
        raise invalid_input(f"Invalid Fast address: {address!r}", details={"address": address})

    data = [CHARSET.find(c) for c in payload]
    if not _verify_checksum(hrp, data):
        raise invalid_input(
            f"Invalid Fast address checksum: {address!r}", details={"address": address}
        )

    decoded = convertbits(data[:-6], 5, 8, False)
    if decoded is None or len(decoded) != PUBLIC_KEY_LENGTH:
        raise invalid_input(
            f"Fast address does not encode a {PUBLIC_KEY_LENGTH}-byte key: {address!r}",
            details={"address": address},
        )
    return bytes(decoded)


def is_valid_address(address: str) -> bool:
    try:
        address_to_pubkey(address)
    except MoneyError:
        return False
    return True
