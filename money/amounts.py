"""Amount conversions between raw integers, hex strings and decimal strings.

Amounts are unsigned 256-bit integers on the wire. All conversions here use
exact integer arithmetic so nothing is lost near the 256-bit ceiling.
"""
from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation

from .errors import invalid_input

U256_MAX = 2**256 - 1
_U256_DIGITS = len(str(U256_MAX))

_HEX_RE = re.compile(r"^(0[xX])?[0-9a-fA-F]+$")
_DECIMAL_RE = re.compile(r"^\d+(\.\d*)?$|^\.\d+$")


def check_u256(value: int) -> int:
    """Return ``value`` unchanged, or raise INVALID_INPUT if outside u256."""
    if value < 0 or value > U256_MAX:
        raise invalid_input(
            f"Amount {value} is outside the unsigned 256-bit range",
            details={"value": str(value)},
        )
    return value


def is_hex(text: str) -> bool:
    return bool(_HEX_RE.match(text))


def strip_hex_prefix(text: str) -> str:
    if text.startswith(("0x", "0X")):
        return text[2:]
    return text


def hex_to_int(hex_amount: str) -> int:
    """Parse a hex amount (``0x`` optional; empty means zero)."""
    clean = strip_hex_prefix(hex_amount.strip())
    if not clean:
        return 0
    if not is_hex(clean):
        raise invalid_input(
            f"Invalid hex amount: {hex_amount!r}", details={"value": hex_amount}
        )
    return check_u256(int(clean, 16))


def int_to_hex(raw: int) -> str:
    """Format a raw amount as lowercase hex without a prefix."""
    return format(check_u256(raw), "x")


def to_raw(human_amount: str | int, decimals: int) -> int:
    """Convert a human-readable decimal (e.g. ``"1.5"``) to a raw integer.

    Scientific notation is accepted. Digits past ``decimals`` are truncated.
    """
    text = str(human_amount).strip()
    if not _DECIMAL_RE.match(text):
        try:
            value = Decimal(text)
        except InvalidOperation:
            raise invalid_input(
                f"Invalid amount: {human_amount!r}", details={"value": text}
            ) from None
        if not value.is_finite() or value < 0:
            raise invalid_input(
                f"Invalid amount: {human_amount!r}", details={"value": text}
            )
        # bound the exponent before expanding the digits
        if value and value.adjusted() + decimals >= _U256_DIGITS:
            raise invalid_input(
                f"Amount {human_amount!r} is outside the unsigned 256-bit range",
                details={"value": text},
            )
        text = "0" if not value or value.adjusted() < -decimals else format(value, "f")

    int_part, _, frac_part = text.partition(".")
    frac_part = frac_part.ljust(decimals, "0")[:decimals]
    raw = int(int_part or "0") * 10**decimals + int(frac_part or "0")
    return check_u256(raw)


def to_human(raw: int | str, decimals: int) -> str:
    """Convert a raw integer amount to a decimal string without trailing zeros."""
    value = check_u256(int(raw))
    divisor = 10**decimals
    int_part, frac = divmod(value, divisor)
    if frac == 0:
        return str(int_part)
    frac_str = str(frac).rjust(decimals, "0").rstrip("0")
    return f"{int_part}.{frac_str}"


def to_hex(human_amount: str | int, decimals: int) -> str:
    """Human decimal -> wire hex."""
    return int_to_hex(to_raw(human_amount, decimals))


def from_hex(hex_amount: str | None, decimals: int) -> str:
    """Wire hex -> human decimal. ``None``, ``""`` and ``"0"`` map to ``"0"``."""
    if not hex_amount or hex_amount == "0":
        return "0"
    return to_human(hex_to_int(hex_amount), decimals)
