"""BCS (Binary Canonical Serialization) primitives: pure, no I/O.

Only the subset the Fast transaction schema needs: fixed-width little-endian
unsigned integers, bool, fixed byte arrays, ULEB128-prefixed sequences and
strings, one-byte option tags, and enum variant indexes.
"""
from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import TypeVar

T = TypeVar("T")

Encoder = Callable[[T], bytes]


def uleb128(value: int) -> bytes:
    """Unsigned LEB128, used for sequence lengths and enum variant indexes."""
    if value < 0:
        raise ValueError(f"uleb128 value must be non-negative, got {value}")
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def _uint(value: int, width: int, name: str) -> bytes:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} expects int, got {type(value).__name__}")
    if value < 0 or value >= 1 << (8 * width):
        raise ValueError(f"{name} out of range: {value}")
    return value.to_bytes(width, "little")


def u8(value: int) -> bytes:
    return _uint(value, 1, "u8")


def u64(value: int) -> bytes:
    return _uint(value, 8, "u64")


def u128(value: int) -> bytes:
    return _uint(value, 16, "u128")


def u256(value: int) -> bytes:
    return _uint(value, 32, "u256")


def boolean(value: bool) -> bytes:
    if not isinstance(value, bool):
        raise TypeError(f"bool expects bool, got {type(value).__name__}")
    return b"\x01" if value else b"\x00"


def fixed_bytes(value: bytes, length: int) -> bytes:
    """A fixed-size byte array: written raw, no length prefix."""
    if not isinstance(value, (bytes, bytearray)):
        raise TypeError(f"bytes[{length}] expects bytes, got {type(value).__name__}")
    if len(value) != length:
        raise ValueError(f"bytes[{length}] got {len(value)} bytes")
    return bytes(value)


def byte_vector(value: bytes) -> bytes:
    """``vector<u8>``: length prefix then raw bytes."""
    if not isinstance(value, (bytes, bytearray)):
        raise TypeError(f"vector<u8> expects bytes, got {type(value).__name__}")
    return uleb128(len(value)) + bytes(value)


def string(value: str) -> bytes:
    encoded = value.encode("utf-8")
    return uleb128(len(encoded)) + encoded


def vector(items: Iterable[T], encode_item: Encoder[T]) -> bytes:
    items = list(items)
    return uleb128(len(items)) + b"".join(encode_item(item) for item in items)


def option(value: T | None, encode_value: Encoder[T]) -> bytes:
    if value is None:
        return b"\x00"
    return b"\x01" + encode_value(value)


def variant(index: int, payload: bytes = b"") -> bytes:
    return uleb128(index) + payload
