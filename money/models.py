"""Data models: all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class RawKeyPair:
    """Ed25519 key pair handed out by a keystore for one scoped operation.

    ``private_key`` is a mutable buffer so the keystore can zero it when the
    scope ends. It is excluded from ``repr``.
    """

    public_key: bytes
    private_key: bytearray = field(repr=False)


@dataclass(frozen=True)
class WalletInfo:
    address: str


@dataclass(frozen=True)
class Balance:
    amount: str
    token: str


@dataclass(frozen=True)
class SendResult:
    tx_hash: str
    explorer_url: str
    fee: str


@dataclass(frozen=True)
class FaucetResult:
    amount: str
    token: str
    tx_hash: str


@dataclass(frozen=True)
class SignResult:
    signature: str
    address: str


@dataclass(frozen=True)
class OwnedToken:
    """One token held by an account, with display and raw balances."""

    symbol: str
    address: str
    balance: str
    raw_balance: str
    decimals: int


@dataclass(frozen=True)
class SubmitResult:
    """Accepted transaction: hash, the nonce it consumed, and the opaque certificate."""

    tx_hash: str
    nonce: int
    certificate: Any = None
