"""Fast transaction schema: one frozen dataclass per struct and enum variant.

Field order in every class is the canonical encoding order; do not reorder.
Byte-array fields hold raw ``bytes`` (32 bytes for ids and public keys,
64 bytes for signatures). Amounts are plain ``int`` (u256).
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

FAST_DECIMALS = 18
NATIVE_TOKEN = "SET"

# [0xfa, 0x57, 0x5e, 0x70, 0, 0, ..., 0]
SET_TOKEN_ID = bytes([0xFA, 0x57, 0x5E, 0x70]) + bytes(28)

TOKEN_ID_LENGTH = 32
PUBLIC_KEY_LENGTH = 32
SIGNATURE_LENGTH = 64


class AddressChange(Enum):
    ADD = "Add"
    REMOVE = "Remove"


# ---------------------------------------------------------------------------
# Claim payloads
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TokenTransfer:
    token_id: bytes
    amount: int
    user_data: bytes | None = None


@dataclass(frozen=True)
class TokenCreation:
    token_name: str
    decimals: int
    initial_amount: int
    mints: tuple[bytes, ...] = ()
    user_data: bytes | None = None


@dataclass(frozen=True)
class TokenManagement:
    token_id: bytes
    update_id: int
    new_admin: bytes | None = None
    mints: tuple[tuple[AddressChange, bytes], ...] = ()
    user_data: bytes | None = None


@dataclass(frozen=True)
class Mint:
    token_id: bytes
    amount: int


@dataclass(frozen=True)
class StateInitialization:
    dummy: int = 0


@dataclass(frozen=True)
class StateUpdate:
    dummy: int = 0


@dataclass(frozen=True)
class StateReset:
    dummy: int = 0


@dataclass(frozen=True)
class JoinCommittee:
    dummy: int = 0


@dataclass(frozen=True)
class LeaveCommittee:
    dummy: int = 0


@dataclass(frozen=True)
class ChangeCommittee:
    dummy: int = 0


@dataclass(frozen=True)
class ExternalClaimBody:
    verifier_committee: tuple[bytes, ...] = ()
    verifier_quorum: int = 0
    claim_data: bytes = b""


@dataclass(frozen=True)
class ExternalClaim:
    claim: ExternalClaimBody
    signatures: tuple[tuple[bytes, bytes], ...] = ()


# ---------------------------------------------------------------------------
# Batch operations: self-contained, so transfers and mints name a recipient
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TokenTransferOperation:
    token_id: bytes
    recipient: bytes
    amount: int
    user_data: bytes | None = None


@dataclass(frozen=True)
class MintOperation:
    token_id: bytes
    recipient: bytes
    amount: int


Operation = Union[TokenTransferOperation, TokenCreation, TokenManagement, MintOperation]


@dataclass(frozen=True)
class Batch:
    operations: tuple[Operation, ...] = ()


Claim = Union[
    TokenTransfer,
    TokenCreation,
    TokenManagement,
    Mint,
    StateInitialization,
    StateUpdate,
    ExternalClaim,
    StateReset,
    JoinCommittee,
    LeaveCommittee,
    ChangeCommittee,
    Batch,
]


@dataclass(frozen=True)
class Transaction:
    sender: bytes
    recipient: bytes
    nonce: int
    timestamp_nanos: int
    claim: Claim
    archival: bool = False
