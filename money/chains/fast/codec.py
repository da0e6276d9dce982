"""Canonical transaction encoding: BCS bytes for signing/hashing, plus the
JSON wire form the proxy expects. Pure functions, no I/O."""
from __future__ import annotations

from collections.abc import Callable
from typing import Any

from ...amounts import int_to_hex, is_hex, strip_hex_prefix
from ...errors import invalid_input
from . import bcs
from .schema import (
    PUBLIC_KEY_LENGTH,
    SIGNATURE_LENGTH,
    TOKEN_ID_LENGTH,
    AddressChange,
    Batch,
    ChangeCommittee,
    Claim,
    ExternalClaim,
    JoinCommittee,
    LeaveCommittee,
    Mint,
    MintOperation,
    Operation,
    StateInitialization,
    StateReset,
    StateUpdate,
    TokenCreation,
    TokenManagement,
    TokenTransfer,
    TokenTransferOperation,
    Transaction,
)

# ---------------------------------------------------------------------------
# Token id helpers
# ---------------------------------------------------------------------------


def hex_to_token_id(hex_id: str) -> bytes:
    """Parse a hex token id into 32 bytes, left-aligned.

    The hex is a big-endian byte string padded with *trailing* zeros:
    ``"0x0102"`` becomes ``01 02 00 .. 00``. Longer input is truncated to
    32 bytes.
    """
    clean = strip_hex_prefix(hex_id)
    if not clean or not is_hex(clean):
        raise invalid_input(f"Invalid hex token id: {hex_id!r}", details={"value": hex_id})
    padded = clean.ljust(TOKEN_ID_LENGTH * 2, "0")[: TOKEN_ID_LENGTH * 2]
    # an odd-length id has its last nibble land in the high half of a byte
    return bytes.fromhex(padded)


def token_id_to_hex(token_id: bytes | list[int]) -> str:
    return "0x" + bytes(token_id).hex()


def token_ids_equal(a: bytes | list[int], b: bytes | list[int]) -> bool:
    """Strict byte-wise comparison; different lengths never match."""
    a, b = bytes(a), bytes(b)
    return len(a) == len(b) and a == b


# ---------------------------------------------------------------------------
# BCS encoders
# ---------------------------------------------------------------------------


def _id32(value: bytes) -> bytes:
    return bcs.fixed_bytes(value, TOKEN_ID_LENGTH)


def _pubkey(value: bytes) -> bytes:
    return bcs.fixed_bytes(value, PUBLIC_KEY_LENGTH)


def _user_data(value: bytes | None) -> bytes:
    return bcs.option(value, _id32)


def _address_change(change: AddressChange) -> bytes:
    if change is AddressChange.ADD:
        return bcs.variant(0)
    if change is AddressChange.REMOVE:
        return bcs.variant(1)
    raise TypeError(f"Unknown AddressChange: {change!r}")


def _encode_token_transfer(claim: TokenTransfer) -> bytes:
    return _id32(claim.token_id) + bcs.u256(claim.amount) + _user_data(claim.user_data)


def _encode_token_creation(claim: TokenCreation) -> bytes:
    return (
        bcs.string(claim.token_name)
        + bcs.u8(claim.decimals)
        + bcs.u256(claim.initial_amount)
        + bcs.vector(claim.mints, _id32)
        + _user_data(claim.user_data)
    )


def _encode_token_management(claim: TokenManagement) -> bytes:
    return (
        _id32(claim.token_id)
        + bcs.u64(claim.update_id)
        + bcs.option(claim.new_admin, _pubkey)
        + bcs.vector(
            claim.mints, lambda pair: _address_change(pair[0]) + _pubkey(pair[1])
        )
        + _user_data(claim.user_data)
    )


def _encode_mint(claim: Mint) -> bytes:
    return _id32(claim.token_id) + bcs.u256(claim.amount)


def _encode_placeholder(claim: Any) -> bytes:
    return bcs.u8(claim.dummy)


def _encode_external_claim(claim: ExternalClaim) -> bytes:
    body = claim.claim
    return (
        bcs.vector(body.verifier_committee, _pubkey)
        + bcs.u64(body.verifier_quorum)
        + bcs.byte_vector(body.claim_data)
        + bcs.vector(
            claim.signatures,
            lambda pair: _pubkey(pair[0])
            + bcs.fixed_bytes(pair[1], SIGNATURE_LENGTH),
        )
    )


def _encode_transfer_operation(op: TokenTransferOperation) -> bytes:
    return (
        _id32(op.token_id)
        + _pubkey(op.recipient)
        + bcs.u256(op.amount)
        + _user_data(op.user_data)
    )


def _encode_mint_operation(op: MintOperation) -> bytes:
    return _id32(op.token_id) + _pubkey(op.recipient) + bcs.u256(op.amount)


# Variant index order is part of the wire format.
_OPERATION_VARIANTS: dict[type, tuple[int, Callable[[Any], bytes]]] = {
    TokenTransferOperation: (0, _encode_transfer_operation),
    TokenCreation: (1, _encode_token_creation),
    TokenManagement: (2, _encode_token_management),
    MintOperation: (3, _encode_mint_operation),
}


def encode_operation(op: Operation) -> bytes:
    try:
        index, encoder = _OPERATION_VARIANTS[type(op)]
    except KeyError:
        raise TypeError(f"Not a batch operation: {type(op).__name__}") from None
    return bcs.variant(index, encoder(op))


def _encode_batch(claim: Batch) -> bytes:
    return bcs.vector(claim.operations, encode_operation)


_CLAIM_VARIANTS: dict[type, tuple[int, Callable[[Any], bytes]]] = {
    TokenTransfer: (0, _encode_token_transfer),
    TokenCreation: (1, _encode_token_creation),
    TokenManagement: (2, _encode_token_management),
    Mint: (3, _encode_mint),
    StateInitialization: (4, _encode_placeholder),
    StateUpdate: (5, _encode_placeholder),
    ExternalClaim: (6, _encode_external_claim),
    StateReset: (7, _encode_placeholder),
    JoinCommittee: (8, _encode_placeholder),
    LeaveCommittee: (9, _encode_placeholder),
    ChangeCommittee: (10, _encode_placeholder),
    Batch: (11, _encode_batch),
}


def encode_claim(claim: Claim) -> bytes:
    try:
        index, encoder = _CLAIM_VARIANTS[type(claim)]
    except KeyError:
        raise TypeError(f"Not a claim variant: {type(claim).__name__}") from None
    return bcs.variant(index, encoder(claim))


def encode_transaction(tx: Transaction) -> bytes:
    """Canonical BCS bytes of a transaction; the input to signing and hashing."""
    return (
        _pubkey(tx.sender)
        + _pubkey(tx.recipient)
        + bcs.u64(tx.nonce)
        + bcs.u128(tx.timestamp_nanos)
        + encode_claim(tx.claim)
        + bcs.boolean(tx.archival)
    )


# ---------------------------------------------------------------------------
# JSON wire form
# ---------------------------------------------------------------------------


def _ints(value: bytes) -> list[int]:
    return list(bytes(value))


def _opt_ints(value: bytes | None) -> list[int] | None:
    return None if value is None else _ints(value)


def _claim_fields_to_wire(claim: Any) -> Any:
    if isinstance(claim, TokenTransfer):
        return {
            "token_id": _ints(claim.token_id),
            "amount": int_to_hex(claim.amount),
            "user_data": _opt_ints(claim.user_data),
        }
    if isinstance(claim, TokenCreation):
        return {
            "token_name": claim.token_name,
            "decimals": claim.decimals,
            "initial_amount": int_to_hex(claim.initial_amount),
            "mints": [_ints(m) for m in claim.mints],
            "user_data": _opt_ints(claim.user_data),
        }
    if isinstance(claim, TokenManagement):
        return {
            "token_id": _ints(claim.token_id),
            "update_id": claim.update_id,
            "new_admin": _opt_ints(claim.new_admin),
            "mints": [[change.value, _ints(addr)] for change, addr in claim.mints],
            "user_data": _opt_ints(claim.user_data),
        }
    if isinstance(claim, Mint):
        return {"token_id": _ints(claim.token_id), "amount": int_to_hex(claim.amount)}
    if isinstance(claim, TokenTransferOperation):
        return {
            "token_id": _ints(claim.token_id),
            "recipient": _ints(claim.recipient),
            "amount": int_to_hex(claim.amount),
            "user_data": _opt_ints(claim.user_data),
        }
    if isinstance(claim, MintOperation):
        return {
            "token_id": _ints(claim.token_id),
            "recipient": _ints(claim.recipient),
            "amount": int_to_hex(claim.amount),
        }
    if isinstance(claim, ExternalClaim):
        return {
            "claim": {
                "verifier_committee": [_ints(v) for v in claim.claim.verifier_committee],
                "verifier_quorum": claim.claim.verifier_quorum,
                "claim_data": _ints(claim.claim.claim_data),
            },
            "signatures": [[_ints(s), _ints(sig)] for s, sig in claim.signatures],
        }
    if isinstance(claim, Batch):
        return [_variant_to_wire(op, _OPERATION_VARIANTS) for op in claim.operations]
    if type(claim) in _CLAIM_VARIANTS:
        return {"dummy": claim.dummy}
    raise TypeError(f"Not a claim variant: {type(claim).__name__}")


def _variant_name(cls: type) -> str:
    if cls is TokenTransferOperation:
        return "TokenTransfer"
    if cls is MintOperation:
        return "Mint"
    return cls.__name__


def _variant_to_wire(value: Any, table: dict[type, Any]) -> dict[str, Any]:
    if type(value) not in table:
        raise TypeError(f"Unexpected variant: {type(value).__name__}")
    return {_variant_name(type(value)): _claim_fields_to_wire(value)}


def transaction_to_wire(tx: Transaction) -> dict[str, Any]:
    """JSON-ready form: byte arrays as int lists, amounts as hex strings."""
    return {
        "sender": _ints(tx.sender),
        "recipient": _ints(tx.recipient),
        "nonce": tx.nonce,
        "timestamp_nanos": tx.timestamp_nanos,
        "claim": _variant_to_wire(tx.claim, _CLAIM_VARIANTS),
        "archival": tx.archival,
    }
