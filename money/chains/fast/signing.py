"""Transaction signing and hashing.

Signed message: ``b"Transaction::" || BCS(transaction)``, Ed25519.
Transaction id: ``keccak256(BCS(transaction))``, 0x-prefixed hex.
"""
from __future__ import annotations

from Crypto.Hash import keccak
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

from .codec import encode_transaction
from .schema import PUBLIC_KEY_LENGTH, SIGNATURE_LENGTH, Transaction

DOMAIN_SEPARATOR = b"Transaction::"
PRIVATE_KEY_LENGTH = 32


def _private_key(private_key: bytes | bytearray) -> Ed25519PrivateKey:
    if len(private_key) != PRIVATE_KEY_LENGTH:
        raise ValueError(f"Ed25519 private key must be {PRIVATE_KEY_LENGTH} bytes")
    return Ed25519PrivateKey.from_private_bytes(bytes(private_key))


def generate_keypair() -> tuple[bytes, bytes]:
    """Return a fresh ``(public_key, private_key)`` pair of raw 32-byte values."""
    key = Ed25519PrivateKey.generate()
    private_bytes = key.private_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PrivateFormat.Raw,
        encryption_algorithm=serialization.NoEncryption(),
    )
    return public_key_from_private(private_bytes), private_bytes


def public_key_from_private(private_key: bytes | bytearray) -> bytes:
    return _private_key(private_key).public_key().public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )


def sign_message(message: bytes, private_key: bytes | bytearray) -> bytes:
    """Plain Ed25519 signature over ``message`` (no domain separation)."""
    return _private_key(private_key).sign(bytes(message))


def verify(signature: bytes, message: bytes, public_key: bytes) -> bool:
    """Check an Ed25519 signature. Never raises; malformed input is just invalid."""
    try:
        if len(signature) != SIGNATURE_LENGTH or len(public_key) != PUBLIC_KEY_LENGTH:
            return False
        Ed25519PublicKey.from_public_bytes(bytes(public_key)).verify(
            bytes(signature), bytes(message)
        )
        return True
    except (InvalidSignature, ValueError, TypeError):
        return False


def signing_message(tx: Transaction) -> bytes:
    """Exact bytes the network verifies a transaction signature against."""
    return DOMAIN_SEPARATOR + encode_transaction(tx)


def sign_transaction(tx: Transaction, private_key: bytes | bytearray) -> bytes:
    return sign_message(signing_message(tx), private_key)


def verify_transaction(tx: Transaction, signature: bytes, public_key: bytes) -> bool:
    return verify(signature, signing_message(tx), public_key)


def hash_transaction(tx: Transaction) -> str:
    digest = keccak.new(digest_bits=256)
    digest.update(encode_transaction(tx))
    return "0x" + digest.hexdigest()
