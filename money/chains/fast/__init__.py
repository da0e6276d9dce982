"""Fast chain: address codec, canonical transaction encoding, signing and client."""
from .address import address_to_pubkey, is_valid_address, pubkey_to_address
from .client import FastClient
from .codec import encode_transaction, hex_to_token_id, transaction_to_wire
from .signing import DOMAIN_SEPARATOR, hash_transaction, sign_transaction, verify

__all__ = [
    "DOMAIN_SEPARATOR",
    "FastClient",
    "address_to_pubkey",
    "encode_transaction",
    "hash_transaction",
    "hex_to_token_id",
    "is_valid_address",
    "pubkey_to_address",
    "sign_transaction",
    "transaction_to_wire",
    "verify",
]
