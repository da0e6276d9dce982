"""Fast chain client: balances, transfers, faucet and token discovery over
the FastSet proxy JSON-RPC API.

Addresses are bech32m ``set1...`` strings for users and raw 32-byte public
keys on the wire. Every transfer fetches the sender's nonce immediately
before building the transaction; nothing is cached between calls, so two
concurrent sends from one key can race for the same nonce and the network
will reject one of them. Callers that need ordering must serialize sends.
"""
from __future__ import annotations

import logging
import re
import time
from collections.abc import Callable
from typing import Any

from ...amounts import from_hex, hex_to_int, is_hex, to_human, to_raw
from ...config import MAINNET, TESTNET
from ...errors import ErrorCode, MoneyError, RpcRejection, invalid_input
from ...interfaces.keystore import Keystore
from ...models import (
    Balance,
    FaucetResult,
    OwnedToken,
    SendResult,
    SignResult,
    SubmitResult,
    WalletInfo,
)
from ...rpc.client import DEFAULT_TIMEOUT, RpcClient
from .address import ADDRESS_PATTERN, address_to_pubkey, pubkey_to_address
from .codec import hex_to_token_id, token_id_to_hex, token_ids_equal, transaction_to_wire
from .schema import (
    FAST_DECIMALS,
    NATIVE_TOKEN,
    SET_TOKEN_ID,
    Claim,
    ExternalClaim,
    ExternalClaimBody,
    TokenTransfer,
    Transaction,
)
from .signing import hash_transaction, sign_message, sign_transaction, verify

logger = logging.getLogger(__name__)

CHAIN = "fast"
EXPLORER_BASE = "https://explorer.fastset.xyz/txs"
TRANSFER_FEE = "0.01"

# 10,000 SET
FAUCET_AMOUNT_HEX = "21e19e0c9bab2400000"
FAUCET_TX_HASH = "faucet"
DEFAULT_RETRY_AFTER = 60

_THROTTLE_MARKERS = ("throttl", "rate", "limit", "wait")
_INSUFFICIENT_MARKERS = ("insufficientfunding", "insufficient")
_SECONDS_RE = re.compile(r"(\d+)\s*(?:s\b|sec|second)", re.IGNORECASE)
_FIRST_INT_RE = re.compile(r"(\d+)")


def _message_bytes(message: str | bytes) -> bytes:
    return message.encode("utf-8") if isinstance(message, str) else bytes(message)


def _balance_entry(entry: Any) -> tuple[bytes, str]:
    """Unpack one token balance as ``(token_id, hex_balance)``.

    The proxy returns ``[token_id, balance]`` pairs; object form
    ``{"token_id": ..., "balance": ...}`` is accepted too.
    """
    if isinstance(entry, dict):
        token_id, balance = entry.get("token_id"), entry.get("balance")
    else:
        token_id, balance = entry
    if isinstance(token_id, str):
        return hex_to_token_id(token_id), str(balance or "0")
    return bytes(token_id or b""), str(balance or "0")


def parse_retry_after(message: str) -> int:
    """Seconds to wait from a throttling message, e.g. ``"... 42 seconds"`` -> 42."""
    match = _SECONDS_RE.search(message) or _FIRST_INT_RE.search(message)
    return int(match.group(1)) if match else DEFAULT_RETRY_AFTER


def is_throttled(message: str) -> bool:
    lowered = message.lower()
    return any(marker in lowered for marker in _THROTTLE_MARKERS)


def is_insufficient_funds(message: str) -> bool:
    lowered = message.lower()
    return any(marker in lowered for marker in _INSUFFICIENT_MARKERS)


class FastClient:
    """Fast protocol client implementing the ChainClient contract."""

    chain = CHAIN
    address_pattern = ADDRESS_PATTERN

    def __init__(
        self,
        rpc_url: str,
        keystore: Keystore,
        network: str = TESTNET,
        rpc: RpcClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        clock: Callable[[], int] = time.time_ns,
    ) -> None:
        self.rpc_url = rpc_url
        self.network = network
        self._keystore = keystore
        self._rpc = rpc or RpcClient(rpc_url, timeout=timeout, chain=CHAIN)
        self._clock = clock

    def explorer_url(self, tx_hash: str) -> str:
        return f"{EXPLORER_BASE}/{tx_hash}"

    # ------------------------------------------------------------------
    # RPC helpers
    # ------------------------------------------------------------------

    async def _account_info(
        self, pubkey: bytes, token_balances_filter: list[bytes] | None = None
    ) -> dict[str, Any] | None:
        """``proxy_getAccountInfo``; ``None`` means the account does not exist."""
        result = await self._rpc.call(
            "proxy_getAccountInfo",
            {
                "address": pubkey,
                "token_balances_filter": token_balances_filter,
                "state_key_filter": None,
                "certificate_by_nonce": None,
            },
        )
        return result if isinstance(result, dict) else None

    async def _next_nonce(self, pubkey: bytes) -> int:
        info = await self._account_info(pubkey)
        if not info:
            return 0
        return int(info.get("next_nonce") or 0)

    def _classify_rejection(self, err: RpcRejection) -> MoneyError:
        if is_insufficient_funds(err.message):
            return MoneyError(
                ErrorCode.INSUFFICIENT_BALANCE,
                err.message,
                chain=CHAIN,
                details=err.details,
                note="Fund the wallet or request testnet tokens from the faucet.",
            )
        return MoneyError(
            ErrorCode.TX_FAILED,
            err.message,
            chain=CHAIN,
            details=err.details,
            note="Wait a few seconds, then retry the send.",
        )

    async def _submit_claim(
        self, sender: bytes, recipient: bytes, claim: Claim, keyfile: str
    ) -> SubmitResult:
        """Fetch nonce, build, sign, hash and submit one transaction.

        The key is only borrowed for the signing step itself.
        """
        nonce = await self._next_nonce(sender)
        tx = Transaction(
            sender=sender,
            recipient=recipient,
            nonce=nonce,
            timestamp_nanos=self._clock(),
            claim=claim,
            archival=False,
        )

        with self._keystore.with_key(keyfile) as keypair:
            if keypair.public_key != sender:
                raise invalid_input(
                    "Keyfile does not belong to the sending address",
                    chain=CHAIN,
                    details={"from": pubkey_to_address(sender)},
                )
            signature = sign_transaction(tx, keypair.private_key)

        tx_hash = hash_transaction(tx)
        logger.debug("Submitting %s nonce=%d hash=%s", type(claim).__name__, nonce, tx_hash)

        result = await self._rpc.call(
            "proxy_submitTransaction",
            {"transaction": transaction_to_wire(tx), "signature": {"Signature": signature}},
        )
        certificate = result.get("Success", result) if isinstance(result, dict) else result
        if not certificate:
            raise MoneyError(
                ErrorCode.TX_FAILED,
                "proxy_submitTransaction returned empty result",
                chain=CHAIN,
                details={"tx_hash": tx_hash, "nonce": nonce},
                note="The transaction was submitted but no certificate was returned. Try again.",
            )

        logger.info("Transaction %s accepted (nonce %d)", tx_hash, nonce)
        return SubmitResult(tx_hash=tx_hash, nonce=nonce, certificate=certificate)

    # ------------------------------------------------------------------
    # ChainClient contract
    # ------------------------------------------------------------------

    async def setup_wallet(self, keyfile: str) -> WalletInfo:
        """Load the key in ``keyfile`` or create one; returns its address."""
        if self._keystore.exists(keyfile):
            public_key = self._keystore.load_public_key(keyfile)
        else:
            public_key = self._keystore.generate(keyfile)
        return WalletInfo(address=pubkey_to_address(public_key))

    async def get_balance(self, address: str, token: str | None = None) -> Balance:
        """Balance of the native token or of a hex token id.

        A missing account reads as ``"0"``; RPC failures propagate.
        """
        label = token or NATIVE_TOKEN
        pubkey = address_to_pubkey(address)

        if label == NATIVE_TOKEN:
            info = await self._account_info(pubkey)
            if not info:
                return Balance(amount="0", token=label)
            return Balance(amount=from_hex(info.get("balance") or "0", FAST_DECIMALS), token=label)

        if not is_hex(label):
            raise MoneyError(
                ErrorCode.TOKEN_NOT_FOUND,
                f"Token '{label}' not found on Fast chain",
                chain=CHAIN,
                details={"token": label},
                note="Pass the token's hex id instead of a name.",
            )

        token_id = hex_to_token_id(label)
        info = await self._account_info(pubkey, token_balances_filter=[token_id])
        if not info:
            return Balance(amount="0", token=label)

        for entry in info.get("token_balance") or []:
            entry_id, balance = _balance_entry(entry)
            if token_ids_equal(entry_id, token_id):
                return Balance(amount=from_hex(balance, FAST_DECIMALS), token=label)
        return Balance(amount="0", token=label)

    async def send(
        self,
        from_address: str,
        to: str,
        amount: str,
        keyfile: str,
        token: str | None = None,
    ) -> SendResult:
        """Transfer ``amount`` (human units) of SET or of a hex token id."""
        label = token or NATIVE_TOKEN
        if label == NATIVE_TOKEN:
            token_id = SET_TOKEN_ID
        elif is_hex(label):
            token_id = hex_to_token_id(label)
        else:
            raise MoneyError(
                ErrorCode.TOKEN_NOT_FOUND,
                f"Token '{label}' not found on Fast chain",
                chain=CHAIN,
                details={"token": label},
            )

        raw_amount = to_raw(amount, FAST_DECIMALS)
        if raw_amount == 0:
            raise invalid_input("Amount must be greater than zero", chain=CHAIN, details={"amount": amount})

        sender = address_to_pubkey(from_address)
        recipient = address_to_pubkey(to)
        claim = TokenTransfer(token_id=token_id, amount=raw_amount, user_data=None)

        try:
            submitted = await self._submit_claim(sender, recipient, claim, keyfile)
        except RpcRejection as e:
            raise self._classify_rejection(e) from e

        return SendResult(
            tx_hash=submitted.tx_hash,
            explorer_url=self.explorer_url(submitted.tx_hash),
            fee=TRANSFER_FEE,
        )

    async def faucet(self, address: str) -> FaucetResult:
        """Request testnet SET. Reports the balance actually held afterwards."""
        if self.network == MAINNET:
            raise MoneyError(
                ErrorCode.UNSUPPORTED_OPERATION,
                "Faucet is not available on mainnet.",
                chain=CHAIN,
                details={"network": self.network},
                note="Faucet is testnet only. Fund your wallet directly on mainnet.",
            )

        pubkey = address_to_pubkey(address)
        try:
            await self._rpc.call(
                "proxy_faucetDrip",
                {"recipient": pubkey, "amount": FAUCET_AMOUNT_HEX, "token_id": None},
            )
        except RpcRejection as e:
            if is_throttled(e.message):
                retry_after = parse_retry_after(e.message)
                raise MoneyError(
                    ErrorCode.FAUCET_THROTTLED,
                    f"Faucet throttled. Try again in ~{retry_after} seconds.",
                    chain=CHAIN,
                    details={"retryAfter": retry_after, "rpc_message": e.message},
                    note=f"Wait {retry_after} seconds, then retry.",
                ) from e
            raise MoneyError(
                ErrorCode.TX_FAILED,
                f"Faucet failed: {e.message}",
                chain=CHAIN,
                details=e.details,
            ) from e

        # the drip itself pays fees, so the received amount is below the request
        try:
            balance = await self.get_balance(address)
            amount = balance.amount
        except MoneyError as e:
            logger.warning("Balance check after faucet drip failed: %s", e.message)
            amount = from_hex(FAUCET_AMOUNT_HEX, FAST_DECIMALS)

        return FaucetResult(amount=amount, token=NATIVE_TOKEN, tx_hash=FAUCET_TX_HASH)

    async def sign(self, message: str | bytes, keyfile: str) -> SignResult:
        """Ed25519-sign an arbitrary message; returns a hex signature."""
        with self._keystore.with_key(keyfile) as keypair:
            signature = sign_message(_message_bytes(message), keypair.private_key)
            address = pubkey_to_address(keypair.public_key)
        return SignResult(signature=signature.hex(), address=address)

    async def verify_sign(
        self, message: str | bytes, signature: str, address: str
    ) -> bool:
        try:
            pubkey = address_to_pubkey(address)
            sig_bytes = bytes.fromhex(signature[2:] if signature.startswith("0x") else signature)
        except (MoneyError, ValueError, TypeError, AttributeError):
            return False
        return verify(sig_bytes, _message_bytes(message), pubkey)

    async def owned_tokens(self, address: str) -> list[OwnedToken]:
        """All tokens held by ``address``; the native token is always first."""
        pubkey = address_to_pubkey(address)
        info = await self._account_info(pubkey, token_balances_filter=[]) or {}

        native_hex = info.get("balance") or "0"
        tokens = [
            OwnedToken(
                symbol=NATIVE_TOKEN,
                address=token_id_to_hex(SET_TOKEN_ID),
                balance=from_hex(native_hex, FAST_DECIMALS),
                raw_balance=str(hex_to_int(native_hex)),
                decimals=FAST_DECIMALS,
            )
        ]

        balances: dict[str, int] = {}
        token_ids: list[bytes] = []
        for entry in info.get("token_balance") or []:
            token_id, balance = _balance_entry(entry)
            balances[token_id_to_hex(token_id)] = hex_to_int(balance)
            token_ids.append(token_id)

        if not token_ids:
            return tokens

        metadata = await self._token_metadata(token_ids)
        for tid_hex, raw in balances.items():
            meta = metadata.get(tid_hex) or {}
            decimals = int(meta.get("decimals", FAST_DECIMALS))
            tokens.append(
                OwnedToken(
                    symbol=meta.get("token_name") or tid_hex,
                    address=tid_hex,
                    balance=to_human(raw, decimals),
                    raw_balance=str(raw),
                    decimals=decimals,
                )
            )
        return tokens

    async def _token_metadata(self, token_ids: list[bytes]) -> dict[str, dict[str, Any]]:
        """One ``proxy_getTokenInfo`` call for all ids, keyed by hex id.

        Unavailable metadata yields an empty mapping; callers fall back to
        the raw id as the symbol.
        """
        try:
            result = await self._rpc.call("proxy_getTokenInfo", {"token_ids": token_ids})
        except MoneyError as e:
            logger.warning("Token metadata lookup failed: %s", e.message)
            return {}

        if isinstance(result, dict):
            result = result.get("requested_token_metadata")
        metadata: dict[str, dict[str, Any]] = {}
        for entry in result or []:
            try:
                tid, meta = entry
            except (TypeError, ValueError):
                continue
            if isinstance(meta, dict):
                metadata[token_id_to_hex(tid)] = meta
        return metadata

    # ------------------------------------------------------------------
    # Lower-level submission, used by bridge integrations
    # ------------------------------------------------------------------

    async def submit_token_transfer(
        self, to: str, raw_amount: int, token_id: bytes, keyfile: str
    ) -> SubmitResult:
        """Transfer ``raw_amount`` base units of ``token_id`` from the keyfile's account."""
        sender = self._keystore.load_public_key(keyfile)
        claim = TokenTransfer(token_id=bytes(token_id), amount=raw_amount, user_data=None)
        try:
            return await self._submit_claim(sender, address_to_pubkey(to), claim, keyfile)
        except RpcRejection as e:
            raise self._classify_rejection(e) from e

    async def submit_external_claim(
        self, recipient: str, claim_data: bytes, keyfile: str
    ) -> SubmitResult:
        """Submit opaque claim bytes as an unverified ExternalClaim."""
        sender = self._keystore.load_public_key(keyfile)
        claim = ExternalClaim(claim=ExternalClaimBody(claim_data=bytes(claim_data)))
        try:
            return await self._submit_claim(sender, address_to_pubkey(recipient), claim, keyfile)
        except RpcRejection as e:
            raise self._classify_rejection(e) from e

    async def evm_sign_certificate(self, certificate: Any) -> dict[str, Any]:
        """Have the proxy cross-sign a certificate for EVM verification."""
        result = await self._rpc.call("proxy_evmSignCertificate", {"certificate": certificate})
        if not isinstance(result, dict) or not result.get("transaction") or not result.get("signature"):
            raise MoneyError(
                ErrorCode.TX_FAILED,
                "proxy_evmSignCertificate returned invalid response",
                chain=CHAIN,
                note="The FastSet proxy failed to cross-sign the certificate.",
            )
        return {"transaction": list(result["transaction"]), "signature": result["signature"]}
