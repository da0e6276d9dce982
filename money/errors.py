"""Structured error codes for the wallet client.

Every error raised by the client is a ``MoneyError`` with a machine-readable
``code``, an optional ``chain`` and an optional ``details`` bag, so callers
can switch on ``code`` instead of parsing message strings.
"""
from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    INVALID_INPUT = "INVALID_INPUT"
    NETWORK_FAILURE = "NETWORK_FAILURE"
    PROTOCOL_REJECTION = "PROTOCOL_REJECTION"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    FAUCET_THROTTLED = "FAUCET_THROTTLED"
    TX_FAILED = "TX_FAILED"
    TOKEN_NOT_FOUND = "TOKEN_NOT_FOUND"
    CHAIN_NOT_CONFIGURED = "CHAIN_NOT_CONFIGURED"
    UNSUPPORTED_OPERATION = "UNSUPPORTED_OPERATION"


class MoneyError(Exception):
    """Base error carrying a code plus enough context to build a UI message."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        *,
        chain: str | None = None,
        details: dict[str, Any] | None = None,
        note: str = "",
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.chain = chain
        self.details = dict(details) if details else {}
        self.note = note

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": True,
            "code": self.code.value,
            "message": self.message,
            "note": self.note,
            "chain": self.chain,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.code.value}, {self.message!r})"


class NetworkError(MoneyError):
    """Transport failure or timeout; the request may never have reached the node."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        super().__init__(ErrorCode.NETWORK_FAILURE, message, **kwargs)


class RpcRejection(MoneyError):
    """The node answered with a JSON-RPC error envelope."""

    def __init__(
        self, message: str, rpc_code: int | None = None, **kwargs: Any
    ) -> None:
        super().__init__(ErrorCode.PROTOCOL_REJECTION, message, **kwargs)
        self.rpc_code = rpc_code


def invalid_input(message: str, **kwargs: Any) -> MoneyError:
    return MoneyError(ErrorCode.INVALID_INPUT, message, **kwargs)
