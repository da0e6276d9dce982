"""Unit tests for structured errors."""
from __future__ import annotations

from money.errors import ErrorCode, MoneyError, NetworkError, RpcRejection, invalid_input


class TestErrors:
    def test_to_dict(self) -> None:
        err = MoneyError(
            ErrorCode.TOKEN_NOT_FOUND, "no such token", chain="fast", details={"token": "X"}, note="hint"
        )
        assert err.to_dict() == {
            "error": True,
            "code": "TOKEN_NOT_FOUND",
            "message": "no such token",
            "note": "hint",
            "chain": "fast",
            "details": {"token": "X"},
        }
        assert str(err) == "no such token"

    def test_details_copied(self) -> None:
        details = {"a": 1}
        err = MoneyError(ErrorCode.TX_FAILED, "x", details=details)
        details["a"] = 2
        assert err.details == {"a": 1}

    def test_subclasses(self) -> None:
        assert NetworkError("down").code == ErrorCode.NETWORK_FAILURE
        rejection = RpcRejection("nope", rpc_code=-32000)
        assert rejection.code == ErrorCode.PROTOCOL_REJECTION
        assert rejection.rpc_code == -32000
        assert isinstance(rejection, MoneyError)

    def test_invalid_input(self) -> None:
        err = invalid_input("bad", chain="fast")
        assert err.code == ErrorCode.INVALID_INPUT
        assert err.chain == "fast"

    def test_code_is_string(self) -> None:
        assert ErrorCode.FAUCET_THROTTLED == "FAUCET_THROTTLED"
