"""Integration tests for the JSON-RPC client: envelopes, timeouts, transport errors."""
from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from money.errors import ErrorCode, NetworkError, RpcRejection
from money.rpc.client import RpcClient, to_jsonable


@pytest.fixture()
def client() -> RpcClient:
    return RpcClient("https://proxy.example.com", timeout=5, chain="fast")


def _mock_session(response_data=None, error: Exception | None = None):
    """Create a mock aiohttp session that returns given data or raises error."""
    mock_response = AsyncMock()
    if error:
        mock_response.json = AsyncMock(side_effect=error)
    else:
        mock_response.json = AsyncMock(return_value=response_data)
    mock_response.__aenter__ = AsyncMock(return_value=mock_response)
    mock_response.__aexit__ = AsyncMock(return_value=None)

    mock_session = AsyncMock()
    if error:
        mock_session.post = MagicMock(side_effect=error)
    else:
        mock_session.post = MagicMock(return_value=mock_response)
    mock_session.__aenter__ = AsyncMock(return_value=mock_session)
    mock_session.__aexit__ = AsyncMock(return_value=None)

    return mock_session


async def _call(client: RpcClient, session, method: str = "proxy_test", params=None, **kwargs):
    with patch("money.rpc.client.aiohttp.ClientSession", return_value=session):
        with patch("money.rpc.client.aiohttp.TCPConnector"):
            return await client.call(method, params, **kwargs)


class TestToJsonable:
    def test_bytes_and_tuples(self) -> None:
        assert to_jsonable({"a": b"\x01\x02", "b": (b"\x03",), "c": None}) == {
            "a": [1, 2],
            "b": [[3]],
            "c": None,
        }


class TestRpcCall:
    @pytest.mark.asyncio
    async def test_successful_call(self, client: RpcClient) -> None:
        session = _mock_session({"jsonrpc": "2.0", "id": 1, "result": {"data": "ok"}})
        assert await _call(client, session) == {"data": "ok"}

    @pytest.mark.asyncio
    async def test_null_result(self, client: RpcClient) -> None:
        session = _mock_session({"jsonrpc": "2.0", "id": 1, "result": None})
        assert await _call(client, session) is None

    @pytest.mark.asyncio
    async def test_payload(self, client: RpcClient) -> None:
        session = _mock_session({"jsonrpc": "2.0", "id": 1, "result": 1})
        await _call(client, session, "proxy_getAccountInfo", {"address": b"\x01\x02"})
        await _call(client, session, "proxy_getAccountInfo")

        first, second = session.post.call_args_list
        assert first.args[0] == "https://proxy.example.com"
        assert first.kwargs["json"] == {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "proxy_getAccountInfo",
            "params": {"address": [1, 2]},
        }
        assert first.kwargs["timeout"].total == 5
        assert second.kwargs["json"]["id"] == 2
        assert second.kwargs["json"]["params"] == {}

    @pytest.mark.asyncio
    async def test_per_call_timeout(self, client: RpcClient) -> None:
        session = _mock_session({"jsonrpc": "2.0", "id": 1, "result": 1})
        await _call(client, session, timeout=1.5)
        assert session.post.call_args.kwargs["timeout"].total == 1.5

    @pytest.mark.asyncio
    async def test_rpc_error_raises_rejection(self, client: RpcClient) -> None:
        session = _mock_session(
            {"jsonrpc": "2.0", "id": 1, "error": {"code": -32000, "message": "InsufficientFunding"}}
        )
        with pytest.raises(RpcRejection) as exc:
            await _call(client, session)
        assert exc.value.message == "InsufficientFunding"
        assert exc.value.rpc_code == -32000
        assert exc.value.code == ErrorCode.PROTOCOL_REJECTION
        assert exc.value.chain == "fast"
        assert exc.value.details["method"] == "proxy_test"

    @pytest.mark.asyncio
    async def test_rpc_error_without_message(self, client: RpcClient) -> None:
        session = _mock_session({"jsonrpc": "2.0", "id": 1, "error": {"code": 7}})
        with pytest.raises(RpcRejection, match='"code": 7'):
            await _call(client, session)

    @pytest.mark.asyncio
    async def test_timeout(self, client: RpcClient) -> None:
        session = _mock_session(error=asyncio.TimeoutError())
        with pytest.raises(NetworkError, match="timed out after 5s") as exc:
            await _call(client, session)
        assert exc.value.code == ErrorCode.NETWORK_FAILURE

    @pytest.mark.asyncio
    async def test_connection_error(self, client: RpcClient) -> None:
        session = _mock_session(error=aiohttp.ClientError("connection refused"))
        with pytest.raises(NetworkError, match="connection refused"):
            await _call(client, session)

    @pytest.mark.asyncio
    async def test_invalid_json(self, client: RpcClient) -> None:
        session = _mock_session(error=ValueError("Expecting value"))
        with pytest.raises(NetworkError):
            await _call(client, session)

    @pytest.mark.asyncio
    async def test_malformed_body(self, client: RpcClient) -> None:
        session = _mock_session(["not", "an", "envelope"])
        with pytest.raises(NetworkError, match="malformed"):
            await _call(client, session)
