"""Minimal JSON-RPC 2.0 client over aiohttp with a per-call timeout."""
from __future__ import annotations

import asyncio
import itertools
import json
import logging
import ssl
from typing import Any

import aiohttp
import certifi

from ..errors import NetworkError, RpcRejection

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15.0


def to_jsonable(value: Any) -> Any:
    """Recursively convert bytes to int lists and tuples to lists."""
    if isinstance(value, (bytes, bytearray)):
        return list(value)
    if isinstance(value, dict):
        return {k: to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


class RpcClient:
    """Issues one JSON-RPC request per call. No retries: callers own retry policy.

    Failures surface as:
        NetworkError: transport error, timeout, or a body that is not a
            JSON-RPC response.
        RpcRejection: the node returned an ``error`` envelope; the raw
            message is kept for classification by the caller.
    """

    def __init__(
        self, url: str, timeout: float = DEFAULT_TIMEOUT, chain: str | None = None
    ) -> None:
        self.url = url
        self.timeout = timeout
        self.chain = chain
        self._ids = itertools.count(1)

    async def call(
        self, method: str, params: Any = None, timeout: float | None = None
    ) -> Any:
        """Make one RPC call and return its ``result`` (which may be ``None``)."""
        timeout = self.timeout if timeout is None else timeout
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": to_jsonable(params if params is not None else {}),
        }

        ssl_context = ssl.create_default_context(cafile=certifi.where())

        try:
            connector = aiohttp.TCPConnector(ssl=ssl_context)
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.post(
                    self.url,
                    json=payload,
                    timeout=aiohttp.ClientTimeout(total=timeout),
                ) as response:
                    body = await response.json(content_type=None)
        except asyncio.TimeoutError as e:
            logger.warning("RPC %s to %s timed out after %ss", method, self.url, timeout)
            raise NetworkError(
                f"RPC {method} timed out after {timeout}s",
                chain=self.chain,
                details={"method": method, "url": self.url, "timeout": timeout},
            ) from e
        except (aiohttp.ClientError, OSError, ValueError) as e:
            logger.warning("RPC %s to %s failed: %s", method, self.url, e)
            raise NetworkError(
                f"RPC {method} failed: {e}",
                chain=self.chain,
                details={"method": method, "url": self.url},
            ) from e

        if not isinstance(body, dict):
            raise NetworkError(
                f"RPC {method} returned a malformed response",
                chain=self.chain,
                details={"method": method, "url": self.url},
            )

        error = body.get("error")
        if error:
            if isinstance(error, dict):
                message = str(error.get("message") or json.dumps(error))
                rpc_code = error.get("code")
            else:
                message, rpc_code = str(error), None
            logger.debug("RPC %s rejected: %s", method, message)
            raise RpcRejection(
                message,
                rpc_code=rpc_code,
                chain=self.chain,
                details={"method": method, "error": error},
            )

        return body.get("result")
