"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Any

import pytest

from money.chains.fast.address import pubkey_to_address
from money.chains.fast.client import FastClient
from money.config import DEFAULT_CHAIN_CONFIGS, TESTNET, ChainConfig, config_key
from money.keys import FileKeystore

FAKE_RPC = "https://proxy.test.xyz"
FIXED_NANOS = 1_700_000_000_000_000_000


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeRpc:
    """Stands in for RpcClient; records calls and answers per method.

    A response may be a plain value, an exception instance (raised), or a
    callable taking the params and returning the value.
    """

    def __init__(self, responses: dict[str, Any] | None = None) -> None:
        self.responses: dict[str, Any] = dict(responses or {})
        self.calls: list[tuple[str, Any]] = []

    async def call(self, method: str, params: Any = None, timeout: float | None = None) -> Any:
        self.calls.append((method, params))
        response = self.responses.get(method)
        if isinstance(response, BaseException):
            raise response
        if callable(response):
            return response(params)
        return response

    def methods(self) -> list[str]:
        return [method for method, _ in self.calls]

    def params_for(self, method: str) -> list[Any]:
        return [params for m, params in self.calls if m == method]


class MemoryConfigStore:
    """ConfigStore kept in a dict."""

    def __init__(self, chains: dict[str, ChainConfig] | None = None) -> None:
        self.chains: dict[str, ChainConfig] = dict(chains or {})

    def get_chain_config(self, key: str) -> ChainConfig | None:
        return self.chains.get(key)

    def set_rpc(self, chain: str, network: str, rpc: str) -> ChainConfig:
        key = config_key(chain, network)
        current = self.chains.get(key) or DEFAULT_CHAIN_CONFIGS[chain][network]
        updated = ChainConfig(
            rpc=rpc,
            keyfile=current.keyfile,
            network=current.network,
            default_token=current.default_token,
            rpc_timeout=current.rpc_timeout,
        )
        self.chains[key] = updated
        return updated


# ---------------------------------------------------------------------------
# Key fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def keystore() -> FileKeystore:
    return FileKeystore()


@pytest.fixture()
def keyfile(tmp_path: Path) -> str:
    return str(tmp_path / "keys" / "fast.json")


@pytest.fixture()
def sender_pubkey(keystore: FileKeystore, keyfile: str) -> bytes:
    return keystore.generate(keyfile)


@pytest.fixture()
def sender_address(sender_pubkey: bytes) -> str:
    return pubkey_to_address(sender_pubkey)


@pytest.fixture()
def recipient_pubkey() -> bytes:
    return bytes(range(32))


@pytest.fixture()
def recipient_address(recipient_pubkey: bytes) -> str:
    return pubkey_to_address(recipient_pubkey)


# ---------------------------------------------------------------------------
# Client fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def fake_rpc() -> FakeRpc:
    return FakeRpc()


@pytest.fixture()
def fast_client(fake_rpc: FakeRpc, keystore: FileKeystore) -> FastClient:
    return FastClient(
        FAKE_RPC,
        keystore=keystore,
        network=TESTNET,
        rpc=fake_rpc,  # type: ignore[arg-type]
        clock=lambda: FIXED_NANOS,
    )


@pytest.fixture()
def mainnet_client(fake_rpc: FakeRpc, keystore: FileKeystore) -> FastClient:
    return FastClient(
        FAKE_RPC,
        keystore=keystore,
        network="mainnet",
        rpc=fake_rpc,  # type: ignore[arg-type]
    )


@pytest.fixture()
def memory_config_store() -> MemoryConfigStore:
    return MemoryConfigStore(
        {
            "fast": ChainConfig(
                rpc=FAKE_RPC, keyfile="~/.money/keys/fast.json", network=TESTNET,
                default_token="SET",
            ),
        }
    )


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    chains:
      fast:
        rpc: "https://proxy.example.com"
        keyfile: "~/.money/keys/fast.json"
        network: testnet
        default_token: SET
      "fast:mainnet":
        rpc: "${FAST_MAINNET_RPC}"
        rpc_timeout: 20
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("FAST_MAINNET_RPC", "https://mainnet.example.com")
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file

