"""Adapter registry: one memoized client per configured chain + network.

Keys follow :func:`money.config.config_key`: ``"fast"`` for testnet,
``"fast:mainnet"`` for mainnet. Clients are built on first ``get`` and kept
until :meth:`AdapterRegistry.evict` is called (e.g. after an RPC override).
"""
from __future__ import annotations

import logging
from collections.abc import Callable

from .chains.fast.client import FastClient
from .config import ChainConfig, config_key, parse_config_key
from .errors import ErrorCode, MoneyError
from .interfaces.chain import ChainClient
from .interfaces.config_store import ConfigStore
from .interfaces.keystore import Keystore
from .keys import FileKeystore

logger = logging.getLogger(__name__)

# (network, chain config, keystore) -> client
ClientFactory = Callable[[str, ChainConfig, Keystore], ChainClient]


def _fast_factory(network: str, cfg: ChainConfig, keystore: Keystore) -> ChainClient:
    return FastClient(cfg.rpc, keystore=keystore, network=network, timeout=cfg.rpc_timeout)


# Built-in client factories keyed by chain name.
_CLIENT_FACTORIES: dict[str, ClientFactory] = {
    "fast": _fast_factory,
}


class AdapterRegistry:
    """Hands out ready-to-use chain clients, cached by config key."""

    def __init__(
        self,
        config_store: ConfigStore,
        keystore: Keystore | None = None,
        factories: dict[str, ClientFactory] | None = None,
    ) -> None:
        self._config_store = config_store
        self._keystore = keystore or FileKeystore()
        self._factories: dict[str, ClientFactory] = dict(_CLIENT_FACTORIES)
        if factories:
            self._factories.update(factories)
        self._cache: dict[str, ChainClient] = {}

    def register_factory(self, chain: str, factory: ClientFactory) -> None:
        """Plug in a client type for ``chain`` (e.g. an EVM or Solana client)."""
        self._factories[chain] = factory

    def get(self, key: str) -> ChainClient:
        """Return the cached client for ``key``, building it on first use.

        Raises:
            MoneyError: CHAIN_NOT_CONFIGURED if there is no config for the
                key or no client type for its chain.
        """
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        chain, network = parse_config_key(key)
        chain_config = self._config_store.get_chain_config(key)
        if chain_config is None:
            raise MoneyError(
                ErrorCode.CHAIN_NOT_CONFIGURED,
                f'Chain "{chain}" is not configured.',
                chain=chain,
                details={"key": key, "network": network},
                note=f'Run setup for "{chain}" on {network} first.',
            )

        factory = self._factories.get(chain)
        if factory is None:
            raise MoneyError(
                ErrorCode.CHAIN_NOT_CONFIGURED,
                f'Unknown chain "{chain}".',
                chain=chain,
                details={"key": key, "known": sorted(self._factories)},
            )

        client = factory(network, chain_config, self._keystore)
        self._cache[key] = client
        logger.debug("Created %s client for %s (%s)", chain, network, chain_config.rpc)
        return client

    def evict(self, key: str) -> None:
        """Drop one cached client so the next ``get`` rebuilds it from config."""
        if self._cache.pop(key, None) is not None:
            logger.debug("Evicted client %s", key)

    def clear(self) -> None:
        self._cache.clear()

    def set_rpc(self, chain: str, network: str, rpc: str) -> ChainConfig:
        """Override a chain's RPC endpoint and invalidate its cached client."""
        updated = self._config_store.set_rpc(chain, network, rpc)
        self.evict(config_key(chain, network))
        logger.info("RPC for %s on %s set to %s", chain, network, rpc)
        return updated
