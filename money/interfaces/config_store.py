"""Config store protocol: per chain + network settings."""
from typing import Protocol

from ..config import ChainConfig


class ConfigStore(Protocol):
    """Abstract interface for reading and overriding chain configuration."""

    def get_chain_config(self, key: str) -> ChainConfig | None: ...

    def set_rpc(self, chain: str, network: str, rpc: str) -> ChainConfig: ...
