"""Configuration: chain defaults, YAML loading with env interpolation, and a
YAML-backed config store for per-chain RPC settings."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import asdict, dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

TESTNET = "testnet"
MAINNET = "mainnet"
NETWORKS = (TESTNET, MAINNET)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ChainConfig:
    rpc: str = ""
    keyfile: str = ""
    network: str = TESTNET
    default_token: str = ""
    rpc_timeout: float = 15.0


@dataclass(frozen=True)
class AppConfig:
    chains: dict[str, ChainConfig] = field(default_factory=dict)


# Structured as chain -> network -> config.
DEFAULT_CHAIN_CONFIGS: dict[str, dict[str, ChainConfig]] = {
    "fast": {
        TESTNET: ChainConfig(
            rpc="https://proxy.fastset.xyz",
            keyfile="~/.money/keys/fast.json",
            network=TESTNET,
            default_token="SET",
        ),
        MAINNET: ChainConfig(
            rpc="https://proxy.fastset.xyz",
            keyfile="~/.money/keys/fast.json",
            network=MAINNET,
            default_token="SET",
        ),
    },
}


def config_key(chain: str, network: str) -> str:
    """Storage key for chain + network: bare name on testnet, ``chain:mainnet`` otherwise."""
    return f"{chain}:{MAINNET}" if network == MAINNET else chain


def parse_config_key(key: str) -> tuple[str, str]:
    """Inverse of :func:`config_key`, returning ``(chain, network)``."""
    suffix = f":{MAINNET}"
    if key.endswith(suffix):
        return key[: -len(suffix)], MAINNET
    return key, TESTNET


def get_config_dir() -> Path:
    """``~/.money`` unless ``MONEY_CONFIG_DIR`` is set."""
    override = os.environ.get("MONEY_CONFIG_DIR")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".money"


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_chain(key: str, raw: dict[str, Any]) -> ChainConfig:
    chain, network = parse_config_key(key)
    defaults = DEFAULT_CHAIN_CONFIGS.get(chain, {}).get(network, ChainConfig())
    return ChainConfig(
        rpc=raw.get("rpc", defaults.rpc),
        keyfile=raw.get("keyfile", defaults.keyfile),
        network=raw.get("network", defaults.network or network),
        default_token=raw.get("default_token", defaults.default_token),
        rpc_timeout=float(raw.get("rpc_timeout", defaults.rpc_timeout)),
    )


def _build_chains(raw: dict[str, Any]) -> dict[str, ChainConfig]:
    return {key: _build_chain(key, cfg or {}) for key, cfg in raw.items()}


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    for key, chain in cfg.chains.items():
        if not chain.rpc:
            raise ValueError(f"Chain '{key}' has no rpc endpoint")
        if not chain.rpc.startswith(("http://", "https://")):
            raise ValueError(f"Chain '{key}' rpc must be an http(s) URL: {chain.rpc}")
        if chain.rpc_timeout <= 0:
            raise ValueError(f"Chain '{key}' rpc_timeout must be positive")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` inside
            the config directory. A missing file yields an empty config.
    """
    load_dotenv()

    if config_path is None:
        config_path = get_config_dir() / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        logger.debug("No config file at %s", config_path)
        return AppConfig()

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw.get("chains", {}), dict):
        raise ValueError(f"Invalid config at {config_path}: 'chains' must be a mapping")

    raw = _interpolate_env(raw)
    cfg = AppConfig(chains=_build_chains(raw.get("chains") or {}))

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def save_config(cfg: AppConfig, config_path: str | Path) -> None:
    """Persist ``cfg`` atomically (temp file + rename, mode 0600)."""
    config_path = Path(config_path)
    config_path.parent.mkdir(parents=True, exist_ok=True, mode=0o700)

    content = yaml.safe_dump(
        {"chains": {key: asdict(chain) for key, chain in cfg.chains.items()}},
        sort_keys=True,
    )
    tmp_path = config_path.with_name(f"{config_path.name}.tmp.{os.getpid()}")
    try:
        fd = os.open(tmp_path, os.O_CREAT | os.O_WRONLY | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w") as f:
            f.write(content)
        os.replace(tmp_path, config_path)
    except OSError:
        tmp_path.unlink(missing_ok=True)
        raise


class YamlConfigStore:
    """ConfigStore backed by a YAML file in the config directory."""

    def __init__(self, config_path: str | Path | None = None) -> None:
        self.path = Path(config_path) if config_path else get_config_dir() / "config.yaml"

    def load(self) -> AppConfig:
        return load_config(self.path)

    def get_chain_config(self, key: str) -> ChainConfig | None:
        return self.load().chains.get(key)

    def set_chain_config(self, key: str, chain_config: ChainConfig) -> None:
        chains = dict(self.load().chains)
        chains[key] = chain_config
        cfg = AppConfig(chains=chains)
        _validate(cfg)
        save_config(cfg, self.path)
        logger.info("Saved config for chain '%s'", key)

    def setup_chain(self, chain: str, network: str = TESTNET) -> ChainConfig:
        """Store the default config for ``chain`` on ``network`` unless one exists."""
        key = config_key(chain, network)
        existing = self.get_chain_config(key)
        if existing is not None:
            return existing
        try:
            defaults = DEFAULT_CHAIN_CONFIGS[chain][network]
        except KeyError:
            raise ValueError(f"No default config for chain '{chain}' on {network}") from None
        self.set_chain_config(key, defaults)
        return defaults

    def set_rpc(self, chain: str, network: str, rpc: str) -> ChainConfig:
        """Override the RPC endpoint for one chain + network."""
        key = config_key(chain, network)
        current = self.get_chain_config(key)
        if current is None:
            current = DEFAULT_CHAIN_CONFIGS.get(chain, {}).get(
                network, ChainConfig(network=network)
            )
        updated = replace(current, rpc=rpc)
        self.set_chain_config(key, updated)
        return updated
