"""Protocol interfaces for chain clients and their collaborators."""
from .chain import ChainClient
from .config_store import ConfigStore
from .keystore import Keystore

__all__ = ["ChainClient", "ConfigStore", "Keystore"]
