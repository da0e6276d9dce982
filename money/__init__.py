"""Multi-chain wallet client core."""
from .errors import ErrorCode, MoneyError
from .registry import AdapterRegistry

__all__ = ["AdapterRegistry", "ErrorCode", "MoneyError"]
