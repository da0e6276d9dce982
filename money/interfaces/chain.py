"""Chain client protocol: the uniform contract every chain backend exposes."""
from typing import Protocol

from ..models import Balance, FaucetResult, OwnedToken, SendResult, SignResult, WalletInfo


class ChainClient(Protocol):
    """Abstract interface for one configured chain + network."""

    @property
    def chain(self) -> str: ...

    async def setup_wallet(self, keyfile: str) -> WalletInfo: ...

    async def get_balance(self, address: str, token: str | None = None) -> Balance: ...

    async def send(
        self,
        from_address: str,
        to: str,
        amount: str,
        keyfile: str,
        token: str | None = None,
    ) -> SendResult: ...

    async def faucet(self, address: str) -> FaucetResult: ...

    async def sign(self, message: str | bytes, keyfile: str) -> SignResult: ...

    async def verify_sign(
        self, message: str | bytes, signature: str, address: str
    ) -> bool: ...

    async def owned_tokens(self, address: str) -> list[OwnedToken]: ...
