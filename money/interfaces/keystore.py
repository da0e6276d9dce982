"""Keystore protocol: scoped access to raw key material."""
from contextlib import AbstractContextManager
from typing import Protocol

from ..models import RawKeyPair


class Keystore(Protocol):
    """Loads, persists and lends out key pairs.

    ``with_key`` is the only way signing code should see a private key: the
    pair is valid inside the ``with`` block and wiped when it exits.
    """

    def exists(self, keyfile: str) -> bool: ...

    def load_public_key(self, keyfile: str) -> bytes: ...

    def generate(self, keyfile: str) -> bytes: ...

    def with_key(self, keyfile: str) -> AbstractContextManager[RawKeyPair]: ...
