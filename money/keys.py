"""File keystore: JSON keyfiles holding hex-encoded Ed25519 key pairs.

Private keys never appear in a return value, log line or error message,
except the scoped pair handed out by :meth:`FileKeystore.with_key`, whose
private key buffer is zeroed when the ``with`` block exits.
"""
from __future__ import annotations

import json
import logging
import os
import shutil
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from .chains.fast.signing import generate_keypair, public_key_from_private
from .errors import ErrorCode, MoneyError
from .models import RawKeyPair

logger = logging.getLogger(__name__)


class KeyfileError(MoneyError):
    """A keyfile is missing, unreadable or malformed."""

    def __init__(self, message: str, path: str | Path) -> None:
        super().__init__(
            ErrorCode.INVALID_INPUT,
            message,
            details={"keyfile": str(path)},
            note="Check the keyfile path, or run wallet setup to create a new key.",
        )


def expand_home(path: str | Path) -> Path:
    return Path(path).expanduser().resolve()


class FileKeystore:
    """Keystore collaborator backed by one JSON file per key."""

    def exists(self, keyfile: str) -> bool:
        return expand_home(keyfile).is_file()

    def _read(self, keyfile: str) -> tuple[bytes, bytearray]:
        path = expand_home(keyfile)
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise KeyfileError(f"Failed to read keyfile at {path}: {e.strerror}", path) from None
        except ValueError:
            raise KeyfileError(f"Keyfile at {path} is not valid JSON", path) from None

        if not isinstance(raw, dict):
            raise KeyfileError(f"Keyfile at {path} is missing publicKey or privateKey fields", path)
        public_hex, private_hex = raw.get("publicKey"), raw.get("privateKey")
        if not isinstance(public_hex, str) or not isinstance(private_hex, str):
            raise KeyfileError(f"Keyfile at {path} is missing publicKey or privateKey fields", path)
        try:
            public_key, private_key = bytes.fromhex(public_hex), bytearray.fromhex(private_hex)
        except ValueError:
            raise KeyfileError(f"Keyfile at {path} holds non-hex key material", path) from None
        if len(public_key) != 32 or len(private_key) != 32:
            private_key[:] = bytes(len(private_key))
            raise KeyfileError(f"Keyfile at {path} does not hold 32-byte Ed25519 keys", path)
        return public_key, private_key

    def load_public_key(self, keyfile: str) -> bytes:
        public_key, private_key = self._read(keyfile)
        private_key[:] = bytes(len(private_key))
        return public_key

    def save(self, keyfile: str, public_key: bytes, private_key: bytes) -> None:
        """Write a new keyfile (mode 0600). Never overwrites an existing one.

        A read-only backup copy is made under ``<dir>/backups/``; a failed
        backup is logged, not raised, since the primary file is already written.
        """
        path = expand_home(keyfile)
        path.parent.mkdir(parents=True, exist_ok=True, mode=0o700)
        content = json.dumps(
            {"publicKey": public_key.hex(), "privateKey": bytes(private_key).hex()},
            indent=2,
        )

        fd = os.open(path, os.O_CREAT | os.O_WRONLY | os.O_EXCL, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)

        backup = path.parent / "backups" / path.name
        try:
            backup.parent.mkdir(parents=True, exist_ok=True, mode=0o700)
            if not backup.exists():
                shutil.copyfile(path, backup)
                backup.chmod(0o400)
        except OSError as e:
            logger.warning("Could not write keyfile backup %s: %s", backup, e.strerror)

    def generate(self, keyfile: str) -> bytes:
        """Create a fresh key pair in ``keyfile`` and return its public key."""
        public_key, private_key = generate_keypair()
        self.save(keyfile, public_key, private_key)
        logger.info("Generated new key at %s", expand_home(keyfile))
        return public_key

    @contextmanager
    def with_key(self, keyfile: str) -> Iterator[RawKeyPair]:
        """Lend the key pair for the duration of the ``with`` block."""
        path = expand_home(keyfile)
        public_key, private_key = self._read(keyfile)
        try:
            if public_key_from_private(private_key) != public_key:
                raise KeyfileError(f"Keyfile at {path} has mismatched keys", path)
            yield RawKeyPair(public_key=public_key, private_key=private_key)
        finally:
            private_key[:] = bytes(len(private_key))
