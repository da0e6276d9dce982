"""Unit tests for the file keystore."""
from __future__ import annotations

import json
import stat
from pathlib import Path

import pytest

from money.chains.fast.signing import sign_message, verify
from money.errors import ErrorCode, MoneyError
from money.keys import FileKeystore, KeyfileError


class TestGenerate:
    def test_writes_keyfile_with_mode(self, keystore: FileKeystore, keyfile: str) -> None:
        public_key = keystore.generate(keyfile)
        path = Path(keyfile)
        assert keystore.exists(keyfile)
        assert stat.S_IMODE(path.stat().st_mode) == 0o600
        data = json.loads(path.read_text())
        assert data["publicKey"] == public_key.hex()
        assert len(bytes.fromhex(data["privateKey"])) == 32

    def test_backup_is_read_only(self, keystore: FileKeystore, keyfile: str) -> None:
        keystore.generate(keyfile)
        backup = Path(keyfile).parent / "backups" / Path(keyfile).name
        assert backup.read_text() == Path(keyfile).read_text()
        assert stat.S_IMODE(backup.stat().st_mode) == 0o400

    def test_never_overwrites(self, keystore: FileKeystore, keyfile: str) -> None:
        keystore.generate(keyfile)
        before = Path(keyfile).read_text()
        with pytest.raises(FileExistsError):
            keystore.generate(keyfile)
        assert Path(keyfile).read_text() == before

    def test_load_public_key(self, keystore: FileKeystore, keyfile: str) -> None:
        public_key = keystore.generate(keyfile)
        assert keystore.load_public_key(keyfile) == public_key

    def test_expands_home(self, keystore: FileKeystore, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HOME", str(tmp_path))
        keystore.generate("~/keys/fast.json")
        assert (tmp_path / "keys" / "fast.json").is_file()


class TestWithKey:
    def test_yields_matching_pair(self, keystore: FileKeystore, keyfile: str) -> None:
        public_key = keystore.generate(keyfile)
        with keystore.with_key(keyfile) as pair:
            assert pair.public_key == public_key
            signature = sign_message(b"msg", pair.private_key)
        assert verify(signature, b"msg", public_key)

    def test_private_key_zeroed_after_block(self, keystore: FileKeystore, keyfile: str) -> None:
        keystore.generate(keyfile)
        with keystore.with_key(keyfile) as pair:
            buffer = pair.private_key
            assert any(buffer)
        assert buffer == bytearray(32)

    def test_private_key_zeroed_on_exception(self, keystore: FileKeystore, keyfile: str) -> None:
        keystore.generate(keyfile)
        with pytest.raises(RuntimeError):
            with keystore.with_key(keyfile) as pair:
                buffer = pair.private_key
                raise RuntimeError("boom")
        assert buffer == bytearray(32)

    def test_repr_hides_private_key(self, keystore: FileKeystore, keyfile: str) -> None:
        keystore.generate(keyfile)
        with keystore.with_key(keyfile) as pair:
            assert pair.private_key.hex() not in repr(pair)

    def test_mismatched_keys(self, keystore: FileKeystore, keyfile: str) -> None:
        keystore.generate(keyfile)
        data = json.loads(Path(keyfile).read_text())
        data["publicKey"] = "00" * 32
        Path(keyfile).chmod(0o600)
        Path(keyfile).write_text(json.dumps(data))
        with pytest.raises(KeyfileError, match="mismatched"):
            with keystore.with_key(keyfile):
                pass


class TestReadErrors:
    def test_missing(self, keystore: FileKeystore, tmp_path: Path) -> None:
        missing = str(tmp_path / "nope.json")
        assert not keystore.exists(missing)
        with pytest.raises(KeyfileError) as exc:
            keystore.load_public_key(missing)
        assert isinstance(exc.value, MoneyError)
        assert exc.value.code == ErrorCode.INVALID_INPUT
        assert exc.value.details == {"keyfile": str(Path(missing).resolve())}

    @pytest.mark.parametrize(
        "content",
        [
            "not json",
            "[]",
            '{"publicKey": "00"}',
            '{"publicKey": "zz", "privateKey": "zz"}',
            '{"publicKey": "0011", "privateKey": "0011"}',
        ],
    )
    def test_malformed(self, keystore: FileKeystore, tmp_path: Path, content: str) -> None:
        path = tmp_path / "bad.json"
        path.write_text(content)
        with pytest.raises(KeyfileError):
            keystore.load_public_key(str(path))

    def test_error_does_not_leak_key(self, keystore: FileKeystore, tmp_path: Path) -> None:
        path = tmp_path / "short.json"
        private_hex = "ab" * 31
        path.write_text(json.dumps({"publicKey": "00" * 32, "privateKey": private_hex}))
        with pytest.raises(KeyfileError) as exc:
            keystore.load_public_key(str(path))
        assert private_hex not in str(exc.value)
