# Tests for the bundled reference vault engine (in process)

import json
import sys

import pytest

from passlock.engine import DecryptionError, EncryptionService
from passlock.engine.__main__ import main

PASSWORD = "correct horse battery"


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def service():
    return EncryptionService(iterations=1000)


class TestEncryptionService:
    def test_seal_and_open(self, service):
        salt = EncryptionService.generate_salt()
        sealed = service.seal('{"entries": []}', PASSWORD, salt)

        assert sealed.startswith(salt + ":")
        assert service.open(sealed, PASSWORD) == (salt, '{"entries": []}')

    def test_wrong_password(self, service):
        sealed = service.seal("{}", PASSWORD, EncryptionService.generate_salt())
        with pytest.raises(DecryptionError):
            service.open(sealed, "wrong")

    def test_fresh_nonce_per_seal(self, service):
        salt = EncryptionService.generate_salt()
        assert service.seal("{}", PASSWORD, salt) != service.seal("{}", PASSWORD, salt)

    @pytest.mark.parametrize("sealed", ["", "no-delimiter", "abc:", ":abc", "!!:??", "c2FsdA==:YQ=="])
    def test_malformed(self, service, sealed):
        with pytest.raises(DecryptionError):
            service.open(sealed, PASSWORD)

    def test_salt_has_no_delimiter(self):
        assert ":" not in EncryptionService.generate_salt()


class TestEngineMain:
    def test_create(self, workdir, capsys):
        assert main(["create", PASSWORD, PASSWORD]) == 0

        vault = (workdir / ".passlock.vault").read_text()
        salt, _, ciphertext = vault.partition(":")
        assert salt and ciphertext
        handoff = json.loads((workdir / ".passlock.temp").read_text())
        assert handoff == {"entries": [], "salt": salt}
        assert capsys.readouterr().out.startswith("ok:")

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_files_are_private(self, workdir):
        main(["create", PASSWORD, PASSWORD])

        assert (workdir / ".passlock.vault").stat().st_mode & 0o777 == 0o600
        assert (workdir / ".passlock.temp").stat().st_mode & 0o777 == 0o600

    def test_create_refuses_existing_vault(self, workdir, capsys):
        main(["create", PASSWORD, PASSWORD])
        before = (workdir / ".passlock.vault").read_text()

        assert main(["create", "other", "other"]) == 1
        assert (workdir / ".passlock.vault").read_text() == before
        assert "Error:" in capsys.readouterr().err

    def test_create_mismatch(self, workdir):
        assert main(["create", PASSWORD, "different"]) == 1
        assert not (workdir / ".passlock.vault").exists()

    def test_unlock(self, workdir):
        main(["create", PASSWORD, PASSWORD])
        (workdir / ".passlock.temp").unlink()

        assert main(["unlock", PASSWORD]) == 0
        assert json.loads((workdir / ".passlock.temp").read_text())["entries"] == []

    def test_unlock_wrong_password_writes_nothing(self, workdir):
        main(["create", PASSWORD, PASSWORD])
        (workdir / ".passlock.temp").unlink()

        assert main(["unlock", "wrong"]) == 1
        assert not (workdir / ".passlock.temp").exists()

    def test_unlock_without_vault(self, workdir):
        assert main(["unlock", PASSWORD]) == 1

    def test_sync_round_trip(self, workdir):
        main(["create", PASSWORD, PASSWORD])
        salt = (workdir / ".passlock.vault").read_text().partition(":")[0]
        document = {"entries": [{"id": "a1", "name": "github"}], "salt": salt}
        (workdir / ".passlock.temp").write_text(json.dumps(document))

        assert main(["sync", PASSWORD]) == 0
        (workdir / ".passlock.temp").unlink()
        assert main(["unlock", PASSWORD]) == 0

        restored = json.loads((workdir / ".passlock.temp").read_text())
        assert restored["entries"] == [{"id": "a1", "name": "github"}]
        assert (workdir / ".passlock.vault").read_text().startswith(salt + ":")

    def test_sync_wrong_password_keeps_vault(self, workdir):
        main(["create", PASSWORD, PASSWORD])
        before = (workdir / ".passlock.vault").read_text()

        assert main(["sync", "wrong"]) == 1
        assert (workdir / ".passlock.vault").read_text() == before

    def test_sync_without_handoff(self, workdir):
        main(["create", PASSWORD, PASSWORD])
        (workdir / ".passlock.temp").unlink()

        assert main(["sync", PASSWORD]) == 1

    @pytest.mark.parametrize("argv", [[], ["create"], ["destroy", PASSWORD]])
    def test_usage_errors(self, workdir, argv, capsys):
        assert main(argv) == 1
        assert "usage:" in capsys.readouterr().err
