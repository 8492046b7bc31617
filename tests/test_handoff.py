# Tests for the plaintext handoff store

import json
import sys

import pytest

from passlock.vault.errors import HandoffCorrupt, HandoffUnavailable
from passlock.vault.handoff import HANDOFF_MODE, HandoffStore
from passlock.vault.models import Entry, Vault


@pytest.fixture
def store(tmp_path):
    return HandoffStore(tmp_path / ".passlock.temp")


def _vault():
    return Vault(
        salt="c2FsdA==",
        entries=[
            Entry(id="a1", name="github", username="bob", password="pw1", tags=["work"]),
            Entry(id="b2", name="mail", username="bob@example.com", password="pw2"),
        ],
    )


class TestWrite:
    def test_write_then_read(self, store):
        store.write(_vault())
        loaded = store.read()

        assert loaded.salt == "c2FsdA=="
        assert [e.id for e in loaded.entries] == ["a1", "b2"]
        assert loaded.entries[0].tags == ["work"]

    def test_document_shape(self, store):
        store.write(_vault())
        data = json.loads(store.path.read_text())

        assert set(data) == {"entries", "salt"}
        assert data["entries"][1]["username"] == "bob@example.com"

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_owner_only_permissions(self, store):
        store.write(_vault())
        assert store.permissions() == HANDOFF_MODE

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_existing_file_permissions_tightened(self, store):
        store.path.write_text("{}")
        store.path.chmod(0o644)

        store.write(_vault())

        assert store.permissions() == 0o600

    def test_no_temp_file_left_behind(self, store):
        store.write(_vault())
        assert not store.path.with_name(store.path.name + ".tmp").exists()

    def test_unwritable_directory_raises_oserror(self, tmp_path):
        store = HandoffStore(tmp_path / "missing-dir" / ".passlock.temp")
        with pytest.raises(OSError):
            store.write(_vault())


class TestRead:
    def test_missing_file(self, store):
        with pytest.raises(HandoffUnavailable):
            store.read()

    def test_invalid_json(self, store):
        store.path.write_text("{not json")
        with pytest.raises(HandoffCorrupt):
            store.read()

    def test_invalid_utf8(self, store):
        store.path.write_bytes(b'{"entries": [], "salt": "\xff\xfe"}')
        with pytest.raises(HandoffCorrupt):
            store.read()

    def test_wrong_shape(self, store):
        store.path.write_text(json.dumps(["entries"]))
        with pytest.raises(HandoffCorrupt):
            store.read()

    def test_missing_salt(self, store):
        store.path.write_text(json.dumps({"entries": []}))
        with pytest.raises(HandoffCorrupt):
            store.read()

    def test_entry_missing_field(self, store):
        store.path.write_text(json.dumps({
            "salt": "s",
            "entries": [{"id": "x", "name": "n", "username": "u"}],
        }))
        with pytest.raises(HandoffCorrupt):
            store.read()

    def test_duplicate_ids(self, store):
        entry = {"id": "x", "name": "n", "username": "u", "password": "p"}
        store.path.write_text(json.dumps({"salt": "s", "entries": [entry, entry]}))
        with pytest.raises(HandoffCorrupt):
            store.read()

    def test_engine_written_empty_vault(self, store):
        store.path.write_text(json.dumps({"entries": [], "salt": "abc"}))
        vault = store.read()

        assert vault.entries == []
        assert vault.salt == "abc"

    def test_optional_fields_default(self, store):
        store.path.write_text(json.dumps({
            "salt": "s",
            "entries": [{"id": "x", "name": "n", "username": "u", "password": "p"}],
        }))
        entry = store.read().entries[0]

        assert entry.url == ""
        assert entry.notes == ""
        assert entry.tags == []
        assert entry.history == []


class TestDiscard:
    def test_discard_removes_file(self, store):
        store.write(_vault())

        assert store.discard() is True
        assert not store.exists()
        assert store.permissions() is None

    def test_discard_missing_is_noop(self, store):
        assert store.discard() is False

    def test_discard_removes_leftover_temp(self, store):
        leftover = store.path.with_name(store.path.name + ".tmp")
        leftover.write_text("partial")

        assert store.discard() is True
        assert not leftover.exists()
