"""Tests for the device identity."""

import json
import logging
import os
import stat
import uuid
from unittest.mock import patch

import keyring.errors
import pytest

from n26_cli.auth.device import (
    DeviceIdentity,
    FileKeyValueStore,
    KeyringKeyValueStore,
    KeyValueStore,
    MemoryKeyValueStore,
    create_device_identity,
)
from n26_cli.config import Settings


class BrokenStore(KeyValueStore):
    """Store whose every access fails."""

    def __init__(self):
        self.writes = 0

    def get(self, key):
        raise OSError("disk on fire")

    def set(self, key, value):
        self.writes += 1
        raise OSError("disk on fire")


class TestDeviceIdentity:
    """Tests for DeviceIdentity."""

    def test_generates_uuid(self):
        """First use generates a UUID4 and stores it."""
        store = MemoryKeyValueStore()
        token = DeviceIdentity(store).get()

        assert uuid.UUID(token).version == 4
        assert store.get("device_token") == token

    def test_stable_across_instances(self):
        """Two identities over the same store agree."""
        store = MemoryKeyValueStore()

        first = DeviceIdentity(store).get()
        second = DeviceIdentity(store).get()

        assert first == second

    def test_reuses_existing_token(self):
        """An existing token is returned untouched."""
        store = MemoryKeyValueStore({"device_token": "existing"})

        assert DeviceIdentity(store).get() == "existing"

    def test_stable_across_file_store_instances(self, tmp_path):
        """Token persists through the file store like across process restarts."""
        path = tmp_path / "device.json"

        first = DeviceIdentity(FileKeyValueStore(path)).get()
        second = DeviceIdentity(FileKeyValueStore(path)).get()

        assert first == second
        assert json.loads(path.read_text()) == {"device_token": first}

    def test_failing_store_still_returns_token(self, caplog):
        """Store failures are logged, never raised, and the token is stable in-process."""
        store = BrokenStore()
        identity = DeviceIdentity(store)

        with caplog.at_level(logging.ERROR, logger="n26_cli.auth.device"):
            first = identity.get()
            second = identity.get()

        assert first == second
        assert store.writes == 1
        assert "device token" in caplog.text

    def test_custom_key(self):
        """The store key is configurable."""
        store = MemoryKeyValueStore()
        token = DeviceIdentity(store, key="other").get()

        assert store.get("other") == token
        assert store.get("device_token") is None


class TestFileKeyValueStore:
    """Tests for FileKeyValueStore."""

    def test_missing_file(self, tmp_path):
        assert FileKeyValueStore(tmp_path / "device.json").get("device_token") is None

    def test_keeps_other_keys(self, tmp_path):
        """Setting one key keeps the others."""
        store = FileKeyValueStore(tmp_path / "device.json")
        store.set("a", "1")
        store.set("b", "2")

        assert store.get("a") == "1"
        assert store.get("b") == "2"

    def test_permissions(self, tmp_path):
        """File is owner-only and written without leftovers."""
        path = tmp_path / "device.json"
        FileKeyValueStore(path).set("device_token", "abc")

        assert stat.S_IMODE(os.stat(path).st_mode) == 0o600
        assert [p.name for p in tmp_path.iterdir()] == ["device.json"]

    def test_corrupt_file_raises_on_read(self, tmp_path):
        """Unreadable JSON surfaces as ValueError for the identity to log."""
        path = tmp_path / "device.json"
        path.write_text("{not json")

        with pytest.raises(ValueError):
            FileKeyValueStore(path).get("device_token")

    def test_corrupt_file_replaced_on_write(self, tmp_path):
        """Identity over a corrupt file regenerates and rewrites it."""
        path = tmp_path / "device.json"
        path.write_text("{not json")

        token = DeviceIdentity(FileKeyValueStore(path)).get()

        assert json.loads(path.read_text()) == {"device_token": token}


class TestKeyringKeyValueStore:
    """Tests for KeyringKeyValueStore."""

    @patch("n26_cli.auth.device.keyring")
    def test_get_and_set(self, mock_keyring):
        mock_keyring.errors = keyring.errors
        mock_keyring.get_password.return_value = "stored"

        store = KeyringKeyValueStore()
        store.set("device_token", "value")

        mock_keyring.set_password.assert_called_once_with("n26-cli", "device_token", "value")
        assert store.get("device_token") == "stored"

    @patch("n26_cli.auth.device.keyring")
    def test_keyring_error_is_logged(self, mock_keyring, caplog):
        """Identity survives a locked keyring."""
        mock_keyring.errors = keyring.errors
        mock_keyring.get_password.side_effect = keyring.errors.KeyringError("locked")
        mock_keyring.set_password.side_effect = keyring.errors.KeyringError("locked")

        with caplog.at_level(logging.ERROR, logger="n26_cli.auth.device"):
            token = DeviceIdentity(KeyringKeyValueStore()).get()

        assert token
        assert "locked" in caplog.text


class TestCreateDeviceIdentity:
    """Tests for backend selection."""

    def test_file_backend(self, tmp_path):
        identity = create_device_identity(Settings(cache_dir=tmp_path))
        token = identity.get()

        assert json.loads((tmp_path / "device.json").read_text())["device_token"] == token

    def test_memory_backend(self, tmp_path):
        identity = create_device_identity(Settings(cache_dir=tmp_path, device_backend="memory"))

        assert identity.get()
        assert not (tmp_path / "device.json").exists()
