"""Per-installation device identity.

N26 associates every request with a device through the ``device-token``
header. The token is generated once and must stay the same for the lifetime
of the installation: a new value looks like an unknown device to the server
and may trigger extra verification.

The token lives in a small key/value store passed in by the caller, so the
same code runs against the OS keyring, a JSON file, or memory in tests.
"""

import json
import logging
import os
import stat
import threading
import uuid
from abc import ABC, abstractmethod
from pathlib import Path

import keyring
import keyring.errors

from n26_cli.auth.constants import DEVICE_TOKEN_KEY, KEYRING_SERVICE

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Minimal persistent string key/value store with unbounded retention."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value or None."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store a value forever."""


class MemoryKeyValueStore(KeyValueStore):
    """Process-local store, mostly for tests and embedding."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class FileKeyValueStore(KeyValueStore):
    """JSON file store, written atomically with owner-only permissions."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        with open(self.path) as f:
            data = json.load(f)
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> str | None:
        with self._lock:
            value = self._read().get(key)
        return str(value) if value is not None else None

    def set(self, key: str, value: str) -> None:
        with self._lock:
            try:
                data = self._read()
            except (json.JSONDecodeError, OSError):
                data = {}
            data[key] = value

            self.path.parent.mkdir(parents=True, exist_ok=True)
            temp_file = self.path.with_suffix(self.path.suffix + ".tmp")
            with open(temp_file, "w") as f:
                json.dump(data, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(temp_file, stat.S_IRUSR | stat.S_IWUSR)  # 0600
            temp_file.replace(self.path)


class KeyringKeyValueStore(KeyValueStore):
    """Store backed by the OS keyring."""

    def __init__(self, service: str = KEYRING_SERVICE):
        self.service = service

    def get(self, key: str) -> str | None:
        return keyring.get_password(self.service, key)

    def set(self, key: str, value: str) -> None:
        keyring.set_password(self.service, key, value)


class DeviceIdentity:
    """Hands out the installation's device token, creating it on first use."""

    def __init__(self, store: KeyValueStore, key: str = DEVICE_TOKEN_KEY):
        self._store = store
        self._key = key
        self._token: str | None = None
        self._lock = threading.Lock()

    def get(self) -> str:
        """Return the device token, generating and persisting it if needed.

        Never raises: when the store cannot be read or written, the token is
        kept for this process only and the failure is logged.
        """
        with self._lock:
            if self._token is not None:
                return self._token

            try:
                stored = self._store.get(self._key)
            except (OSError, ValueError, keyring.errors.KeyringError) as e:
                logger.error(f"Could not read device token, server may not recognise this device: {e}")
                stored = None

            if stored:
                self._token = stored
                return self._token

            self._token = str(uuid.uuid4())
            try:
                self._store.set(self._key, self._token)
                logger.info("Generated new device token")
            except (OSError, ValueError, keyring.errors.KeyringError) as e:
                logger.error(
                    f"Could not persist device token, using it for this process only: {e}"
                )
            return self._token


def create_device_identity(settings) -> DeviceIdentity:
    """Build a DeviceIdentity for the configured backend."""
    if settings.device_backend == "keyring":
        return DeviceIdentity(KeyringKeyValueStore())
    if settings.device_backend == "memory":
        return DeviceIdentity(MemoryKeyValueStore())
    return DeviceIdentity(FileKeyValueStore(settings.device_file))
