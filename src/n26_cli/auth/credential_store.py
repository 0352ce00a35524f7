"""Session persistence.

Provides interchangeable backends behind one interface:
1. FileCredentialStore: JSON file, optionally Fernet-encrypted at rest
   - Written to a temp file and atomically renamed into place
   - Owner-only (0600) permissions
2. KeyringCredentialStore: single entry in the OS keyring
3. MemoryCredentialStore: no persistence, for tests and one-shot runs

The encryption key is never derived or stored here; it has to be supplied
out of band (``N26_ENCRYPTION_KEY``).
"""

import json
import logging
import os
import stat
import threading
from abc import ABC, abstractmethod
from pathlib import Path

import keyring
import keyring.errors
from cryptography.fernet import Fernet, InvalidToken

from n26_cli.api.exceptions import CorruptStoreError
from n26_cli.auth.constants import KEYRING_SERVICE, SESSION_KEYRING_KEY
from n26_cli.auth.session import Session

logger = logging.getLogger(__name__)


def generate_key() -> str:
    """Generate a new key suitable for ``encryption_key``."""
    return Fernet.generate_key().decode()


def _decode_session(raw: str, source: str) -> Session:
    try:
        return Session.from_dict(json.loads(raw))
    except (KeyError, TypeError, ValueError, OverflowError, OSError) as e:
        # Out-of-range expiry values fail with OverflowError or OSError
        raise CorruptStoreError(f"Failed to parse stored session from {source}: {e}") from e


def _encode_session(session: Session) -> str:
    return json.dumps(session.to_dict())


class CredentialStore(ABC):
    """Abstract base class for session storage backends."""

    @abstractmethod
    def exists(self) -> bool:
        """Check if a session is stored."""

    @abstractmethod
    def load(self) -> Session:
        """Load the stored session.

        Raises:
            CorruptStoreError: If nothing is stored or it cannot be read.
        """

    @abstractmethod
    def save(self, session: Session) -> None:
        """Replace the stored session."""

    @abstractmethod
    def delete(self) -> bool:
        """Delete the stored session.

        Returns:
            True if a session was removed.
        """


class MemoryCredentialStore(CredentialStore):
    """Keeps the serialized session in memory only."""

    def __init__(self):
        self._blob: str | None = None
        self._lock = threading.Lock()

    def exists(self) -> bool:
        return self._blob is not None

    def load(self) -> Session:
        with self._lock:
            blob = self._blob
        if blob is None:
            raise CorruptStoreError("No session stored in memory")
        return _decode_session(blob, "memory")

    def save(self, session: Session) -> None:
        with self._lock:
            self._blob = _encode_session(session)

    def delete(self) -> bool:
        with self._lock:
            existed = self._blob is not None
            self._blob = None
        return existed


class FileCredentialStore(CredentialStore):
    """Session file, plain JSON or Fernet-encrypted."""

    def __init__(self, path: Path, encryption_key: str | bytes | None = None):
        """Initialize file storage.

        Args:
            path: Location of the session file
            encryption_key: Fernet key; when given, the file is encrypted

        Raises:
            ValueError: If the encryption key is not a valid Fernet key
        """
        self.path = Path(path)
        self._fernet = Fernet(encryption_key) if encryption_key else None
        self._lock = threading.Lock()

    @property
    def encrypted(self) -> bool:
        return self._fernet is not None

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> Session:
        with self._lock:
            try:
                data = self.path.read_bytes()
            except OSError as e:
                raise CorruptStoreError(f"Failed to load session from {self.path}: {e}") from e

        if self._fernet is not None:
            try:
                data = self._fernet.decrypt(data)
            except InvalidToken as e:
                raise CorruptStoreError(
                    f"Failed to decrypt session file {self.path} (corrupted or key changed)"
                ) from e

        try:
            raw = data.decode()
        except UnicodeDecodeError as e:
            raise CorruptStoreError(f"Session file {self.path} is not text: {e}") from e
        return _decode_session(raw, str(self.path))

    def save(self, session: Session) -> None:
        data = _encode_session(session).encode()
        if self._fernet is not None:
            data = self._fernet.encrypt(data)

        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            temp_file = self.path.with_name(self.path.name + ".tmp")
            with open(temp_file, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())

            # Set restrictive permissions before moving to final location
            os.chmod(temp_file, stat.S_IRUSR | stat.S_IWUSR)  # 0600
            temp_file.replace(self.path)
        logger.debug(f"Session saved to {self.path}")

    def delete(self) -> bool:
        with self._lock:
            try:
                self.path.unlink()
            except FileNotFoundError:
                return False
        logger.debug(f"Session file {self.path} removed")
        return True


class KeyringCredentialStore(CredentialStore):
    """Session stored as one OS keyring entry."""

    def __init__(self, service: str = KEYRING_SERVICE, key: str = SESSION_KEYRING_KEY):
        self._service = service
        self._key = key

    def exists(self) -> bool:
        try:
            return keyring.get_password(self._service, self._key) is not None
        except keyring.errors.KeyringError:
            return False

    def load(self) -> Session:
        try:
            data = keyring.get_password(self._service, self._key)
        except keyring.errors.KeyringError as e:
            raise CorruptStoreError(f"Failed to access keyring: {e}") from e
        if data is None:
            raise CorruptStoreError("No session stored in keyring")
        return _decode_session(data, "keyring")

    def save(self, session: Session) -> None:
        keyring.set_password(self._service, self._key, _encode_session(session))
        logger.debug("Session saved to keyring")

    def delete(self) -> bool:
        try:
            keyring.delete_password(self._service, self._key)
            return True
        except keyring.errors.PasswordDeleteError:
            return False


def create_credential_store(settings) -> CredentialStore:
    """Create the session store selected in settings."""
    if not settings.store_connection:
        return MemoryCredentialStore()
    if settings.store_backend == "keyring":
        return KeyringCredentialStore()
    key = settings.encryption_key.get_secret_value() if settings.encryption_key else None
    return FileCredentialStore(settings.store_path, encryption_key=key)
