"""Authentication module for N26 CLI."""

from n26_cli.auth.auth_session import AuthSession, AuthState
from n26_cli.auth.credential_store import (
    CredentialStore,
    FileCredentialStore,
    KeyringCredentialStore,
    MemoryCredentialStore,
    create_credential_store,
    generate_key,
)
from n26_cli.auth.device import (
    DeviceIdentity,
    FileKeyValueStore,
    KeyringKeyValueStore,
    KeyValueStore,
    MemoryKeyValueStore,
    create_device_identity,
)
from n26_cli.auth.login_credentials import (
    clear_credentials,
    get_credentials,
    has_stored_credentials,
    resolve_credentials,
    store_credentials,
)
from n26_cli.auth.session import Session

__all__ = [
    # Session state machine
    "AuthSession",
    "AuthState",
    "Session",
    # Session storage
    "CredentialStore",
    "FileCredentialStore",
    "KeyringCredentialStore",
    "MemoryCredentialStore",
    "create_credential_store",
    "generate_key",
    # Device identity
    "DeviceIdentity",
    "KeyValueStore",
    "FileKeyValueStore",
    "KeyringKeyValueStore",
    "MemoryKeyValueStore",
    "create_device_identity",
    # Login credentials (keyring)
    "store_credentials",
    "get_credentials",
    "clear_credentials",
    "has_stored_credentials",
    "resolve_credentials",
]
