"""Secure storage of the N26 login for unattended re-authentication.

WARNING: Storing credentials is a security risk. Only enable with
explicit user consent. Credentials are stored in the OS keyring.

A dead refresh token forces a full password login. With a stored login the
client can do that on its own (the user still approves the MFA push);
without one, N26_USERNAME and N26_PASSWORD must be set.
"""

import logging

import keyring
import keyring.errors

logger = logging.getLogger(__name__)

# Separate service name from session storage to avoid confusion
CREDENTIAL_SERVICE = "n26-cli-credentials"


def store_credentials(username: str, password: str) -> None:
    """Store the login in the OS keyring."""
    keyring.set_password(CREDENTIAL_SERVICE, "username", username)
    keyring.set_password(CREDENTIAL_SERVICE, "password", password)
    logger.debug("Login credentials stored in keyring")


def get_credentials() -> tuple[str, str] | None:
    """Retrieve stored credentials.

    Returns:
        Tuple of (username, password) or None if not stored
    """
    try:
        username = keyring.get_password(CREDENTIAL_SERVICE, "username")
        password = keyring.get_password(CREDENTIAL_SERVICE, "password")
    except keyring.errors.KeyringError as e:
        logger.warning(f"Keyring unavailable, cannot read stored login: {e}")
        return None

    if username and password:
        return (username, password)
    return None


def clear_credentials() -> bool:
    """Remove stored credentials.

    Returns:
        True if credentials were cleared, False if they didn't exist
    """
    cleared = False
    for key in ("username", "password"):
        try:
            keyring.delete_password(CREDENTIAL_SERVICE, key)
            cleared = True
        except keyring.errors.PasswordDeleteError:
            pass

    if cleared:
        logger.debug("Login credentials cleared")

    return cleared


def has_stored_credentials() -> bool:
    """Check if both username and password are stored."""
    return get_credentials() is not None


def resolve_credentials(settings) -> tuple[str, str] | None:
    """Pick the login from settings, falling back to the keyring."""
    if settings.username and settings.password:
        return (settings.username, settings.password.get_secret_value())
    return get_credentials()
