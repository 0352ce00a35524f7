"""Shared authentication constants."""

from n26_cli.api.models.auth import INVALID_GRANT, INVALID_TOKEN

# Endpoints, relative to the API base URL
TOKEN_PATH = "/oauth/token"
MFA_CHALLENGE_PATH = "/api/mfa/challenge"

# Grant types accepted by the token endpoint
GRANT_PASSWORD = "password"
GRANT_MFA_OOB = "mfa_oob"
GRANT_REFRESH_TOKEN = "refresh_token"

MFA_CHALLENGE_TYPE = "oob"

# Token endpoint errors meaning the refresh token itself is dead
REFRESH_TOKEN_INVALID_ERRORS = frozenset({INVALID_GRANT, INVALID_TOKEN})

# MFA polling defaults (seconds)
DEFAULT_MFA_WAIT_SEC = 5
DEFAULT_MFA_MAX_WAIT_SEC = 60

# Key of the device token in its key/value store
DEVICE_TOKEN_KEY = "device_token"

# Keyring service name and entry for the session
KEYRING_SERVICE = "n26-cli"
SESSION_KEYRING_KEY = "session"
