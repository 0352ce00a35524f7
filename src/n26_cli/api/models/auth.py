"""Token endpoint response models.

The token endpoint answers with either a token pair or an error envelope.
Both are modelled as values so callers can branch on the outcome without
exceptions.
"""

from typing import Any

from pydantic import Field, ValidationError

from n26_cli.api.models.base import N26Model

# Upper bound for a token lifetime; larger values cannot be stored as a timestamp
MAX_EXPIRES_IN_SEC = 10 * 365 * 24 * 3600

MFA_REQUIRED = "mfa_required"
INVALID_TOKEN = "invalid_token"
INVALID_GRANT = "invalid_grant"


class TokenGrant(N26Model):
    """Successful token exchange."""

    access_token: str = Field(min_length=1)
    refresh_token: str = Field(min_length=1)
    expires_in: int = Field(default=1800, ge=0, le=MAX_EXPIRES_IN_SEC)


class TokenError(N26Model):
    """Error envelope returned by the token endpoint."""

    error: str
    error_description: str | None = None
    detail: str | None = None
    mfa_token: str | None = Field(default=None, alias="mfaToken")

    @property
    def description(self) -> str | None:
        """Human readable error text, whichever field the server used."""
        return self.error_description or self.detail

    @property
    def is_mfa_required(self) -> bool:
        return self.error == MFA_REQUIRED and bool(self.mfa_token)


def parse_token_response(data: Any) -> TokenGrant | TokenError | None:
    """Classify a decoded token endpoint response.

    Returns:
        TokenGrant for a usable token pair, TokenError for an error envelope,
        or None when the body is neither (e.g. an MFA poll that is still pending
        without an error field).
    """
    if not isinstance(data, dict):
        return None
    if data.get("error"):
        return TokenError.model_validate(data)
    if "access_token" in data:
        try:
            return TokenGrant.model_validate(data)
        except ValidationError:
            return TokenError(
                error="invalid_response",
                error_description="Token response without a complete token pair",
            )
    return None
