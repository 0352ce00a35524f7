"""API module for N26 CLI."""

from n26_cli.api.exceptions import (
    AuthRejectedError,
    CorruptStoreError,
    MfaCancelledError,
    MfaTimeoutError,
    N26APIError,
    NotAuthenticatedError,
    RateLimitedError,
    TransportError,
)
from n26_cli.api.models import (
    Account,
    Address,
    Card,
    Category,
    Contact,
    Me,
    N26Model,
    Recipient,
    Space,
    TokenError,
    TokenGrant,
    Transaction,
)
from n26_cli.api.transport import ApiCallContext, ApiResponse, ApiTransport

__all__ = [
    # Transport
    "ApiCallContext",
    "ApiResponse",
    "ApiTransport",
    # Exceptions
    "N26APIError",
    "AuthRejectedError",
    "MfaTimeoutError",
    "MfaCancelledError",
    "RateLimitedError",
    "CorruptStoreError",
    "TransportError",
    "NotAuthenticatedError",
    # Base model
    "N26Model",
    # Models
    "TokenGrant",
    "TokenError",
    "Me",
    "Account",
    "Space",
    "Address",
    "Card",
    "Transaction",
    "Recipient",
    "Contact",
    "Category",
]
