"""N26 API models.

Re-exports every model so callers can keep using
``from n26_cli.api.models import Account``.
"""

from n26_cli.api.models.account import Account, Address, Me, Space
from n26_cli.api.models.auth import TokenError, TokenGrant, parse_token_response
from n26_cli.api.models.base import N26Model
from n26_cli.api.models.cards import Card
from n26_cli.api.models.transactions import Category, Contact, Recipient, Transaction

__all__ = [
    # Base
    "N26Model",
    # Token endpoint
    "TokenGrant",
    "TokenError",
    "parse_token_response",
    # Account
    "Me",
    "Account",
    "Space",
    "Address",
    # Cards
    "Card",
    # Transactions
    "Transaction",
    "Recipient",
    "Contact",
    "Category",
]
