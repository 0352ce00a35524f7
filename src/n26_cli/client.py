"""HTTP client for the N26 API with automatic session management."""

import logging
import time
from typing import Any, Callable, Self

import httpx

from n26_cli import __version__
from n26_cli.api.exceptions import N26APIError
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
    Transaction,
)
from n26_cli.api.transport import ApiCallContext, ApiTransport
from n26_cli.auth.auth_session import AuthSession
from n26_cli.auth.credential_store import CredentialStore, create_credential_store
from n26_cli.auth.device import DeviceIdentity, create_device_identity
from n26_cli.auth.login_credentials import resolve_credentials
from n26_cli.config import Settings, get_settings

logger = logging.getLogger(__name__)


class N26Client:
    """Synchronous client for the N26 API.

    Opening the client (``with N26Client() as client:``) reuses the stored
    session without any network call, or logs in when there is none. Every
    call made afterwards is replayed once, transparently, if the server
    reports the access token invalid.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        store: CredentialStore | None = None,
        device: DeviceIdentity | None = None,
        credentials: tuple[str, str] | None = None,
        http_client: httpx.Client | None = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the client.

        Args:
            settings: Configuration, defaults to the global settings
            store: Session store, defaults to the one selected in settings
            device: Device identity, defaults to the one selected in settings
            credentials: (username, password); defaults to settings, then keyring
            http_client: Pre-configured HTTP client (its base URL must point at the API)
            clock: Returns the current time as epoch seconds
        """
        self.settings = settings or get_settings()
        self.auto_collect = self.settings.auto_collect
        self._store = store or create_credential_store(self.settings)
        self._device = device or create_device_identity(self.settings)

        self.auth = AuthSession(
            self._store,
            credentials if credentials is not None else self._configured_credentials,
            strict_store=self.settings.strict_store,
            mfa_wait=self.settings.mfa_wait,
            mfa_max_wait=self.settings.mfa_max_wait,
            clock=clock,
        )
        self._client = http_client
        self._owns_client = http_client is None
        self._transport: ApiTransport | None = None

    def _configured_credentials(self) -> tuple[str, str] | None:
        return resolve_credentials(self.settings)

    def open(self, authenticate: bool = True) -> Self:
        """Create the HTTP client and, unless told otherwise, authenticate."""
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.settings.base_url,
                headers={"User-Agent": f"N26-CLI/{__version__}"},
                timeout=self.settings.timeout,
            )
        self._transport = ApiTransport(self._client, self._device, self.auth.get_access_token)
        self.auth.attach(self._transport)

        if authenticate:
            try:
                self.auth.start()
            except Exception:
                self.close()
                raise
        return self

    def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None
        self._transport = None

    def __enter__(self) -> Self:
        """Enter context manager, creating HTTP client and authenticating."""
        return self.open()

    def __exit__(self, *args) -> None:
        """Exit context manager, closing HTTP client."""
        self.close()

    def _check_client(self) -> ApiTransport:
        """Ensure client is initialized."""
        if self._transport is None:
            raise RuntimeError("Client not initialized - use 'with' context manager")
        return self._transport

    def call_api(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        basic: bool = False,
        method: str = "GET",
        json: bool = False,
    ) -> Any:
        """Make an API call and return the decoded JSON.

        Raises:
            N26APIError: If the server answers with an error
        """
        transport = self._check_client()
        response = transport.request(
            ApiCallContext(path, params, basic=basic, method=method, json=json)
        )

        if response.error:
            detail = response.error_description
            message = f"{response.error}: {detail}" if detail else response.error
            logger.error(f"API error on {path}: {message}")
            raise N26APIError(message, response.status_code)

        if response.status_code >= 400:
            logger.error(f"API error: {response.status_code} on {path}")
            raise N26APIError(f"API request failed ({response.status_code})", response.status_code)

        return response.data

    def _extract_items(self, data: Any, key: str | None = None) -> list:
        """Extract the list from responses that wrap it in an object."""
        if isinstance(data, dict):
            if key and key in data:
                return data[key] or []
            return data.get("data", [])
        return data or []

    def _collect(self, data: Any, model: type[N26Model], key: str | None = None) -> Any:
        """Parse into models when auto_collect is on, otherwise pass through."""
        if not self.auto_collect:
            return data
        if isinstance(data, list) or key is not None:
            return [model.model_validate(item) for item in self._extract_items(data, key)]
        return model.model_validate(data)

    def get_me(self, full: bool = False) -> Me | dict:
        """Get the logged-in user."""
        data = self.call_api("/api/me", {"full": "true"} if full else None)
        if full and self.auto_collect and isinstance(data, dict) and "userInfo" in data:
            return Me.model_validate({**data, **data["userInfo"]})
        return self._collect(data, Me)

    def get_spaces(self) -> list[Space] | dict:
        """Get spaces (sub-accounts)."""
        return self._collect(self.call_api("/api/spaces"), Space, key="spaces")

    def get_cards(self) -> list[Card] | list:
        return self._collect(self.call_api("/api/v2/cards"), Card)

    def get_card(self, card_id: str) -> Card | dict:
        return self._collect(self.call_api(f"/api/cards/{card_id}"), Card)

    def get_accounts(self) -> Account | dict:
        """Get the main account with its balances."""
        return self._collect(self.call_api("/api/accounts"), Account)

    def get_addresses(self) -> list[Address] | dict:
        return self._collect(self.call_api("/api/addresses"), Address, key="data")

    def get_address(self, address_id: str) -> Address | dict:
        return self._collect(self.call_api(f"/api/addresses/{address_id}"), Address)

    def get_transactions(
        self, params: dict[str, Any] | None = None, **kwargs: Any
    ) -> list[Transaction] | list:
        """Get transactions.

        Args:
            params: Query parameters, e.g. ``{"limit": 20, "from": <ms>, "to": <ms>}``
            **kwargs: Further query parameters, merged over ``params``
        """
        return self.get_smrt_transactions({**(params or {}), **kwargs})

    def get_smrt_transactions(self, params: dict[str, Any] | None = None) -> list[Transaction] | list:
        return self._collect(
            self.call_api("/api/smrt/transactions", params or None), Transaction
        )

    def get_transaction(self, transaction_id: str) -> Transaction | dict:
        return self._collect(self.call_api(f"/api/transactions/{transaction_id}"), Transaction)

    def get_smrt_transaction(self, transaction_id: str) -> Transaction | dict:
        return self._collect(
            self.call_api(f"/api/smrt/transactions/{transaction_id}"), Transaction
        )

    def get_recipients(self) -> list[Recipient] | list:
        return self._collect(self.call_api("/api/transactions/recipients"), Recipient)

    def get_contacts(self) -> list[Contact] | list:
        return self._collect(self.call_api("/api/smrt/contacts"), Contact)

    def get_categories(self) -> list[Category] | list:
        return self._collect(self.call_api("/api/smrt/categories"), Category)

    def get_features_countries(self, country: str) -> Any:
        """Get the features available in a country (raw JSON)."""
        return self.call_api(f"/api/features/countries/{country}")

    def make_transfer(
        self,
        amount: float,
        pin: str,
        bic: str,
        iban: str,
        name: str,
        reference: str,
    ) -> Any:
        """Send a SEPA transfer from the main account.

        Returns:
            The raw API response describing the created transaction.
        """
        return self.call_api(
            "/api/transactions",
            {
                "pin": pin,
                "transaction": {
                    "partnerBic": bic,
                    "amount": amount,
                    "type": "DT",
                    "partnerIban": iban,
                    "partnerName": name,
                    "referenceText": reference,
                },
            },
            method="POST",
            json=True,
        )
