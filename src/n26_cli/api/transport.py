"""HTTP transport for the N26 API.

One request at a time, with the right headers for either the fixed client
credential (token and MFA endpoints) or the user's bearer token (everything
else). The transport never retries on its own; the single recovery path is a
rejected bearer token, which it hands to the registered refresh handler.
"""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Mapping

import httpx

from n26_cli.api.exceptions import NotAuthenticatedError, RateLimitedError, TransportError
from n26_cli.api.models.auth import INVALID_TOKEN

if TYPE_CHECKING:
    from n26_cli.auth.device import DeviceIdentity

logger = logging.getLogger(__name__)

# Fixed client credential of the official web client ("my-trusted-wdpClient:secret")
BASIC_AUTH_CREDENTIAL = "Basic bXktdHJ1c3RlZC13ZHBDbGllbnQ6c2VjcmV0"
DEVICE_TOKEN_HEADER = "device-token"

RATE_LIMIT_MESSAGE = "N26: Too many log-in attempts. Please try again in 30 minutes."
DEFAULT_RETRY_AFTER_SEC = 1800


@dataclass(frozen=True)
class ApiCallContext:
    """Everything needed to issue (and later replay) one API call."""

    path: str
    payload: Mapping[str, Any] | None = None
    basic: bool = False
    method: str = "GET"
    json: bool = False


@dataclass
class ApiResponse:
    """Decoded API response."""

    data: Any
    status_code: int
    headers: Mapping[str, str] = field(default_factory=dict)
    bearer_token: str | None = None

    @property
    def error(self) -> str | None:
        """The ``error`` field of an error envelope, if any."""
        if isinstance(self.data, dict) and self.data.get("error"):
            return str(self.data["error"])
        return None

    @property
    def error_description(self) -> str | None:
        if not isinstance(self.data, dict):
            return None
        return self.data.get("error_description") or self.data.get("detail")

    @property
    def stale_token(self) -> bool:
        """True when the server rejected the bearer token as invalid."""
        return self.error == INVALID_TOKEN


RefreshHandler = Callable[[ApiCallContext, str | None], ApiResponse]


class ApiTransport:
    """Builds, sends and decodes single API calls."""

    def __init__(
        self,
        client: httpx.Client,
        device: "DeviceIdentity",
        token_provider: Callable[[], str | None],
    ):
        """Initialize the transport.

        Args:
            client: HTTP client with the API base URL configured
            device: Source of the device-token header
            token_provider: Returns the current access token, or None
        """
        self._client = client
        self._device = device
        self._token_provider = token_provider
        self._refresh_handler: RefreshHandler | None = None

    def set_refresh_handler(self, handler: RefreshHandler | None) -> None:
        """Register the callback that renews the session and replays a call."""
        self._refresh_handler = handler

    def build_headers(self, ctx: ApiCallContext) -> tuple[dict[str, str], str | None]:
        """Build request headers.

        Returns:
            The headers and the bearer token they carry (None for basic calls).
        """
        bearer = None
        if ctx.basic:
            authorization = BASIC_AUTH_CREDENTIAL
        else:
            bearer = self._token_provider()
            if not bearer:
                raise NotAuthenticatedError()
            authorization = f"Bearer {bearer}"

        headers = {
            "Authorization": authorization,
            "Accept": "*/*",
            DEVICE_TOKEN_HEADER: self._device.get(),
        }
        if ctx.json:
            headers["Content-Type"] = "application/json"
        return headers, bearer

    def _request_kwargs(self, ctx: ApiCallContext) -> dict[str, Any]:
        payload = dict(ctx.payload) if ctx.payload else None
        kwargs: dict[str, Any] = {}
        if payload is None:
            return kwargs

        if ctx.method.upper() == "GET":
            kwargs["params"] = payload
            return kwargs

        # The token endpoint reads its parameters from the query string
        if ctx.basic:
            kwargs["params"] = payload
        if ctx.json:
            kwargs["json"] = payload
        elif not ctx.basic:
            kwargs["data"] = payload
        return kwargs

    def _decode(self, response: httpx.Response) -> Any:
        if not response.content.strip():
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Undecodable response: {response.status_code} - {response.text[:200]}")
            raise TransportError(
                f"Could not decode API response ({response.status_code})",
                response.status_code,
            ) from e

    def send(self, ctx: ApiCallContext) -> ApiResponse:
        """Issue one call without any recovery.

        Raises:
            RateLimitedError: On HTTP 429
            TransportError: On network failure or an undecodable body
            NotAuthenticatedError: For a bearer call without a session
        """
        headers, bearer = self.build_headers(ctx)
        logger.debug(f"{ctx.method} {ctx.path} ({'basic' if ctx.basic else 'bearer'})")

        try:
            response = self._client.request(
                ctx.method.upper(), ctx.path, headers=headers, **self._request_kwargs(ctx)
            )
        except httpx.RequestError as e:
            logger.error(f"Network error during {ctx.method} {ctx.path}: {e}")
            raise TransportError(f"Network error during {ctx.method} {ctx.path}: {e}") from e

        if response.status_code == 429:
            try:
                retry_after = int(response.headers.get("Retry-After", DEFAULT_RETRY_AFTER_SEC))
            except ValueError:
                retry_after = DEFAULT_RETRY_AFTER_SEC
            logger.warning(f"Rate limited on {ctx.path}")
            raise RateLimitedError(RATE_LIMIT_MESSAGE, retry_after)

        return ApiResponse(
            data=self._decode(response),
            status_code=response.status_code,
            headers=response.headers,
            bearer_token=bearer,
        )

    def request(self, ctx: ApiCallContext) -> ApiResponse:
        """Issue a call, renewing the session once if the token is rejected."""
        response = self.send(ctx)
        if response.stale_token and self._refresh_handler is not None:
            logger.info(f"Access token rejected on {ctx.path}, refreshing session")
            return self._refresh_handler(ctx, response.bearer_token)
        return response
