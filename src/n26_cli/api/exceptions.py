"""Exceptions for the N26 API client."""


class N26APIError(Exception):
    """Base exception for N26 API errors."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class AuthRejectedError(N26APIError):
    """The server explicitly refused the credentials or tokens."""

    def __init__(self, code: str, detail: str | None = None, status_code: int | None = None):
        message = f"{code}: {detail}" if detail else code
        super().__init__(message, status_code)
        self.code = code
        self.detail = detail


class MfaTimeoutError(N26APIError):
    """The second factor was not approved in time."""

    def __init__(self, message: str = "2FA request expired. Please log in again."):
        super().__init__(message)


class MfaCancelledError(MfaTimeoutError):
    """Waiting for the second factor was cancelled."""

    def __init__(self, message: str = "2FA approval was cancelled."):
        super().__init__(message)


class RateLimitedError(N26APIError):
    """Too many requests; the server asks us to back off."""

    def __init__(self, message: str, retry_after: int = 1800):
        super().__init__(message, 429)
        self.retry_after = retry_after


class CorruptStoreError(N26APIError):
    """The persisted session is missing, unreadable or could not be decrypted."""


class TransportError(N26APIError):
    """Network failure or an undecodable response."""


class NotAuthenticatedError(N26APIError):
    """No session and no credentials to obtain one."""

    def __init__(self, message: str | None = None):
        super().__init__(
            message
            or "Not authenticated. Set N26_USERNAME and N26_PASSWORD or run 'n26 login'."
        )
