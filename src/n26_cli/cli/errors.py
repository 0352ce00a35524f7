"""User-friendly error messages with actionable suggestions."""

from dataclasses import dataclass

from rich.console import Console
from rich.panel import Panel

from n26_cli.api.exceptions import (
    AuthRejectedError,
    CorruptStoreError,
    MfaTimeoutError,
    N26APIError,
    NotAuthenticatedError,
    RateLimitedError,
    TransportError,
)


@dataclass
class ErrorInfo:
    """Structured error information for display."""

    title: str
    message: str
    suggestion: str
    command: str | None = None


ERROR_MESSAGES = {
    "auth_rejected": ErrorInfo(
        title="Login refused",
        message="N26 refused the login or session: {detail}",
        suggestion="Check your e-mail and password and log in again",
        command="n26 login",
    ),
    "auth_required": ErrorInfo(
        title="Not logged in",
        message="No session and no credentials to create one.",
        suggestion="Set N26_USERNAME and N26_PASSWORD, or log in and store your login",
        command="n26 login --save",
    ),
    "mfa_timeout": ErrorInfo(
        title="Approval expired",
        message="The login was not approved in the N26 app in time.",
        suggestion="Log in again and approve the request on your phone.",
        command="n26 login",
    ),
    "rate_limit": ErrorInfo(
        title="Too many requests",
        message="N26 is rate limiting this account.",
        suggestion="Wait {retry_after} seconds before trying again. Retrying sooner extends the lockout.",
        command=None,
    ),
    "corrupt_store": ErrorInfo(
        title="Session file unreadable",
        message="The stored session could not be read or decrypted.",
        suggestion="Check N26_ENCRYPTION_KEY, or remove the stored session and log in again",
        command="n26 logout && n26 login",
    ),
    "network_error": ErrorInfo(
        title="Network error",
        message="Could not talk to the N26 API.",
        suggestion="Check your internet connection or try again later.",
        command=None,
    ),
    "server_error": ErrorInfo(
        title="N26 server error",
        message="The N26 server reported an error.",
        suggestion="This is probably temporary. Try again later.",
        command=None,
    ),
    "not_found": ErrorInfo(
        title="Not found",
        message="The requested data could not be found.",
        suggestion="Check the id you passed.",
        command=None,
    ),
    "unknown": ErrorInfo(
        title="Unexpected error",
        message="An unexpected error occurred.",
        suggestion="If this keeps happening, log out and log in again.",
        command="n26 logout && n26 login",
    ),
}


# First match wins, so subclasses come before their bases
ERROR_TYPES: list[tuple[type[Exception], str]] = [
    (MfaTimeoutError, "mfa_timeout"),
    (AuthRejectedError, "auth_rejected"),
    (NotAuthenticatedError, "auth_required"),
    (RateLimitedError, "rate_limit"),
    (CorruptStoreError, "corrupt_store"),
    (TransportError, "network_error"),
]


def get_error_type(error: Exception) -> str:
    """Map an exception to a key of ERROR_MESSAGES."""
    for exc_type, key in ERROR_TYPES:
        if isinstance(error, exc_type):
            return key

    status = error.status_code if isinstance(error, N26APIError) else None
    if status == 404:
        return "not_found"
    if status is not None and status >= 500:
        return "server_error"
    return "unknown"


def _render(info: ErrorInfo, error: Exception) -> tuple[str, str]:
    message = info.message.format(detail=getattr(error, "detail", None) or str(error))
    suggestion = info.suggestion.format(retry_after=getattr(error, "retry_after", 1800))
    return message, suggestion


def format_error(error: Exception, console: Console, verbose: bool = False) -> None:
    """Print ``error`` as a panel with a suggestion and, if any, a command to run."""
    info = ERROR_MESSAGES[get_error_type(error)]
    message, suggestion = _render(info, error)

    body = [message, "", f"[yellow]Suggestion:[/yellow] {suggestion}"]
    if info.command:
        body += ["", f"[cyan]{info.command}[/cyan]"]
    if verbose:
        body += [
            "",
            f"[dim]{type(error).__name__}: {error}[/dim]",
        ]

    console.print()
    console.print(
        Panel(
            "\n".join(body),
            title=f"[red bold]{info.title}[/red bold]",
            border_style="red",
            padding=(1, 2),
        )
    )
    console.print()
