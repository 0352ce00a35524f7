"""Status output helpers for CLI operations.

Rich-based helpers for consistent user feedback across all CLI commands.
"""

from contextlib import contextmanager
from typing import Generator

from rich.console import Console
from rich.status import Status

# Shared console instance
console = Console()


@contextmanager
def api_spinner(message: str) -> Generator[Status, None, None]:
    """Spinner for API calls with unknown duration.

    Usage:
        with api_spinner("Fetching transactions..."):
            data = client.get_transactions()
    """
    with console.status(f"[bold green]{message}", spinner="dots") as status:
        yield status


@contextmanager
def mfa_progress() -> Generator[Status, None, None]:
    """Spinner shown while the user approves the login in the N26 app."""
    with console.status(
        "[bold blue]Logging in - approve the request in your N26 app...",
        spinner="dots",
    ) as status:
        yield status


def print_success(message: str) -> None:
    """Print a success message with checkmark."""
    console.print(f"[green]✓[/green] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]⚠[/yellow] {message}")

