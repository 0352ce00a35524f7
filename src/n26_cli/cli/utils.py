"""CLI utility functions and decorators."""

import logging
from functools import wraps
from typing import Callable, TypeVar

import typer
from rich.console import Console

from n26_cli.api.exceptions import N26APIError
from n26_cli.cli.errors import format_error

console = Console()

F = TypeVar("F", bound=Callable)


def handle_api_errors(f: F) -> F:
    """Decorator to handle N26 API errors in CLI commands.

    Every N26APIError (refused login, MFA timeout, rate limit, unreadable
    session, network failure) is shown as a panel with a suggestion and the
    command exits with code 1.

    Usage:
        @app.command()
        @handle_api_errors
        def my_command():
            ...
    """

    @wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except N26APIError as e:
            verbose = logging.getLogger().isEnabledFor(logging.DEBUG)
            format_error(e, console, verbose=verbose)
            raise typer.Exit(1)

    return wrapper  # type: ignore
