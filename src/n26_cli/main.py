"""Main CLI entry point for N26 CLI."""

import logging
from datetime import datetime, timedelta
from typing import Annotated

import typer
from rich.console import Console

from n26_cli.cli.commands import auth, config
from n26_cli.cli.formatters import (
    format_account,
    format_cards,
    format_me,
    format_spaces,
    format_transactions,
)
from n26_cli.cli.progress import api_spinner
from n26_cli.cli.utils import handle_api_errors
from n26_cli.client import N26Client

console = Console()

app = typer.Typer(
    name="n26",
    help="Command line client for the N26 banking API",
    no_args_is_help=True,
)

app.command("login")(auth.do_login)
app.command("logout")(auth.do_logout)
app.command("status")(auth.status)
app.command("refresh")(auth.do_refresh)
app.command("keygen")(auth.keygen)

app.add_typer(config.app, name="config", help="Manage configuration")


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging"),
    ] = False,
):
    """Command line client for the N26 banking API."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not verbose:
        # httpx logs every request at INFO
        logging.getLogger("httpx").setLevel(logging.WARNING)


@app.command("me")
@handle_api_errors
def me(
    raw: Annotated[bool, typer.Option("--json", help="Print raw JSON")] = False,
):
    """Show the logged-in user."""
    with N26Client() as client:
        client.auto_collect = not raw
        with api_spinner("Fetching profile..."):
            result = client.get_me()

    if raw:
        console.print_json(data=result)
    else:
        format_me(result, console)


@app.command("accounts")
@handle_api_errors
def accounts(
    raw: Annotated[bool, typer.Option("--json", help="Print raw JSON")] = False,
):
    """Show the main account and its balances."""
    with N26Client() as client:
        client.auto_collect = not raw
        with api_spinner("Fetching account..."):
            result = client.get_accounts()

    if raw:
        console.print_json(data=result)
    else:
        format_account(result, console)


@app.command("cards")
@handle_api_errors
def cards(
    raw: Annotated[bool, typer.Option("--json", help="Print raw JSON")] = False,
):
    """List cards."""
    with N26Client() as client:
        client.auto_collect = not raw
        with api_spinner("Fetching cards..."):
            result = client.get_cards()

    if raw:
        console.print_json(data=result)
    else:
        format_cards(result, console)


@app.command("spaces")
@handle_api_errors
def spaces(
    raw: Annotated[bool, typer.Option("--json", help="Print raw JSON")] = False,
):
    """List spaces (sub-accounts)."""
    with N26Client() as client:
        client.auto_collect = not raw
        with api_spinner("Fetching spaces..."):
            result = client.get_spaces()

    if raw:
        console.print_json(data=result)
    else:
        format_spaces(result, console)


@app.command("transactions")
@handle_api_errors
def transactions(
    days: Annotated[
        int,
        typer.Option("--days", "-d", help="Number of days to look back"),
    ] = 30,
    limit: Annotated[
        int,
        typer.Option("--limit", "-n", help="Maximum number of transactions"),
    ] = 50,
    raw: Annotated[bool, typer.Option("--json", help="Print raw JSON")] = False,
):
    """
    Show recent transactions.

    Examples:
        n26 transactions
        n26 transactions --days 7 --limit 10
    """
    now = datetime.now()
    params = {
        "limit": limit,
        "from": int((now - timedelta(days=days)).timestamp() * 1000),
        "to": int(now.timestamp() * 1000),
    }

    with N26Client() as client:
        client.auto_collect = not raw
        with api_spinner("Fetching transactions..."):
            result = client.get_transactions(params)

    if raw:
        console.print_json(data=result)
    else:
        format_transactions(result, console)


if __name__ == "__main__":
    app()
