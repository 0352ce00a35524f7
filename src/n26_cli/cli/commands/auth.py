"""Authentication CLI commands."""

from datetime import datetime, timezone
from typing import Annotated

import typer
from rich.console import Console

from n26_cli.auth import (
    clear_credentials,
    create_credential_store,
    generate_key,
    has_stored_credentials,
    resolve_credentials,
    store_credentials,
)
from n26_cli.auth.session import Session
from n26_cli.cli.progress import mfa_progress, print_success, print_warning
from n26_cli.cli.utils import handle_api_errors
from n26_cli.client import N26Client
from n26_cli.config import get_settings

console = Console()


def _format_time_remaining(minutes: int) -> str:
    """Format remaining time in a human-readable way."""
    if minutes < 1:
        return "less than a minute"
    elif minutes < 60:
        return f"{minutes} minute{'s' if minutes != 1 else ''}"
    else:
        hours = minutes // 60
        mins = minutes % 60
        parts = [f"{hours} h"]
        if mins > 0:
            parts.append(f"{mins} min")
        return " ".join(parts)


def _print_expiry(session: Session) -> None:
    remaining = session.expires_at - datetime.now(timezone.utc)
    minutes_left = int(remaining.total_seconds() / 60)
    local_expiry = session.expires_at.astimezone().strftime("%Y-%m-%d %H:%M")

    if minutes_left <= 0:
        console.print(f"Access token expired at [yellow]{local_expiry}[/yellow]")
        console.print("[dim]It is renewed automatically on the next request.[/dim]")
    else:
        time_str = _format_time_remaining(minutes_left)
        colour = "yellow" if minutes_left <= 5 else "green"
        console.print(f"Access token valid for: [{colour}]{time_str}[/{colour}] [dim]({local_expiry})[/dim]")


@handle_api_errors
def do_login(
    username: Annotated[
        str | None,
        typer.Option("--username", "-u", help="N26 login e-mail"),
    ] = None,
    save: Annotated[
        bool,
        typer.Option("--save/--no-save", help="Store the login in the OS keyring"),
    ] = False,
):
    """
    Log in to N26 and store the session.

    N26 sends an approval request to your phone; the command waits until you
    approve it in the app.
    """
    settings = get_settings()

    creds = None if username else resolve_credentials(settings)
    if creds is None:
        username = username or settings.username or typer.prompt("N26 e-mail")
        if settings.password and username == settings.username:
            password = settings.password.get_secret_value()
        else:
            password = typer.prompt("Password", hide_input=True)
        creds = (username, password)

    client = N26Client(settings, credentials=creds)
    try:
        client.open(authenticate=False)
        with mfa_progress():
            session = client.auth.login()
    finally:
        client.close()

    if save:
        store_credentials(*creds)
        console.print("[dim]Login stored in the OS keyring.[/dim]")

    print_success("Logged in!")
    _print_expiry(session)


def do_logout(
    forget: Annotated[
        bool,
        typer.Option("--forget", help="Also remove the login stored in the keyring"),
    ] = False,
):
    """Remove the stored session."""
    store = create_credential_store(get_settings())

    if store.delete():
        print_success("Logged out.")
    else:
        print_warning("No stored session to remove.")

    if forget and clear_credentials():
        print_success("Stored login removed from keyring.")


@handle_api_errors
def status():
    """Show the stored session without contacting N26."""
    settings = get_settings()
    store = create_credential_store(settings)

    if not settings.store_connection:
        console.print("[yellow]Session persistence is disabled (N26_STORE_CONNECTION=false).[/yellow]")
        raise typer.Exit(1)

    if not store.exists():
        console.print("[red]Not logged in[/red]")
        console.print("\nLog in with: [cyan]n26 login[/cyan]")
        raise typer.Exit(1)

    session = store.load()
    console.print("[green]Logged in[/green]")
    _print_expiry(session)

    if settings.store_backend == "file":
        encrypted = "encrypted" if settings.encryption_key else "plain"
        console.print(f"[dim]Session file: {settings.store_path} ({encrypted})[/dim]")
    else:
        console.print("[dim]Session stored in the OS keyring[/dim]")

    if has_stored_credentials():
        console.print("[dim]Stored login: available (automatic re-login possible)[/dim]")


@handle_api_errors
def do_refresh():
    """
    Renew the session with the stored refresh token.

    Falls back to a full login (with app approval) if nothing is stored or
    the refresh token is no longer valid.
    """
    client = N26Client()
    try:
        client.open(authenticate=False)
        client.auth.load_stored()
        with mfa_progress():
            client.auth.refresh()
        session = client.auth.session
    finally:
        client.close()

    print_success("Session renewed!")
    if session is not None:
        _print_expiry(session)


def keygen():
    """Generate a key for encrypting the session file."""
    key = generate_key()
    console.print(key)
    console.print(
        "\n[dim]Keep this key outside the config directory, e.g.:[/dim]\n"
        f"[cyan]export N26_ENCRYPTION_KEY={key}[/cyan]"
    )
