"""Config CLI commands for managing settings."""

from typing import Annotated, Any

import typer
from rich.console import Console
from rich.table import Table

from n26_cli import config as settings_module
from n26_cli.config import Settings, get_settings, load_config, save_config

console = Console()
app = typer.Typer(help="Manage configuration")

# Settings that `n26 config set` may write, with the type to parse into.
# Secrets (password, encryption key) only come from the environment.
CONFIGURABLE_KEYS: dict[str, type] = {
    "username": str,
    "timeout": int,
    "store_file": str,
    "store_connection": bool,
    "store_backend": str,
    "strict_store": bool,
    "device_backend": str,
    "auto_collect": bool,
    "mfa_wait": float,
    "mfa_max_wait": float,
}

CHOICES = {
    "store_backend": ("file", "keyring"),
    "device_backend": ("file", "keyring", "memory"),
}

TRUE_VALUES = ("true", "1", "yes", "on")


def describe(key: str) -> str:
    return Settings.model_fields[key].description or ""


def parse_value(key: str, value: str) -> Any:
    """Convert the command line string to the setting's type."""
    value_type = CONFIGURABLE_KEYS[key]
    if value_type is bool:
        return value.lower() in TRUE_VALUES
    try:
        return value_type(value)
    except ValueError:
        raise typer.BadParameter(f"'{value}' is not a valid {value_type.__name__}")


def validate_value(key: str, value: Any) -> None:
    """Reject values Settings would refuse to load."""
    if key in CHOICES and value not in CHOICES[key]:
        raise typer.BadParameter(f"{key} must be one of: {', '.join(CHOICES[key])}")
    if key == "timeout" and not (5 <= value <= 120):
        raise typer.BadParameter("timeout must be between 5 and 120")
    if key in ("mfa_wait", "mfa_max_wait") and value <= 0:
        raise typer.BadParameter(f"{key} must be positive")


@app.command("show")
def config_show():
    """Show the effective settings and where each comes from."""
    stored = load_config()
    settings = get_settings()

    table = Table(title="N26 CLI configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    table.add_column("Source", style="dim")
    table.add_column("Description", style="dim")

    for key in CONFIGURABLE_KEYS:
        if key in stored:
            value, source = stored[key], "config.yaml"
        else:
            value, source = getattr(settings, key), "default/env"
        shown = "[dim]not set[/dim]" if value is None else str(value)
        table.add_row(key, shown, source, describe(key))

    console.print(table)
    console.print(f"\n[dim]Config file: {settings_module.CONFIG_PATH}[/dim]")


@app.command("set")
def config_set(
    key: Annotated[str, typer.Argument(help="Setting name")],
    value: Annotated[str, typer.Argument(help="New value")],
):
    """
    Set a configuration value.

    Examples:
        n26 config set username me@example.com
        n26 config set store_backend keyring
    """
    if key not in CONFIGURABLE_KEYS:
        console.print(f"[red]Unknown setting:[/red] {key}\n")
        console.print("[bold]Available settings:[/bold]")
        for name in CONFIGURABLE_KEYS:
            console.print(f"  [cyan]{name}[/cyan] - {describe(name)}")
        raise typer.Exit(1)

    parsed = parse_value(key, value)
    validate_value(key, parsed)

    stored = load_config()
    stored[key] = parsed
    save_config(stored)
    settings_module.reset_settings()

    console.print(f"[green]✓[/green] {key} = {parsed}")


@app.command("path")
def config_path():
    """Show the path of the configuration file."""
    console.print(str(settings_module.CONFIG_PATH))
