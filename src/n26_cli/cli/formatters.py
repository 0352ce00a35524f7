"""Rich output formatters for CLI display."""

from datetime import datetime

from rich.console import Console
from rich.table import Table

from n26_cli.api.models import Account, Card, Me, Space, Transaction


def format_amount(amount: float | None, currency: str | None = "EUR") -> str:
    """Format an amount with sign colour."""
    if amount is None:
        return "[dim]-[/dim]"
    colour = "red" if amount < 0 else "green"
    text = f"{amount:,.2f} {currency}" if currency else f"{amount:,.2f}"
    return f"[{colour}]{text}[/{colour}]"


def format_timestamp(ms: int | None) -> str:
    """Format an N26 millisecond timestamp."""
    if not ms:
        return "-"
    return datetime.fromtimestamp(ms / 1000).strftime("%Y-%m-%d %H:%M")


def format_me(me: Me, console: Console) -> None:
    console.print(f"[bold]{me.full_name}[/bold]")
    if me.email:
        console.print(f"  E-mail: [cyan]{me.email}[/cyan]")
    if me.mobile_phone_number:
        console.print(f"  Phone: {me.mobile_phone_number}")
    console.print(f"  [dim]id: {me.id}[/dim]")


def format_account(account: Account, console: Console) -> None:
    """Print the main account with balances."""
    console.print(f"[bold]{account.bank_name or 'N26'}[/bold]  {account.iban or ''}")
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="dim")
    table.add_column(justify="right")
    table.add_row("Available", format_amount(account.available_balance, account.currency))
    table.add_row("Usable", format_amount(account.usable_balance, account.currency))
    table.add_row("Bank balance", format_amount(account.bank_balance, account.currency))
    console.print(table)


def format_cards(cards: list[Card], console: Console) -> None:
    if not cards:
        console.print("[yellow]No cards found.[/yellow]")
        return

    table = Table(title="Cards", show_header=True, header_style="bold")
    table.add_column("Card", style="cyan")
    table.add_column("Type")
    table.add_column("Status")
    table.add_column("Id", style="dim")
    for card in cards:
        status = f"[green]{card.status}[/green]" if card.is_active else f"[yellow]{card.status}[/yellow]"
        table.add_row(card.masked_pan or "-", card.card_type or "-", status, card.id)
    console.print(table)


def format_spaces(spaces: list[Space], console: Console) -> None:
    if not spaces:
        console.print("[yellow]No spaces found.[/yellow]")
        return

    table = Table(title="Spaces", show_header=True, header_style="bold")
    table.add_column("Name", style="cyan")
    table.add_column("Balance", justify="right")
    for space in spaces:
        balance = space.balance or {}
        name = f"{space.name} [dim](primary)[/dim]" if space.is_primary else space.name or "-"
        table.add_row(name, format_amount(balance.get("availableBalance"), balance.get("currency")))
    console.print(table)


def format_transactions(transactions: list[Transaction], console: Console) -> None:
    """Print transactions as a table, newest first as returned by the API."""
    if not transactions:
        console.print("[yellow]No transactions found.[/yellow]")
        return

    table = Table(title="Transactions", show_header=True, header_style="bold")
    table.add_column("Date", style="dim", width=16)
    table.add_column("Counterparty", style="cyan")
    table.add_column("Reference")
    table.add_column("Amount", justify="right")
    for tx in transactions:
        table.add_row(
            format_timestamp(tx.visible_ts),
            tx.counterparty or "-",
            tx.reference_text or "",
            format_amount(tx.amount, tx.currency_code),
        )
    console.print(table)
