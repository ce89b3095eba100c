"""Rich console formatter for resolved prices and valuations."""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .domain import Price, SourceKind, TransferValuation


def _truncate_address(address: str) -> str:
    """Truncate address for display."""
    return f"{address[:10]}...{address[-4:]}"


def _source_style(kind: SourceKind) -> str:
    if kind is SourceKind.NA:
        return "red"
    if kind is SourceKind.COMPUTED:
        return "magenta"
    return "green"


def format_price_table(price: Price, console: Console | None = None) -> None:
    """Print a resolved price as a rich panel."""
    console = console or Console()

    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column("Key", style="dim")
    table.add_column("Value", style="cyan")
    table.add_row("Chain", str(price.chain_id))
    table.add_row("Token", _truncate_address(price.address))
    table.add_row("Block", f"{price.block_number:,}")
    table.add_row("Block Time", price.block_time.isoformat())
    table.add_row("Price (USD)", f"[bold]{price.price_usd}[/]")
    table.add_row(
        "Source",
        f"[{_source_style(price.price_source.kind)}]{price.price_source}[/]",
    )

    console.print(Panel(table, title="[bold]Price[/]", border_style="blue"))


def format_valuation_table(
    chain_id: int,
    token: str,
    block_number: int,
    raw_amount: int,
    valuation: TransferValuation,
    console: Console | None = None,
) -> None:
    """Print a transfer valuation as a rich panel."""
    console = console or Console()

    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column("Key", style="dim")
    table.add_column("Value", style="cyan")
    table.add_row("Chain", str(chain_id))
    table.add_row("Token", _truncate_address(token))
    table.add_row("Block", f"{block_number:,}")
    table.add_row("Raw Amount", f"{raw_amount:,}")
    table.add_row("Unit Price (USD)", str(valuation.price_usd))
    table.add_row("Value (USD)", f"[bold]{valuation.value_usd}[/]")
    table.add_row(
        "Source",
        f"[{_source_style(valuation.price_source.kind)}]{valuation.price_source}[/]",
    )

    console.print(Panel(table, title="[bold]Transfer Valuation[/]", border_style="green"))
