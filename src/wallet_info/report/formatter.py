"""Rich console formatter for wallet reports."""

from __future__ import annotations

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .generator import BalanceEntry, WalletReport


def _status_cell(entry: BalanceEntry) -> Text:
    if entry.status == "pending":
        return Text("Loading...", style="dim")
    if entry.status == "failed":
        return Text("Error", style="red")
    return Text(entry.display_amount or "0", style="bold white")


def _native_line(entry: BalanceEntry) -> Text:
    if entry.status == "pending":
        return Text("Loading...", style="dim")
    if entry.status == "failed":
        return Text("Error", style="red")
    return Text(f"{entry.amount or '0'} {entry.symbol}", style="bold white")


def _token_link(entry: BalanceEntry) -> Text:
    if not entry.short_address or entry.status != "ready":
        return Text("")
    label = entry.short_address
    if entry.explorer_url:
        return Text(label, style=f"link {entry.explorer_url}")
    return Text(label)


def render_report(report: WalletReport) -> Panel:
    """Build the wallet dashboard renderable."""
    address_panel = Panel(
        Text(report.account, style="cyan", overflow="fold"),
        title="[bold]Address[/]",
        border_style="blue",
    )

    native_panel = Panel(
        _native_line(report.native),
        title=f"[bold]{report.native.symbol} Balance[/]",
        border_style="green",
    )

    if not report.supported:
        others: Text | Table = Text(
            "The network is not supported", style="dim", justify="center"
        )
    else:
        others = Table(expand=True, show_lines=False)
        others.add_column("Token", style="cyan", no_wrap=True)
        others.add_column("Symbol", style="dim")
        others.add_column("Balance", justify="right")
        others.add_column("Contract", justify="right", style="dim")
        for entry in report.tokens:
            others.add_row(
                entry.name,
                entry.symbol,
                _status_cell(entry),
                _token_link(entry),
            )

    others_panel = Panel(others, title="[bold]Others[/]", border_style="cyan")

    title = "[bold white]Wallet Info[/]"
    if report.network_name:
        title = f"{title} [dim]({report.network_name})[/]"
    return Panel(
        Group(address_panel, native_panel, others_panel),
        title=title,
        border_style="white",
        padding=(1, 2),
    )


def format_report_table(report: WalletReport, console: Console | None = None) -> None:
    """Print the rich formatted wallet dashboard.

    Args:
        report: The wallet report to format
        console: Console to print to (defaults to stdout)
    """
    console = console or Console()
    console.print()
    console.print(render_report(report))
    console.print()
