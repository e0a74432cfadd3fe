"""Ledger inspection commands for the scalper CLI.

Shows balance, statistics and positions, and runs the daily reset by hand.
"""

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from scalper.cli.main import get_app_config

console = Console()


def _get_loop(ctx: click.Context, persist: bool = True):
    """Build the loop wiring and restore the ledger, remote first.

    Args:
        ctx: Click context.
        persist: Write restored or default state to the local file.
    """
    from scalper.loop import create_loop

    loop = create_loop(get_app_config(ctx))
    loop.start(persist=persist)
    return loop


@click.command("status")
@click.option("--limit", default=10, show_default=True, help="Closed positions to show.")
@click.pass_context
def status(ctx: click.Context, limit: int) -> None:
    """View ledger balance, stats and positions.

    \b
    Examples:
      scalper status
      scalper status --limit 25
    """
    loop = _get_loop(ctx, persist=False)
    loop.close()
    ledger = loop.ledger
    state = ledger.state
    stats = ledger.stats()

    overall = state.balance + sum(p.collateral for p in ledger.open_positions) - state.initial_balance
    pnl_color = "green" if overall >= 0 else "red"
    pnl_sign = "+" if overall >= 0 else ""
    paused = f"{state.paused_until:%Y-%m-%d %H:%M:%S} UTC" if ledger.is_paused() else "no"

    summary_text = (
        f"[bold]Account Summary[/bold]\n\n"
        f"Initial Balance:    ${state.initial_balance:,.2f}\n"
        f"Balance:            ${state.balance:,.2f}\n"
        f"Available:          ${ledger.available_balance:,.2f}\n"
        f"{'─' * 35}\n"
        f"Overall P&L:        [{pnl_color}]{pnl_sign}${overall:,.2f}[/{pnl_color}]\n"
        f"Daily P&L:          ${stats['daily_pnl']:,.2f} ({stats['daily_pnl_percent']:.2f}%)\n"
        f"Trades:             {stats['total_trades']} ({stats['wins']}W/{stats['losses']}L, "
        f"{stats['win_rate']:.1f}% win)\n"
        f"Consecutive Losses: {stats['consecutive_losses']}\n"
        f"Trades This Hour:   {state.trades_this_hour}\n"
        f"Paused:             {paused}"
    )
    console.print(Panel(summary_text, title="[bold]Ledger[/bold]", border_style="cyan"))

    positions = ledger.open_positions + ledger.closed_positions[-limit:][::-1]
    if not positions:
        console.print("\n[dim]No positions yet.[/dim]")
        return

    table = Table(title="Positions", show_header=True, header_style="bold")
    table.add_column("ID", style="bold")
    table.add_column("Side")
    table.add_column("Entry", justify="right")
    table.add_column("Exit", justify="right")
    table.add_column("Net P&L", justify="right")
    table.add_column("Status", justify="center")
    table.add_column("Reason")

    for pos in positions:
        if pos.pnl is None:
            pnl_text = "-"
        else:
            color = "green" if pos.pnl >= 0 else "red"
            sign = "+" if pos.pnl >= 0 else ""
            pnl_text = f"[{color}]{sign}${pos.pnl:.2f}[/{color}]"
        table.add_row(
            pos.id,
            pos.side,
            f"${pos.entry_price:,.2f}",
            f"${pos.exit_price:,.2f}" if pos.exit_price else "-",
            pnl_text,
            pos.status,
            pos.reason or "",
        )

    console.print(table)


@click.command("reset-daily")
@click.option("--confirm", is_flag=True, help="Skip confirmation prompt.")
@click.pass_context
def reset_daily(ctx: click.Context, confirm: bool) -> None:
    """Start a new trading day now.

    Restores the ledger (remote first) before touching it, then snapshots
    the daily start balance and zeroes daily P&L and the consecutive loss
    counter. Pushes to the remote store when sync is on.
    """
    loop = _get_loop(ctx)
    ledger = loop.ledger

    try:
        console.print(f"Daily P&L:          [yellow]${ledger.state.daily_pnl:,.2f}[/yellow]")
        console.print(f"Consecutive Losses: [yellow]{ledger.state.consecutive_losses}[/yellow]\n")

        if not confirm:
            if not click.confirm("Reset daily counters?"):
                console.print("[dim]Reset cancelled.[/dim]")
                return

        ledger.reset_daily()
    finally:
        loop.close()

    console.print(Panel(
        f"[green]Daily counters reset.[/green]\n\nDaily start balance: ${ledger.state.daily_start_balance:,.2f}",
        title="[bold green]Reset Complete[/bold green]",
        border_style="green",
    ))
