"""Remote ledger sync commands for the scalper CLI."""

import click
from rich.console import Console
from rich.panel import Panel

from scalper.cli.main import get_app_config

console = Console()


def _get_replicator(ctx: click.Context):
    """Build the replicator or exit if sync is not configured."""
    from scalper.loop import create_loop

    loop = create_loop(get_app_config(ctx))
    if loop.replicator is None:
        loop.close()
        console.print(Panel(
            "[red]Remote sync is not configured.[/red]\n\n"
            "Set [cyan]sync.repo[/cyan] in the config and export GITHUB_TOKEN.",
            title="[bold red]Error[/bold red]",
            border_style="red",
        ))
        raise SystemExit(1)
    return loop


@click.group("sync")
def sync() -> None:
    """Pull or push the ledger by hand.

    \b
    Commands:
      pull  - Replace the local ledger with the remote copy
      push  - Upload the local ledger
    """
    pass


@sync.command("pull")
@click.pass_context
def pull(ctx: click.Context) -> None:
    """Replace the local ledger with the remote copy."""
    loop = _get_replicator(ctx)
    try:
        pulled = loop.replicator.pull()
    finally:
        loop.close()

    if pulled:
        console.print(f"[green]Pulled ledger[/green] (balance ${loop.ledger.state.balance:,.2f})")
    else:
        console.print("[yellow]No usable remote ledger; local file unchanged.[/yellow]")


@sync.command("push")
@click.pass_context
def push(ctx: click.Context) -> None:
    """Upload the local ledger.

    Refuses to run without a readable local ledger file, so defaults are
    never pushed over the remote copy.
    """
    loop = _get_replicator(ctx)
    try:
        if not loop.ledger.load(persist=False):
            console.print("[red]No local ledger file to push.[/red] Run [cyan]scalper sync pull[/cyan] first.")
            raise SystemExit(1)
        pushed = loop.replicator.push()
    finally:
        loop.close()

    if pushed:
        console.print(f"[green]Pushed ledger[/green] (version {loop.replicator.version[:7]})")
    else:
        console.print("[red]Push failed, see log for details.[/red]")
        raise SystemExit(1)
