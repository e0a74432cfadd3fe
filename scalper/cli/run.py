"""Decision loop commands for the scalper CLI."""

import click
from rich.console import Console
from rich.panel import Panel

from scalper.cli.main import get_app_config

console = Console()


@click.command("run")
@click.option("--once", is_flag=True, help="Run a single tick and exit.")
@click.pass_context
def run(ctx: click.Context, once: bool) -> None:
    """Run the paper trading decision loop.

    Restores the ledger (remote first, then local), then ticks every
    scan interval until SIGTERM/SIGINT, pushing the ledger one last
    time on the way out.

    \b
    Examples:
      scalper run          # Run until interrupted
      scalper run --once   # Single tick
    """
    from scalper.loop import create_loop

    config = get_app_config(ctx)
    loop = create_loop(config)
    loop.run(once=once)


@click.command("init-config")
@click.option("--force", is_flag=True, help="Overwrite an existing config file.")
@click.pass_context
def init_config(ctx: click.Context, force: bool) -> None:
    """Write a template configuration file."""
    from scalper.config import get_config_path, write_template_config

    path = get_config_path(ctx.obj.get("config_path"))
    if path.exists() and not force:
        console.print(f"[yellow]Config already exists:[/yellow] {path} (use --force to overwrite)")
        return

    written = write_template_config(path)
    console.print(Panel(
        f"[green]Config written to[/green] {written}\n\n"
        "Set [cyan]sync.repo[/cyan] and GITHUB_TOKEN to enable remote ledger sync.",
        title="[bold green]Config[/bold green]",
        border_style="green",
    ))
