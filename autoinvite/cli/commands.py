"""CLI commands for autoinvite."""

import asyncio
import signal
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from autoinvite import __version__, __logo__
from autoinvite.config.schema import Config

app = typer.Typer(
    name="autoinvite",
    help=f"{__logo__} autoinvite - Matrix invite and mention bot",
    no_args_is_help=True,
)

console = Console()

ConfigOption = typer.Option("config.yaml", "--config", "-c", help="Path to the YAML config file")


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} autoinvite v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", callback=version_callback, is_eager=True
    ),
):
    """autoinvite - Matrix invite and mention bot."""
    pass


def _load_or_exit(config_path: Path) -> Config:
    from autoinvite.config.loader import load_config
    from autoinvite.errors import ConfigError

    try:
        return load_config(config_path)
    except ConfigError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)


# ============================================================================
# Run
# ============================================================================


@app.command()
def run(
    config_path: Path = ConfigOption,
    verbose: int = typer.Option(0, "--verbose", "-v", count=True, help="Verbose output, repeat for more"),
):
    """Run the bot for every configured account."""
    from autoinvite.bot.supervisor import AccountSupervisor
    from autoinvite.state.store import FileStore
    from autoinvite.utils.logging import setup_logging

    config = _load_or_exit(config_path)
    setup_logging(verbose, config.log_file or None)

    console.print(f"{__logo__} Starting autoinvite with {len(config.servers)} account(s)...")
    supervisor = AccountSupervisor(config, FileStore(config.state_path))

    async def _run():
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, supervisor.stop)
            except NotImplementedError:
                pass
        return await supervisor.run()

    try:
        reports = asyncio.run(_run())
    except KeyboardInterrupt:
        console.print("\nShutting down...")
        return

    table = Table(title="Accounts")
    table.add_column("Account", style="cyan")
    table.add_column("State", style="green")
    table.add_column("Batches")
    table.add_column("Reason", style="yellow")
    for report in reports:
        table.add_row(report.user_id, report.state, str(report.batches), escape(report.reason or ""))
    console.print(table)


# ============================================================================
# Accounts
# ============================================================================


@app.command()
def accounts(config_path: Path = ConfigOption):
    """Show configured accounts and their saved state."""
    from autoinvite.session.events import Account
    from autoinvite.state.control_channel import CONTROL_RECORD
    from autoinvite.state.cursor import CursorStore
    from autoinvite.state.store import FileStore

    config = _load_or_exit(config_path)
    store = FileStore(config.state_path)
    cursors = CursorStore(store)

    table = Table(title="Accounts")
    table.add_column("Account", style="cyan")
    table.add_column("Homeserver")
    table.add_column("Auth", style="green")
    table.add_column("Cursor")
    table.add_column("Control room", style="yellow")

    for server in config.servers:
        account = Account.from_config(server)
        auth = server.auth_method if server.auth_method != "none" else "[red]missing[/red]"
        cursor = "✓" if cursors.load(account) else "[dim]none[/dim]"
        control = store.get(f"{account.state_key}/{CONTROL_RECORD}") or "[dim]not created[/dim]"
        table.add_row(account.user_id, account.homeserver, auth, cursor, control)

    console.print(table)
    console.print(f"Target user: {config.target_user}")
    console.print(f"State directory: {config.state_path}")
