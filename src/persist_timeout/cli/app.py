"""Main CLI application."""

import json
from datetime import datetime
from pathlib import Path
from typing import Annotated

import typer
from pydantic import ValidationError
from rich.markup import escape
from rich.table import Table

from persist_timeout.cli.console import console, dim, error, success, warning
from persist_timeout.config import PersisterConfig
from persist_timeout.errors import LoadError
from persist_timeout.identity import utc_now
from persist_timeout.logging import configure_logging
from persist_timeout.paths import get_state_path
from persist_timeout.store import TimeoutStore
from persist_timeout.types import format_date

app = typer.Typer(
    name="persist-timeout",
    help="Inspect persisted timeout queues",
    no_args_is_help=True,
)

NameArg = Annotated[
    str,
    typer.Argument(help="Persister name (or instance number for unnamed ones)"),
]
DirOption = Annotated[
    Path | None,
    typer.Option("--dir", "-d", help="State directory (default: PERSIST_TIMEOUT_DIR)"),
]
ProcessIdOption = Annotated[
    str | None,
    typer.Option(
        "--process-id",
        "-p",
        help="Application name the state files are namespaced by",
    ),
]


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    configure_logging("DEBUG" if verbose else None)


def _store_for(name: str, base_dir: Path | None, process_id: str | None) -> TimeoutStore:
    overrides: dict = {"name": name}
    if base_dir is not None:
        overrides["base_dir"] = base_dir
    if process_id is not None:
        overrides["process_id"] = process_id
    try:
        config = PersisterConfig(**overrides)
    except ValidationError as e:
        error(f"Invalid options: {e.errors()[0]['msg']}")
        raise typer.Exit(1) from None
    return TimeoutStore(get_state_path(config.base_dir, config.process_id, name))


def _format_countdown(fire_at: datetime) -> str:
    """Format a countdown string for a fire time."""
    now = utc_now()
    if fire_at <= now:
        return "[green]due[/green]"

    total_seconds = int((fire_at - now).total_seconds())
    if total_seconds < 60:
        return f"in {total_seconds}s"

    total_minutes = total_seconds // 60
    if total_minutes < 60:
        return f"in {total_minutes}m"

    hours = total_minutes // 60
    minutes = total_minutes % 60
    if hours < 24:
        return f"in {hours}h {minutes}m" if minutes else f"in {hours}h"

    days = hours // 24
    hours = hours % 24
    return f"in {days}d {hours}h" if hours else f"in {days}d"


def _preview(data: object, limit: int = 50) -> str:
    text = json.dumps(data)
    return text if len(text) <= limit else text[: limit - 3] + "..."


@app.command()
def path(
    name: NameArg,
    base_dir: DirOption = None,
    process_id: ProcessIdOption = None,
) -> None:
    """Print the state file path for a persister."""
    store = _store_for(name, base_dir, process_id)
    typer.echo(str(store.path))


@app.command("list")
def list_timeouts(
    name: NameArg,
    base_dir: DirOption = None,
    process_id: ProcessIdOption = None,
) -> None:
    """List pending timeouts in fire order."""
    store = _store_for(name, base_dir, process_id)
    try:
        timeouts = store.read()
    except LoadError as e:
        if isinstance(e.__cause__, FileNotFoundError):
            warning("No pending timeouts found")
            dim(f"State file: {store.path}")
            return
        error(escape(f"Cannot read {store.path}: {e}"))
        raise typer.Exit(1) from None

    if not timeouts:
        warning("No pending timeouts found")
        return

    table = Table(title="Pending Timeouts")
    table.add_column("ID", style="dim")
    table.add_column("Fires At", style="cyan")
    table.add_column("Countdown")
    table.add_column("Data", style="white", max_width=50)
    for timeout in timeouts:
        table.add_row(
            str(timeout.id),
            format_date(timeout.fire_at),
            _format_countdown(timeout.fire_at),
            escape(_preview(timeout.data)),
        )
    console.print(table)
    dim(f"\nTotal: {len(timeouts)} timeout(s)")


@app.command()
def clear(
    name: NameArg,
    base_dir: DirOption = None,
    process_id: ProcessIdOption = None,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Clear without confirmation"),
    ] = False,
) -> None:
    """Delete a persister's state file.

    Only run this while no process is using the persister.
    """
    store = _store_for(name, base_dir, process_id)
    if not store.path.exists():
        warning("No state file to clear")
        return
    if not force and not typer.confirm(f"Delete {store.path}?"):
        dim("Cancelled")
        return
    store.clear()
    success(f"Cleared {store.path}")
