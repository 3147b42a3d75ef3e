"""The ``prdflow`` command line.

Top-level commands set up the database and print schedules; ``doc`` and
``version`` hold the review and release subcommands.

Examples:
    prdflow init-db
    prdflow schedule 2025-01-10
    prdflow version create iOS 1.2.0 2025-01-10
    prdflow doc create prd "Checkout redesign" --reviewer1 u1:Alice
    prdflow doc submit <document-id>
    prdflow doc approve <document-id> 1
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Annotated, Any, Coroutine, Optional, TypeVar

import typer
from rich.console import Console
from rich.table import Table
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from prdflow.cli import document as document_cli
from prdflow.cli import version as version_cli
from prdflow.config import PrdflowConfig, load_config
from prdflow.database.connection import create_schema, get_engine, get_session_factory
from prdflow.database.store import DocumentStore
from prdflow.logging import correlation_scope, setup_logging
from prdflow.review.workflow import ReviewWorkflowEngine
from prdflow.schedule.calculator import InvalidDateError, compute_schedule

T = TypeVar("T")

app = typer.Typer(
    name="prdflow",
    help="prdflow: requirement and PRD review workflow",
    no_args_is_help=True,
)

app.add_typer(document_cli.app, name="doc", help="Manage requirements and PRDs")
app.add_typer(version_cli.app, name="version", help="Manage release versions")

console = Console()


class AppContext:
    """Everything a command needs, built once per invocation from the config.

    ``store`` persists documents through ``session_factory``; ``workflow``
    applies review transitions using the ``[review]`` settings.
    """

    def __init__(self, config: PrdflowConfig):
        self.config = config
        self.engine: AsyncEngine = get_engine(config.database)
        self.session_factory: async_sessionmaker[AsyncSession] = get_session_factory(
            self.engine
        )
        self.store = DocumentStore(self.session_factory)
        self.workflow = ReviewWorkflowEngine(config.review)

    def run(self, coro: Coroutine[Any, Any, T]) -> T:
        """Run a coroutine to completion, then release pooled connections.

        Each command runs in its own event loop, so connections must not
        outlive it. Events logged while it runs share one correlation ID.
        """

        async def _run() -> T:
            try:
                return await coro
            finally:
                await self.engine.dispose()

        with correlation_scope():
            return asyncio.run(_run())


_app_context: AppContext | None = None


def get_app_context() -> AppContext:
    """Context created by the root callback; commands fail loudly without it."""
    if _app_context is None:
        raise RuntimeError("prdflow context is not set up; run through the prdflow CLI")
    return _app_context


def initialize_context(config: PrdflowConfig) -> AppContext:
    """Replace the process-wide context used by subcommands."""
    global _app_context
    _app_context = AppContext(config)
    return _app_context


@app.command("init-db")
def init_db() -> None:
    """Create the database tables if they do not exist."""
    ctx = get_app_context()

    try:
        ctx.run(create_schema(ctx.engine))
    except Exception as e:
        console.print(f"[red]Error creating schema:[/red] {e}")
        raise typer.Exit(code=1)

    console.print("[green]Database initialized[/green]")


@app.command()
def schedule(
    release_date: Annotated[str, typer.Argument(help="Release date (YYYY-MM-DD)")],
) -> None:
    """Show the drafting, prototyping, development and testing windows."""
    try:
        result = compute_schedule(release_date)
    except InvalidDateError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1)

    console.print(render_schedule(result.release_date.isoformat(), result.windows()))


def render_schedule(title: str, windows: dict) -> Table:
    """Build a Rich table for a set of schedule windows."""
    table = Table(title=f"Schedule for {title}")
    table.add_column("Phase", style="bold")
    table.add_column("Start", style="cyan")
    table.add_column("End", style="cyan")
    table.add_column("Days", justify="right", style="dim")

    for phase, window in windows.items():
        table.add_row(
            phase.capitalize(),
            f"{window.start.isoformat()} ({window.start:%a})",
            f"{window.end.isoformat()} ({window.end:%a})",
            str(window.days),
        )
    return table


@app.callback()
def main_callback(
    config_path: Annotated[
        Optional[Path],
        typer.Option(
            "--config",
            "-c",
            help="TOML config file (default: ./prdflow.toml, then ~/.config/prdflow/config.toml)",
            exists=True,
            dir_okay=False,
            readable=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log at DEBUG level"),
    ] = False,
) -> None:
    """Load settings, configure logging and prepare the database handles."""
    try:
        config = load_config(config_path)
    except Exception as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(code=1)

    logging_config = config.logging
    if verbose:
        logging_config = logging_config.model_copy(update={"level": "DEBUG"})
    setup_logging(logging_config)

    try:
        initialize_context(config)
    except Exception as e:
        console.print(f"[red]Startup failed:[/red] {e}")
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
