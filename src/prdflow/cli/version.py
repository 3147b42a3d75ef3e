"""Release version CLI commands.

This module provides CLI commands for creating versions and keeping their
development schedule in step with the release date.
"""

from __future__ import annotations

import json
from datetime import date
from typing import Annotated, Optional
from uuid import UUID

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from prdflow.database.queries.version import (
    create_version,
    delete_version,
    list_version_labels,
    list_versions,
    update_release_date,
)
from prdflow.schedule.calculator import InvalidDateError
from prdflow.schedule.version import ReleaseDateInPastError

app = typer.Typer(help="Release version commands")
console = Console()


def _parse_version_id(version_id: str) -> UUID:
    try:
        return UUID(version_id)
    except ValueError:
        console.print(f"[red]Invalid version UUID:[/red] {version_id}")
        raise typer.Exit(code=1)


def _validation_message(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in e['loc'])}: {e['msg']}" for e in error.errors()
    )


@app.command()
def create(
    platform: Annotated[str, typer.Argument(help="Platform name, e.g. iOS")],
    version_number: Annotated[str, typer.Argument(help="Version number, e.g. 1.2.0")],
    release_date: Annotated[str, typer.Argument(help="Release date (YYYY-MM-DD)")],
    allow_past: Annotated[
        bool,
        typer.Option("--allow-past", help="Accept a release date before today"),
    ] = False,
) -> None:
    """Create a version and compute its schedule."""
    from prdflow.main import get_app_context, render_schedule

    ctx = get_app_context()
    today = None if allow_past else date.today()

    async def _create():
        async with ctx.session_factory() as session:
            return await create_version(
                session,
                platform=platform,
                version_number=version_number,
                release_date=release_date,
                today=today,
            )

    try:
        version = ctx.run(_create())
    except ValidationError as e:
        console.print(f"[red]Invalid version:[/red] {_validation_message(e)}")
        raise typer.Exit(code=1)
    except ReleaseDateInPastError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1)
    except Exception as e:
        console.print(f"[red]Error creating version:[/red] {e}")
        raise typer.Exit(code=1)

    panel = Panel(
        f"[green]Version created successfully![/green]\n\n"
        f"[bold]ID:[/bold] {version.id}\n"
        f"[bold]Label:[/bold] {version.label}\n"
        f"[bold]Release:[/bold] {version.release_date.isoformat()}",
        title="Version Created",
        border_style="green",
    )
    console.print(panel)
    console.print(render_schedule(version.label, version.schedule.windows()))


@app.command("list")
def list_command(
    platform: Annotated[
        Optional[str],
        typer.Option("--platform", "-p", help="Filter by platform"),
    ] = None,
    labels: Annotated[
        bool,
        typer.Option("--labels", help="Print version labels only, as offered to documents"),
    ] = False,
    format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format (table or json)"),
    ] = "table",
) -> None:
    """List versions, most recent release first."""
    from prdflow.main import get_app_context

    ctx = get_app_context()

    async def _list():
        async with ctx.session_factory() as session:
            if labels:
                return await list_version_labels(session, platform=platform)
            return await list_versions(session, platform=platform)

    try:
        result = ctx.run(_list())
    except Exception as e:
        console.print(f"[red]Error listing versions:[/red] {e}")
        raise typer.Exit(code=1)

    if labels:
        for label in result:
            console.print(label)
        return

    if format == "json":
        output = [
            {
                "id": str(v.id),
                "platform": v.platform,
                "version_number": v.version_number,
                "label": v.label,
                "release_date": v.release_date.isoformat(),
                "schedule": {
                    phase: {"start": w.start.isoformat(), "end": w.end.isoformat()}
                    for phase, w in v.schedule.windows().items()
                },
            }
            for v in result
        ]
        console.print(json.dumps(output, indent=2, ensure_ascii=False))
        return

    if not result:
        console.print("[yellow]No versions found[/yellow]")
        return

    table = Table(title="Versions")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Version", style="bold")
    table.add_column("Release", style="green")
    table.add_column("Drafting", style="dim")
    table.add_column("Development", style="dim")
    table.add_column("Testing", style="dim")

    for v in result:
        table.add_row(
            str(v.id)[:8] + "...",
            v.label,
            v.release_date.isoformat(),
            f"{v.drafting_start:%m-%d}..{v.drafting_end:%m-%d}",
            f"{v.development_start:%m-%d}..{v.development_end:%m-%d}",
            f"{v.testing_start:%m-%d}..{v.testing_end:%m-%d}",
        )

    console.print(table)


@app.command()
def reschedule(
    version_id: Annotated[str, typer.Argument(help="Version UUID")],
    release_date: Annotated[str, typer.Argument(help="New release date (YYYY-MM-DD)")],
    allow_past: Annotated[
        bool,
        typer.Option("--allow-past", help="Accept a release date before today"),
    ] = False,
) -> None:
    """Move a version's release date and recompute its schedule."""
    from prdflow.main import get_app_context, render_schedule

    ctx = get_app_context()
    version_uuid = _parse_version_id(version_id)
    today = None if allow_past else date.today()

    async def _reschedule():
        async with ctx.session_factory() as session:
            return await update_release_date(session, version_uuid, release_date, today=today)

    try:
        version = ctx.run(_reschedule())
    except (InvalidDateError, ReleaseDateInPastError) as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1)
    except Exception as e:
        console.print(f"[red]Error rescheduling version:[/red] {e}")
        raise typer.Exit(code=1)

    console.print(render_schedule(version.label, version.schedule.windows()))


@app.command()
def delete(
    version_id: Annotated[str, typer.Argument(help="Version UUID")],
) -> None:
    """Delete a version."""
    from prdflow.main import get_app_context

    ctx = get_app_context()
    version_uuid = _parse_version_id(version_id)

    async def _delete():
        async with ctx.session_factory() as session:
            return await delete_version(session, version_uuid)

    try:
        deleted = ctx.run(_delete())
    except Exception as e:
        console.print(f"[red]Error deleting version:[/red] {e}")
        raise typer.Exit(code=1)

    if not deleted:
        console.print(f"[yellow]Version {version_id} not found[/yellow]")
        raise typer.Exit(code=1)
    console.print(f"[green]Deleted version {version_id}[/green]")
