"""Requirement and PRD review CLI commands.

This module provides CLI commands for creating documents, assigning
reviewers, and moving documents through the two-level review.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from prdflow.logging import bind_document_context
from prdflow.review.aggregator import LifecycleStatus, display_status, status_label
from prdflow.review.state import AssignedLevel, ReviewerNotAssignedError, UserRef
from prdflow.review.workflow import (
    BatchWorkflowResult,
    DocumentKind,
    MissingReviewer1Error,
    ReviewableDocument,
    ReviewEffect,
    WorkflowOutcome,
)

app = typer.Typer(help="Requirement and PRD review commands")
console = Console()

_LIFECYCLE_COLORS = {
    "draft": "dim",
    "reviewing": "yellow",
    "published": "green",
}


def parse_user(value: str) -> UserRef:
    """Parse ``ID[:NAME[:EMAIL]]`` into a UserRef.

    The name defaults to the ID.
    """
    parts = value.split(":", 2)
    user_id = parts[0].strip()
    if not user_id:
        raise typer.BadParameter(f"Invalid reviewer: {value!r}")
    name = parts[1].strip() if len(parts) > 1 and parts[1].strip() else user_id
    email = parts[2].strip() if len(parts) > 2 and parts[2].strip() else None
    return UserRef(id=user_id, name=name, email=email)


def _status_text(document: ReviewableDocument, locale: str) -> str:
    status = display_status(document.review_status, document.lifecycle)
    return status_label(status, locale)


def _effect_lines(outcome: WorkflowOutcome) -> list[str]:
    review = outcome.document.review
    lines = []
    for effect in outcome.effects:
        if effect == ReviewEffect.NOTIFY_FIRST_REVIEWER and review.reviewer1:
            lines.append(f"Notify first-level reviewer {review.reviewer1.name}")
        elif effect == ReviewEffect.NOTIFY_SECOND_REVIEWER and review.reviewer2:
            lines.append(f"Notify second-level reviewer {review.reviewer2.name}")
        elif effect == ReviewEffect.PUBLISH:
            lines.append("Document published")
        elif effect == ReviewEffect.REVERT_TO_DRAFT:
            lines.append("Document returned to draft")
    return lines


def _print_outcome(outcome: WorkflowOutcome, locale: str) -> None:
    document = outcome.document
    console.print(
        f"[bold]{document.title}[/bold]: {_status_text(document, locale)} "
        f"[dim]({document.lifecycle.value})[/dim]"
    )
    for line in _effect_lines(outcome):
        console.print(f"  [cyan]{line}[/cyan]")


def _print_batch(result: BatchWorkflowResult, action: str, level: int, locale: str) -> None:
    if result.is_empty:
        console.print(
            f"[yellow]No eligible documents for level {level} {action}; "
            f"nothing changed ({result.skipped_count} skipped)[/yellow]"
        )
        return

    console.print(
        f"[green]{action.capitalize()} level {level}:[/green] "
        f"{result.affected_count} affected, {result.skipped_count} skipped"
    )
    for outcome in result.outcomes:
        _print_outcome(outcome, locale)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@app.command()
def create(
    kind: Annotated[str, typer.Argument(help="Document kind (requirement or prd)")],
    title: Annotated[str, typer.Argument(help="Document title")],
    planned_version: Annotated[
        Optional[str],
        typer.Option("--version", "-V", help="Planned version label, e.g. 'iOS 1.2.0'"),
    ] = None,
    reviewer1: Annotated[
        Optional[str],
        typer.Option("--reviewer1", help="First-level reviewer as ID[:NAME[:EMAIL]]"),
    ] = None,
    reviewer2: Annotated[
        Optional[str],
        typer.Option("--reviewer2", help="Second-level reviewer as ID[:NAME[:EMAIL]]"),
    ] = None,
) -> None:
    """Create a new draft document."""
    from prdflow.main import get_app_context

    ctx = get_app_context()

    try:
        document_kind = DocumentKind(kind)
    except ValueError:
        console.print(f"[red]Invalid kind:[/red] {kind}. Valid values: requirement, prd")
        raise typer.Exit(code=1)

    first = parse_user(reviewer1) if reviewer1 else None
    second = parse_user(reviewer2) if reviewer2 else None

    try:
        document = ctx.run(
            ctx.store.create(
                kind=document_kind,
                title=title,
                planned_version=planned_version,
                reviewer1=first,
                reviewer2=second,
            )
        )
    except Exception as e:
        console.print(f"[red]Error creating document:[/red] {e}")
        raise typer.Exit(code=1)

    locale = ctx.config.review.label_locale
    panel = Panel(
        f"[green]Document created successfully![/green]\n\n"
        f"[bold]ID:[/bold] {document.id}\n"
        f"[bold]Kind:[/bold] {document.kind.value}\n"
        f"[bold]Title:[/bold] {document.title}\n"
        f"[bold]Version:[/bold] {document.planned_version or '-'}\n"
        f"[bold]Review:[/bold] {_status_text(document, locale)}",
        title="Document Created",
        border_style="green",
    )
    console.print(panel)


@app.command("list")
def list_command(
    kind: Annotated[
        Optional[str],
        typer.Option("--kind", "-k", help="Filter by kind (requirement, prd)"),
    ] = None,
    lifecycle: Annotated[
        Optional[str],
        typer.Option("--lifecycle", "-l", help="Filter by lifecycle (draft, reviewing, published)"),
    ] = None,
    format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format (table or json)"),
    ] = "table",
) -> None:
    """List documents with their review status."""
    from prdflow.main import get_app_context

    ctx = get_app_context()

    kind_filter = None
    if kind is not None:
        try:
            kind_filter = DocumentKind(kind)
        except ValueError:
            console.print(f"[red]Invalid kind:[/red] {kind}. Valid values: requirement, prd")
            raise typer.Exit(code=1)

    lifecycle_filter = None
    if lifecycle is not None:
        try:
            lifecycle_filter = LifecycleStatus(lifecycle)
        except ValueError:
            console.print(
                f"[red]Invalid lifecycle:[/red] {lifecycle}. "
                f"Valid values: draft, reviewing, published"
            )
            raise typer.Exit(code=1)

    try:
        documents = ctx.run(ctx.store.list(kind=kind_filter, lifecycle=lifecycle_filter))
    except Exception as e:
        console.print(f"[red]Error listing documents:[/red] {e}")
        raise typer.Exit(code=1)

    locale = ctx.config.review.label_locale

    if format == "json":
        output = [
            {
                "id": d.id,
                "kind": d.kind.value,
                "title": d.title,
                "lifecycle": d.lifecycle.value,
                "planned_version": d.planned_version,
                "review_status": display_status(d.review_status, d.lifecycle).value,
                "reviewer1": d.review.reviewer1.id if d.review.reviewer1 else None,
                "reviewer2": d.review.reviewer2.id if d.review.reviewer2 else None,
            }
            for d in documents
        ]
        console.print(json.dumps(output, indent=2, ensure_ascii=False))
        return

    if not documents:
        console.print("[yellow]No documents found[/yellow]")
        return

    table = Table(title="Documents")
    table.add_column("ID", style="cyan", no_wrap=True, overflow="fold")
    table.add_column("Kind", style="blue")
    table.add_column("Title", style="bold")
    table.add_column("Version", style="dim")
    table.add_column("Lifecycle")
    table.add_column("Review", style="magenta")

    for d in documents:
        color = _LIFECYCLE_COLORS.get(d.lifecycle.value, "white")
        table.add_row(
            d.id[:8] + "...",
            d.kind.value,
            d.title,
            d.planned_version or "-",
            f"[{color}]{d.lifecycle.value}[/{color}]",
            _status_text(d, locale),
        )

    console.print(table)


@app.command()
def show(
    document_id: Annotated[str, typer.Argument(help="Document UUID")],
) -> None:
    """Show a document and both review levels."""
    from prdflow.main import get_app_context

    ctx = get_app_context()

    try:
        document = ctx.run(ctx.store.get(document_id))
    except Exception as e:
        console.print(f"[red]Error loading document:[/red] {e}")
        raise typer.Exit(code=1)

    locale = ctx.config.review.label_locale
    lines = [
        f"[bold]ID:[/bold] {document.id}",
        f"[bold]Kind:[/bold] {document.kind.value}",
        f"[bold]Version:[/bold] {document.planned_version or '-'}",
        f"[bold]Lifecycle:[/bold] {document.lifecycle.value}",
        f"[bold]Review:[/bold] {_status_text(document, locale)}",
    ]
    for level in (1, 2):
        slot = document.review.level(level)
        if isinstance(slot, AssignedLevel):
            line = f"[bold]Level {level}:[/bold] {slot.reviewer.name} ({slot.decision.value})"
            if slot.opinion:
                line += f" - {slot.opinion}"
        else:
            line = f"[bold]Level {level}:[/bold] [dim]not assigned[/dim]"
        lines.append(line)

    console.print(Panel("\n".join(lines), title=document.title, border_style="blue"))


@app.command()
def delete(
    document_id: Annotated[str, typer.Argument(help="Document UUID")],
) -> None:
    """Delete a document."""
    from prdflow.main import get_app_context

    ctx = get_app_context()

    try:
        deleted = ctx.run(ctx.store.delete(document_id))
    except Exception as e:
        console.print(f"[red]Error deleting document:[/red] {e}")
        raise typer.Exit(code=1)

    if not deleted:
        console.print(f"[yellow]Document {document_id} not found[/yellow]")
        raise typer.Exit(code=1)
    console.print(f"[green]Deleted document {document_id}[/green]")


@app.command()
def assign(
    document_id: Annotated[str, typer.Argument(help="Document UUID")],
    level: Annotated[int, typer.Argument(min=1, max=2, help="Review level (1 or 2)")],
    reviewer: Annotated[
        Optional[str],
        typer.Argument(help="Reviewer as ID[:NAME[:EMAIL]]; omit to clear the level"),
    ] = None,
) -> None:
    """Assign or clear the reviewer at a level."""
    from prdflow.main import get_app_context

    ctx = get_app_context()
    user = parse_user(reviewer) if reviewer else None

    async def _assign() -> ReviewableDocument:
        document = await ctx.store.get(document_id)
        bind_document_context(document.id, document.kind.value)
        updated = ctx.workflow.assign_reviewer(document, level, user)
        return await ctx.store.save(updated)

    try:
        ctx.run(_assign())
    except Exception as e:
        console.print(f"[red]Error assigning reviewer:[/red] {e}")
        raise typer.Exit(code=1)

    if user is None:
        console.print(f"[green]Cleared level {level} reviewer[/green]")
    else:
        console.print(f"[green]Assigned {user.name} as level {level} reviewer[/green]")


@app.command()
def submit(
    document_id: Annotated[str, typer.Argument(help="Document UUID")],
) -> None:
    """Submit a document for review."""
    from prdflow.main import get_app_context

    ctx = get_app_context()

    async def _submit() -> WorkflowOutcome:
        document = await ctx.store.get(document_id)
        bind_document_context(document.id, document.kind.value)
        outcome = ctx.workflow.submit_for_review(document)
        await ctx.store.save(outcome.document)
        return outcome

    try:
        outcome = ctx.run(_submit())
    except MissingReviewer1Error as e:
        console.print(f"[red]Cannot submit:[/red] {e}")
        raise typer.Exit(code=1)
    except Exception as e:
        console.print(f"[red]Error submitting document:[/red] {e}")
        raise typer.Exit(code=1)

    _print_outcome(outcome, ctx.config.review.label_locale)


def _decide(document_id: str, level: int, approve: bool, opinion: str | None) -> None:
    from prdflow.main import get_app_context

    ctx = get_app_context()

    async def _run() -> WorkflowOutcome:
        document = await ctx.store.get(document_id)
        bind_document_context(document.id, document.kind.value)
        apply = ctx.workflow.approve if approve else ctx.workflow.reject
        outcome = apply(document, level, opinion=opinion, reviewed_at=_now())
        await ctx.store.save(outcome.document)
        return outcome

    try:
        outcome = ctx.run(_run())
    except ReviewerNotAssignedError as e:
        console.print(f"[red]Cannot record decision:[/red] {e}")
        raise typer.Exit(code=1)
    except Exception as e:
        console.print(f"[red]Error recording decision:[/red] {e}")
        raise typer.Exit(code=1)

    _print_outcome(outcome, ctx.config.review.label_locale)


@app.command()
def approve(
    document_id: Annotated[str, typer.Argument(help="Document UUID")],
    level: Annotated[int, typer.Argument(min=1, max=2, help="Review level (1 or 2)")],
    opinion: Annotated[
        Optional[str],
        typer.Option("--opinion", "-o", help="Reviewer remark"),
    ] = None,
) -> None:
    """Approve a document at a level."""
    _decide(document_id, level, True, opinion)


@app.command()
def reject(
    document_id: Annotated[str, typer.Argument(help="Document UUID")],
    level: Annotated[int, typer.Argument(min=1, max=2, help="Review level (1 or 2)")],
    opinion: Annotated[
        Optional[str],
        typer.Option("--opinion", "-o", help="Reviewer remark"),
    ] = None,
) -> None:
    """Reject a document at a level; it returns to draft."""
    _decide(document_id, level, False, opinion)


def _batch(level: int, document_ids: list[str], approve: bool) -> None:
    from prdflow.main import get_app_context

    ctx = get_app_context()

    async def _run() -> BatchWorkflowResult:
        documents = await ctx.store.get_many(document_ids)
        apply = ctx.workflow.batch_approve if approve else ctx.workflow.batch_reject
        result = apply(documents, level, reviewed_at=_now())
        if not result.is_empty:
            await ctx.store.save_many([o.document for o in result.outcomes])
        return result

    try:
        result = ctx.run(_run())
    except Exception as e:
        console.print(f"[red]Error applying batch review:[/red] {e}")
        raise typer.Exit(code=1)

    _print_batch(
        result,
        "approval" if approve else "rejection",
        level,
        ctx.config.review.label_locale,
    )


@app.command("batch-approve")
def batch_approve(
    level: Annotated[int, typer.Argument(min=1, max=2, help="Review level (1 or 2)")],
    document_ids: Annotated[list[str], typer.Argument(help="Document UUIDs")],
) -> None:
    """Approve a level on every eligible document."""
    _batch(level, document_ids, True)


@app.command("batch-reject")
def batch_reject(
    level: Annotated[int, typer.Argument(min=1, max=2, help="Review level (1 or 2)")],
    document_ids: Annotated[list[str], typer.Argument(help="Document UUIDs")],
) -> None:
    """Reject a level on every eligible document."""
    _batch(level, document_ids, False)
