"""Document CRUD query functions for prdflow.

Provides async functions for creating, reading, saving, and deleting
requirement and PRD rows using the SQLAlchemy 2.0 select() API.
"""

from __future__ import annotations

from uuid import UUID

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from prdflow.database.models.document import Document
from prdflow.review.aggregator import LifecycleStatus
from prdflow.review.state import ReviewState, UserRef, assign_reviewer
from prdflow.review.workflow import DocumentKind, ReviewableDocument

logger = structlog.get_logger(__name__)


async def create_document(
    session: AsyncSession,
    kind: DocumentKind,
    title: str,
    planned_version: str | None = None,
    reviewer1: UserRef | None = None,
    reviewer2: UserRef | None = None,
) -> Document:
    """Create a new draft document.

    Args:
        session: Active async database session.
        kind: Requirement or PRD.
        title: Document title.
        planned_version: Optional version label the document targets.
        reviewer1: Optional first-level reviewer.
        reviewer2: Optional second-level reviewer.

    Returns:
        The newly created Document instance.
    """
    review = assign_reviewer(ReviewState(), 1, reviewer1)
    review = assign_reviewer(review, 2, reviewer2)

    document = Document(
        kind=kind,
        title=title,
        lifecycle=LifecycleStatus.DRAFT,
        planned_version=planned_version,
    )
    document.set_review_state(review)

    session.add(document)
    await session.commit()
    await session.refresh(document)

    logger.info(
        "document_created",
        document_id=str(document.id),
        kind=kind.value,
        title=title,
    )

    return document


async def get_document(
    session: AsyncSession,
    document_id: UUID,
) -> Document | None:
    """Retrieve a document by ID.

    Returns:
        The Document instance if found, None otherwise.
    """
    stmt = select(Document).where(Document.id == document_id)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def get_documents(
    session: AsyncSession,
    document_ids: list[UUID],
) -> list[Document]:
    """Retrieve several distinct documents, in the order of ``document_ids``.

    Raises:
        ValueError: If any ID does not exist.
    """
    document_ids = list(dict.fromkeys(document_ids))
    if not document_ids:
        return []
    stmt = select(Document).where(Document.id.in_(document_ids))
    result = await session.execute(stmt)
    by_id = {doc.id: doc for doc in result.scalars().all()}

    missing = [str(i) for i in document_ids if i not in by_id]
    if missing:
        raise ValueError(f"Documents not found: {', '.join(missing)}")
    return [by_id[i] for i in document_ids]


async def list_documents(
    session: AsyncSession,
    kind: DocumentKind | None = None,
    lifecycle: LifecycleStatus | None = None,
) -> list[Document]:
    """List documents with optional filters, oldest first.

    Args:
        session: Active async database session.
        kind: Optional kind to filter by.
        lifecycle: Optional lifecycle status to filter by.

    Returns:
        List of matching Document instances.
    """
    stmt = select(Document)

    if kind is not None:
        stmt = stmt.where(Document.kind == kind)

    if lifecycle is not None:
        stmt = stmt.where(Document.lifecycle == lifecycle)

    stmt = stmt.order_by(Document.created_at.asc())

    result = await session.execute(stmt)
    return list(result.scalars().all())


async def save_document(
    session: AsyncSession,
    document: ReviewableDocument,
) -> Document:
    """Persist the state of a domain document onto its row.

    Args:
        session: Active async database session.
        document: Updated document as returned by the workflow engine.

    Returns:
        The updated Document instance.

    Raises:
        ValueError: If the document does not exist.
    """
    row = await get_document(session, UUID(document.id))
    if row is None:
        raise ValueError(f"Document {document.id} not found")

    old_lifecycle = row.lifecycle
    row.apply_domain(document)
    await session.commit()
    await session.refresh(row)

    logger.info(
        "document_saved",
        document_id=document.id,
        old_lifecycle=old_lifecycle.value,
        new_lifecycle=row.lifecycle.value,
    )

    return row


async def delete_document(
    session: AsyncSession,
    document_id: UUID,
) -> bool:
    """Delete a document.

    Returns:
        True if a row was deleted, False if it did not exist.
    """
    stmt = delete(Document).where(Document.id == document_id)
    result = await session.execute(stmt)
    await session.commit()

    deleted = result.rowcount > 0
    if deleted:
        logger.info("document_deleted", document_id=str(document_id))
    return deleted
