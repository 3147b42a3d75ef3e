"""Document store backed by the database.

The review workflow operates on immutable ReviewableDocument values and
never touches storage. DocumentStore is the seam between the two: it loads
documents as domain values and saves the values the engine returns.
"""

from __future__ import annotations

from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from prdflow.database.queries.document import (
    create_document,
    delete_document,
    get_document,
    get_documents,
    list_documents,
    save_document,
)
from prdflow.review.aggregator import LifecycleStatus
from prdflow.review.state import UserRef
from prdflow.review.workflow import DocumentKind, ReviewableDocument

logger = structlog.get_logger(__name__)


def parse_document_id(document_id: str | UUID) -> UUID:
    """Parse a document ID.

    Raises:
        ValueError: If the string is not a UUID.
    """
    if isinstance(document_id, UUID):
        return document_id
    try:
        return UUID(document_id)
    except ValueError:
        raise ValueError(f"Invalid document ID: {document_id}") from None


class DocumentStore:
    """Load and save documents as domain values.

    Each call opens its own session from the factory and commits before
    returning.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory
        self.logger = logger.bind(component="DocumentStore")

    async def create(
        self,
        kind: DocumentKind,
        title: str,
        planned_version: str | None = None,
        reviewer1: UserRef | None = None,
        reviewer2: UserRef | None = None,
    ) -> ReviewableDocument:
        async with self.session_factory() as session:
            row = await create_document(
                session,
                kind=kind,
                title=title,
                planned_version=planned_version,
                reviewer1=reviewer1,
                reviewer2=reviewer2,
            )
            return row.to_domain()

    async def get(self, document_id: str | UUID) -> ReviewableDocument:
        """Load one document.

        Raises:
            ValueError: If the ID is malformed or the document does not exist.
        """
        uuid = parse_document_id(document_id)
        async with self.session_factory() as session:
            row = await get_document(session, uuid)
            if row is None:
                raise ValueError(f"Document {uuid} not found")
            return row.to_domain()

    async def get_many(self, document_ids: list[str]) -> list[ReviewableDocument]:
        """Load several documents in the given order.

        Repeated IDs are loaded once, at their first position.

        Raises:
            ValueError: If any ID is malformed or missing.
        """
        uuids = list(dict.fromkeys(parse_document_id(i) for i in document_ids))
        async with self.session_factory() as session:
            rows = await get_documents(session, uuids)
            return [row.to_domain() for row in rows]

    async def list(
        self,
        kind: DocumentKind | None = None,
        lifecycle: LifecycleStatus | None = None,
    ) -> list[ReviewableDocument]:
        async with self.session_factory() as session:
            rows = await list_documents(session, kind=kind, lifecycle=lifecycle)
            return [row.to_domain() for row in rows]

    async def save(self, document: ReviewableDocument) -> ReviewableDocument:
        """Persist ``document`` and return it as stored."""
        async with self.session_factory() as session:
            row = await save_document(session, document)
            return row.to_domain()

    async def save_many(self, documents: list[ReviewableDocument]) -> list[ReviewableDocument]:
        """Persist several documents in one session."""
        saved: list[ReviewableDocument] = []
        async with self.session_factory() as session:
            for document in documents:
                row = await save_document(session, document)
                saved.append(row.to_domain())
        self.logger.debug("documents_saved", count=len(saved))
        return saved

    async def delete(self, document_id: str | UUID) -> bool:
        """Remove a document; False when it did not exist."""
        uuid = parse_document_id(document_id)
        async with self.session_factory() as session:
            return await delete_document(session, uuid)
