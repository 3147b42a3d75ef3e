"""Document model for prdflow.

One row per requirement or PRD. The two review levels are stored as
flattened columns; ``to_domain`` and ``apply_domain`` convert between the
row and the immutable ReviewableDocument the workflow engine operates on.
A level is assigned exactly when its ``reviewerN_id`` column is set.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Index, Text
from sqlalchemy.orm import Mapped, mapped_column

from prdflow.database.models.base import Base, TimestampMixin, UtcDateTime, value_enum
from prdflow.review.aggregator import LifecycleStatus
from prdflow.review.state import (
    AssignedLevel,
    ReviewDecision,
    ReviewState,
    UnassignedLevel,
    UserRef,
)
from prdflow.review.workflow import DocumentKind, ReviewableDocument

_review_decision = value_enum(ReviewDecision, "review_decision")


class Document(TimestampMixin, Base):
    """A requirement or PRD document under review.

    Attributes:
        id: UUID primary key (from TimestampMixin).
        kind: Requirement or PRD.
        title: Document title.
        lifecycle: Publication state (draft, reviewing, published).
        planned_version: Version label the document is scheduled for.
        reviewerN_id / reviewerN_name / reviewerN_email: Level-N reviewer.
        reviewerN_decision: Level-N decision; NULL iff no reviewer.
        reviewerN_opinion: Level-N reviewer remark.
        reviewerN_reviewed_at: When the level-N decision was recorded.
    """

    __tablename__ = "documents"
    __table_args__ = (Index("ix_documents_kind_lifecycle", "kind", "lifecycle"),)

    kind: Mapped[DocumentKind] = mapped_column(
        value_enum(DocumentKind, "document_kind"),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    lifecycle: Mapped[LifecycleStatus] = mapped_column(
        value_enum(LifecycleStatus, "lifecycle_status"),
        default=LifecycleStatus.DRAFT,
        nullable=False,
    )
    planned_version: Mapped[str | None] = mapped_column(Text, nullable=True)

    reviewer1_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewer1_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewer1_email: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewer1_decision: Mapped[ReviewDecision | None] = mapped_column(
        _review_decision,
        nullable=True,
    )
    reviewer1_opinion: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewer1_reviewed_at: Mapped[datetime | None] = mapped_column(
        UtcDateTime(),
        nullable=True,
    )

    reviewer2_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewer2_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewer2_email: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewer2_decision: Mapped[ReviewDecision | None] = mapped_column(
        _review_decision,
        nullable=True,
    )
    reviewer2_opinion: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewer2_reviewed_at: Mapped[datetime | None] = mapped_column(
        UtcDateTime(),
        nullable=True,
    )

    def _level_from_columns(self, level: int) -> UnassignedLevel | AssignedLevel:
        prefix = f"reviewer{level}_"
        reviewer_id = getattr(self, prefix + "id")
        if reviewer_id is None:
            return UnassignedLevel()
        return AssignedLevel(
            reviewer=UserRef(
                id=reviewer_id,
                name=getattr(self, prefix + "name") or reviewer_id,
                email=getattr(self, prefix + "email"),
            ),
            decision=getattr(self, prefix + "decision") or ReviewDecision.PENDING,
            opinion=getattr(self, prefix + "opinion"),
            reviewed_at=getattr(self, prefix + "reviewed_at"),
        )

    def _level_to_columns(self, level: int, slot: UnassignedLevel | AssignedLevel) -> None:
        prefix = f"reviewer{level}_"
        if isinstance(slot, AssignedLevel):
            values = {
                "id": slot.reviewer.id,
                "name": slot.reviewer.name,
                "email": slot.reviewer.email,
                "decision": slot.decision,
                "opinion": slot.opinion,
                "reviewed_at": slot.reviewed_at,
            }
        else:
            values = dict.fromkeys(
                ("id", "name", "email", "decision", "opinion", "reviewed_at")
            )
        for column, value in values.items():
            setattr(self, prefix + column, value)

    def review_state(self) -> ReviewState:
        """Rebuild the review state from the level columns."""
        return ReviewState(
            level1=self._level_from_columns(1),
            level2=self._level_from_columns(2),
        )

    def set_review_state(self, review: ReviewState) -> None:
        """Write both review levels onto the row."""
        self._level_to_columns(1, review.level1)
        self._level_to_columns(2, review.level2)

    def to_domain(self) -> ReviewableDocument:
        """Convert the row into the value the workflow engine operates on."""
        return ReviewableDocument(
            id=str(self.id),
            kind=self.kind,
            title=self.title,
            lifecycle=self.lifecycle,
            planned_version=self.planned_version,
            review=self.review_state(),
        )

    def apply_domain(self, document: ReviewableDocument) -> None:
        """Copy mutable fields of ``document`` onto this row."""
        self.title = document.title
        self.lifecycle = document.lifecycle
        self.planned_version = document.planned_version
        self.set_review_state(document.review)
