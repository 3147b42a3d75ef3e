"""Review workflow engine for requirements and PRD documents.

This module drives a document through its publication lifecycle:

    draft -> reviewing -> published
    reviewing -> draft            (on rejection at any level)

It combines the review-state mutations with the status aggregator and
maps each resulting status onto the document's lifecycle. The engine never
persists anything or notifies anyone itself: every operation returns the
updated document together with the effects the caller should carry out.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Iterable

import structlog
from pydantic import BaseModel, ConfigDict, Field

from prdflow.config import ReviewConfig
from prdflow.review.aggregator import (
    LifecycleStatus,
    OverallReviewStatus,
    aggregate,
    publication_trigger,
)
from prdflow.review.state import (
    AssignedLevel,
    EligibilityPredicate,
    ReviewDecision,
    ReviewState,
    UserRef,
    approval_eligibility,
    assign_reviewer,
    batch_record_decision,
    record_decision,
    rejection_eligibility,
)

logger = structlog.get_logger(__name__)


class DocumentKind(str, Enum):
    """Kinds of document subject to review; the engine treats them alike."""

    REQUIREMENT = "requirement"
    PRD = "prd"


class ReviewEffect(str, Enum):
    """Follow-up actions the caller performs after a workflow operation.

    Effects:
        NOTIFY_FIRST_REVIEWER: Document entered first-level review.
        NOTIFY_SECOND_REVIEWER: Level 1 approved, level 2 is up.
        PUBLISH: Document was approved and is now published.
        REVERT_TO_DRAFT: Document was rejected and is back in draft.
    """

    NOTIFY_FIRST_REVIEWER = "notify_first_reviewer"
    NOTIFY_SECOND_REVIEWER = "notify_second_reviewer"
    PUBLISH = "publish"
    REVERT_TO_DRAFT = "revert_to_draft"


class MissingReviewer1Error(Exception):
    """Raised when a document is submitted without a first-level reviewer.

    This is a user-correctable validation outcome; the document is left
    unchanged.

    Attributes:
        document_id: The document that was submitted.
    """

    def __init__(self, document_id: str | None = None):
        self.document_id = document_id
        msg = "A first-level reviewer must be assigned before submitting for review"
        if document_id:
            msg += f" (document {document_id})"
        super().__init__(msg)


class ReviewableDocument(BaseModel):
    """A requirement or PRD as seen by the review workflow.

    Attributes:
        id: Document identifier.
        kind: Requirement or PRD.
        title: Document title.
        lifecycle: Publication state.
        planned_version: Version label the document is scheduled for, if any.
        review: Two-level reviewer assignment and decisions.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    kind: DocumentKind
    title: str
    lifecycle: LifecycleStatus = LifecycleStatus.DRAFT
    planned_version: str | None = None
    review: ReviewState = Field(default_factory=ReviewState)

    @property
    def review_status(self) -> OverallReviewStatus:
        return aggregate(self.review)


class WorkflowOutcome(BaseModel):
    """Result of one workflow operation on one document.

    Attributes:
        document: The updated document.
        status: Overall review status after the operation.
        previous_status: Overall review status before the operation.
        effects: Follow-up actions for the caller, in order.
    """

    model_config = ConfigDict(frozen=True)

    document: ReviewableDocument
    status: OverallReviewStatus
    previous_status: OverallReviewStatus
    effects: list[ReviewEffect] = Field(default_factory=list)


class BatchWorkflowResult(BaseModel):
    """Result of a batch approval or rejection.

    Attributes:
        documents: Every input document in input order, updated where eligible.
        outcomes: Outcomes for the documents that were updated.
        skipped_count: Number of documents that were not eligible.
    """

    model_config = ConfigDict(frozen=True)

    documents: list[ReviewableDocument]
    outcomes: list[WorkflowOutcome] = Field(default_factory=list)
    skipped_count: int = 0

    @property
    def affected_count(self) -> int:
        return len(self.outcomes)

    @property
    def is_empty(self) -> bool:
        """True when no document was eligible."""
        return not self.outcomes

    @property
    def published_ids(self) -> list[str]:
        return [
            o.document.id for o in self.outcomes if ReviewEffect.PUBLISH in o.effects
        ]

    @property
    def reverted_ids(self) -> list[str]:
        return [
            o.document.id for o in self.outcomes if ReviewEffect.REVERT_TO_DRAFT in o.effects
        ]


class ReviewWorkflowEngine:
    """Applies review operations to documents and derives their lifecycle.

    This class handles:
    - Submitting documents for review
    - Recording approvals and rejections per level
    - Batch approvals and rejections with eligibility filtering
    - Mapping review status onto the publication lifecycle
    - Logging every transition
    """

    def __init__(self, config: ReviewConfig | None = None):
        """Initialize the engine.

        Args:
            config: Review settings; defaults are used when omitted.
        """
        self.config = config or ReviewConfig()
        self.logger = logger.bind(component="ReviewWorkflowEngine")

    def assign_reviewer(
        self,
        document: ReviewableDocument,
        level: int,
        user: UserRef | None,
    ) -> ReviewableDocument:
        """Assign or clear the reviewer at ``level`` on a document."""
        review = assign_reviewer(document.review, level, user)
        self.logger.info(
            "reviewer_assigned" if user is not None else "reviewer_cleared",
            document_id=document.id,
            level=level,
            reviewer_id=user.id if user is not None else None,
        )
        return document.model_copy(update={"review": review})

    def submit_for_review(self, document: ReviewableDocument) -> WorkflowOutcome:
        """Send a document into review.

        Every assigned level is reset to pending and the lifecycle moves to
        reviewing.

        Raises:
            MissingReviewer1Error: If no first-level reviewer is assigned.
        """
        if document.review.reviewer1 is None:
            self.logger.warning("submit_rejected_missing_reviewer1", document_id=document.id)
            raise MissingReviewer1Error(document.id)

        previous_status = document.review_status
        review = document.review
        for level in (1, 2):
            if isinstance(review.level(level), AssignedLevel):
                review = record_decision(review, level, ReviewDecision.PENDING)

        updated = document.model_copy(
            update={"review": review, "lifecycle": LifecycleStatus.REVIEWING}
        )
        status = aggregate(review)

        self.logger.info(
            "review_submitted",
            document_id=document.id,
            kind=document.kind.value,
            from_lifecycle=document.lifecycle.value,
            reviewer1_id=review.reviewer1.id,
            reviewer2_id=review.reviewer2.id if review.reviewer2 else None,
        )

        return WorkflowOutcome(
            document=updated,
            status=status,
            previous_status=previous_status,
            effects=[ReviewEffect.NOTIFY_FIRST_REVIEWER],
        )

    def approve(
        self,
        document: ReviewableDocument,
        level: int,
        *,
        opinion: str | None = None,
        reviewed_at: datetime | None = None,
    ) -> WorkflowOutcome:
        """Record an approval at ``level`` and settle the lifecycle.

        Raises:
            ReviewerNotAssignedError: If the level has no reviewer.
        """
        review = record_decision(
            document.review,
            level,
            ReviewDecision.APPROVED,
            opinion=opinion,
            reviewed_at=reviewed_at,
            document_id=document.id,
        )
        return self._settle(document, review, level, ReviewDecision.APPROVED)

    def reject(
        self,
        document: ReviewableDocument,
        level: int,
        *,
        opinion: str | None = None,
        reviewed_at: datetime | None = None,
    ) -> WorkflowOutcome:
        """Record a rejection at ``level``; the document returns to draft.

        Raises:
            ReviewerNotAssignedError: If the level has no reviewer.
        """
        review = record_decision(
            document.review,
            level,
            ReviewDecision.REJECTED,
            opinion=opinion,
            reviewed_at=reviewed_at,
            document_id=document.id,
        )
        return self._settle(document, review, level, ReviewDecision.REJECTED)

    def batch_approve(
        self,
        documents: Iterable[ReviewableDocument],
        level: int,
        *,
        reviewed_at: datetime | None = None,
    ) -> BatchWorkflowResult:
        """Approve ``level`` on every eligible document.

        Level 1 is eligible when a reviewer is assigned and not yet approved.
        Level 2 additionally requires level 1 approved. Ineligible documents
        are returned unchanged and counted as skipped.
        """
        return self._batch(
            list(documents),
            level,
            ReviewDecision.APPROVED,
            approval_eligibility(level),
            reviewed_at,
        )

    def batch_reject(
        self,
        documents: Iterable[ReviewableDocument],
        level: int,
        *,
        reviewed_at: datetime | None = None,
    ) -> BatchWorkflowResult:
        """Reject ``level`` on every eligible document."""
        return self._batch(
            list(documents),
            level,
            ReviewDecision.REJECTED,
            rejection_eligibility(level),
            reviewed_at,
        )

    def _batch(
        self,
        documents: list[ReviewableDocument],
        level: int,
        decision: ReviewDecision,
        eligible: EligibilityPredicate,
        reviewed_at: datetime | None,
    ) -> BatchWorkflowResult:
        result = batch_record_decision(
            [d.review for d in documents],
            level,
            decision,
            eligible,
            reviewed_at=reviewed_at,
        )

        if result.is_empty:
            self.logger.warning(
                "batch_review_empty",
                level=level,
                decision=decision.value,
                requested=len(documents),
            )
            return BatchWorkflowResult(documents=documents, skipped_count=result.skipped_count)

        updated_documents = list(documents)
        outcomes: list[WorkflowOutcome] = []
        for index in result.updated_indices:
            outcome = self._settle(documents[index], result.states[index], level, decision)
            updated_documents[index] = outcome.document
            outcomes.append(outcome)

        batch = BatchWorkflowResult(
            documents=updated_documents,
            outcomes=outcomes,
            skipped_count=result.skipped_count,
        )
        self.logger.info(
            "batch_review_applied",
            level=level,
            decision=decision.value,
            affected=batch.affected_count,
            skipped=batch.skipped_count,
            published=len(batch.published_ids),
        )
        return batch

    def _settle(
        self,
        document: ReviewableDocument,
        review: ReviewState,
        level: int,
        decision: ReviewDecision,
    ) -> WorkflowOutcome:
        """Re-aggregate after a decision and derive lifecycle and effects."""
        previous_status = document.review_status
        status = aggregate(review)
        lifecycle = publication_trigger(status) or document.lifecycle

        effects: list[ReviewEffect] = []
        if lifecycle != document.lifecycle:
            if lifecycle == LifecycleStatus.PUBLISHED:
                effects.append(ReviewEffect.PUBLISH)
            elif lifecycle == LifecycleStatus.DRAFT:
                effects.append(ReviewEffect.REVERT_TO_DRAFT)
        if (
            status == OverallReviewStatus.SECOND_REVIEW_IN_PROGRESS
            and previous_status != status
            and self.config.notify_second_reviewer
        ):
            effects.append(ReviewEffect.NOTIFY_SECOND_REVIEWER)

        updated = document.model_copy(update={"review": review, "lifecycle": lifecycle})

        self.logger.info(
            "review_decision_recorded",
            document_id=document.id,
            level=level,
            decision=decision.value,
            from_status=previous_status.value,
            to_status=status.value,
        )
        if ReviewEffect.PUBLISH in effects:
            self.logger.info("document_published", document_id=document.id)
        elif ReviewEffect.REVERT_TO_DRAFT in effects:
            self.logger.info(
                "document_reverted",
                document_id=document.id,
                from_lifecycle=document.lifecycle.value,
            )

        return WorkflowOutcome(
            document=updated,
            status=status,
            previous_status=previous_status,
            effects=effects,
        )
