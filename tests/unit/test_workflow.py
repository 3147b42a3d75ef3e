"""Unit tests for the review workflow engine.

Tests cover:
- Submitting for review (and MissingReviewer1Error)
- Approvals and rejections driving the publication lifecycle
- Effects returned to the caller
- Batch approvals and rejections
- Transition logging
"""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from prdflow.config import ReviewConfig
from prdflow.review.aggregator import LifecycleStatus, OverallReviewStatus
from prdflow.review.state import (
    ReviewDecision,
    ReviewerNotAssignedError,
    ReviewState,
    UserRef,
    assign_reviewer,
)
from prdflow.review.workflow import (
    DocumentKind,
    MissingReviewer1Error,
    ReviewableDocument,
    ReviewEffect,
    ReviewWorkflowEngine,
)

ALICE = UserRef(id="u1", name="Alice")
BOB = UserRef(id="u2", name="Bob")
NOW = datetime(2025, 1, 8, 10, 0, tzinfo=timezone.utc)


def make_document(
    doc_id: str = "PRD-1",
    reviewer1: UserRef | None = ALICE,
    reviewer2: UserRef | None = None,
    lifecycle: LifecycleStatus = LifecycleStatus.DRAFT,
) -> ReviewableDocument:
    review = assign_reviewer(ReviewState(), 1, reviewer1)
    review = assign_reviewer(review, 2, reviewer2)
    return ReviewableDocument(
        id=doc_id,
        kind=DocumentKind.PRD,
        title=f"Document {doc_id}",
        lifecycle=lifecycle,
        review=review,
    )


@pytest.fixture
def engine() -> ReviewWorkflowEngine:
    return ReviewWorkflowEngine()


class TestSubmitForReview:
    """Test submission."""

    def test_submit_without_reviewer1_fails(self, engine):
        """Test a document with no first-level reviewer cannot be submitted."""
        document = make_document(reviewer1=None, reviewer2=BOB)

        with pytest.raises(MissingReviewer1Error) as exc_info:
            engine.submit_for_review(document)

        assert exc_info.value.document_id == "PRD-1"
        assert document.lifecycle == LifecycleStatus.DRAFT

    def test_submit_moves_to_reviewing(self, engine):
        """Test submission resets decisions and notifies the first reviewer."""
        document = make_document(reviewer2=BOB)
        outcome = engine.submit_for_review(document)

        assert outcome.document.lifecycle == LifecycleStatus.REVIEWING
        assert outcome.status == OverallReviewStatus.FIRST_REVIEW_IN_PROGRESS
        assert outcome.effects == [ReviewEffect.NOTIFY_FIRST_REVIEWER]
        assert outcome.document.review.reviewer1_decision == ReviewDecision.PENDING
        assert outcome.document.review.reviewer2_decision == ReviewDecision.PENDING

    def test_resubmit_after_rejection_clears_decisions(self, engine):
        """Test a rejected draft starts review again from pending."""
        document = make_document(reviewer2=BOB)
        document = engine.submit_for_review(document).document
        document = engine.reject(document, 1, opinion="Missing metrics").document
        assert document.lifecycle == LifecycleStatus.DRAFT

        outcome = engine.submit_for_review(document)
        assert outcome.document.review.reviewer1_decision == ReviewDecision.PENDING
        assert outcome.document.review.level(1).opinion == "Missing metrics"
        assert outcome.status == OverallReviewStatus.FIRST_REVIEW_IN_PROGRESS


class TestApproveReject:
    """Test single-document decisions."""

    def test_single_level_approval_publishes(self, engine):
        """Test approval with no second reviewer publishes the document."""
        document = engine.submit_for_review(make_document()).document
        outcome = engine.approve(document, 1, reviewed_at=NOW)

        assert outcome.status == OverallReviewStatus.APPROVED
        assert outcome.document.lifecycle == LifecycleStatus.PUBLISHED
        assert outcome.effects == [ReviewEffect.PUBLISH]
        assert outcome.document.review.level(1).reviewed_at == NOW

    def test_two_level_flow(self, engine):
        """Test level-1 approval hands over, level-2 approval publishes."""
        document = engine.submit_for_review(make_document(reviewer2=BOB)).document

        first = engine.approve(document, 1)
        assert first.status == OverallReviewStatus.SECOND_REVIEW_IN_PROGRESS
        assert first.previous_status == OverallReviewStatus.FIRST_REVIEW_IN_PROGRESS
        assert first.document.lifecycle == LifecycleStatus.REVIEWING
        assert first.effects == [ReviewEffect.NOTIFY_SECOND_REVIEWER]

        second = engine.approve(first.document, 2)
        assert second.status == OverallReviewStatus.APPROVED
        assert second.document.lifecycle == LifecycleStatus.PUBLISHED
        assert second.effects == [ReviewEffect.PUBLISH]

    def test_second_reviewer_notification_can_be_disabled(self):
        """Test the notify_second_reviewer setting."""
        engine = ReviewWorkflowEngine(ReviewConfig(notify_second_reviewer=False))
        document = engine.submit_for_review(make_document(reviewer2=BOB)).document
        outcome = engine.approve(document, 1)
        assert outcome.status == OverallReviewStatus.SECOND_REVIEW_IN_PROGRESS
        assert outcome.effects == []

    @pytest.mark.parametrize("level", [1, 2])
    def test_rejection_reverts_to_draft(self, engine, level):
        """Test a rejection at either level returns the document to draft."""
        document = engine.submit_for_review(make_document(reviewer2=BOB)).document
        if level == 2:
            document = engine.approve(document, 1).document

        outcome = engine.reject(document, level, opinion="Not feasible")

        assert outcome.status == OverallReviewStatus.REJECTED
        assert outcome.document.lifecycle == LifecycleStatus.DRAFT
        assert outcome.effects == [ReviewEffect.REVERT_TO_DRAFT]
        assert outcome.document.review.level(level).opinion == "Not feasible"

    def test_early_level2_approval_is_held(self, engine):
        """Test a level-2 approval before level 1 does not publish."""
        document = engine.submit_for_review(make_document(reviewer2=BOB)).document

        early = engine.approve(document, 2)
        assert early.status == OverallReviewStatus.FIRST_REVIEW_IN_PROGRESS
        assert early.document.lifecycle == LifecycleStatus.REVIEWING
        assert early.effects == []

        final = engine.approve(early.document, 1)
        assert final.status == OverallReviewStatus.APPROVED
        assert final.document.lifecycle == LifecycleStatus.PUBLISHED

    def test_approve_unassigned_level(self, engine):
        """Test deciding at a level with no reviewer fails."""
        document = engine.submit_for_review(make_document()).document
        with pytest.raises(ReviewerNotAssignedError) as exc_info:
            engine.approve(document, 2)
        assert exc_info.value.document_id == "PRD-1"

    def test_input_document_unchanged(self, engine):
        """Test the engine returns new documents."""
        document = make_document()
        engine.submit_for_review(document)
        assert document.lifecycle == LifecycleStatus.DRAFT


class TestAssign:
    """Test reviewer assignment through the engine."""

    def test_assign_and_clear(self, engine):
        document = make_document(reviewer1=None)
        document = engine.assign_reviewer(document, 1, ALICE)
        assert document.review.reviewer1 == ALICE
        assert document.review_status == OverallReviewStatus.FIRST_REVIEW_IN_PROGRESS

        document = engine.assign_reviewer(document, 1, None)
        assert document.review_status == OverallReviewStatus.NO_REVIEW_REQUIRED


class TestBatch:
    """Test batch approvals and rejections."""

    def _reviewing(self, engine, doc_id, reviewer2=None):
        return engine.submit_for_review(make_document(doc_id, reviewer2=reviewer2)).document

    def test_batch_approve_level1(self, engine):
        """Test eligible documents are approved and the rest skipped."""
        documents = [
            self._reviewing(engine, "A"),
            self._reviewing(engine, "B", reviewer2=BOB),
            make_document("C", reviewer1=None),
        ]
        documents[0] = engine.approve(documents[0], 1).document

        result = engine.batch_approve(documents, 1, reviewed_at=NOW)

        assert result.affected_count == 1
        assert result.skipped_count == 2
        assert result.documents[1].review_status == OverallReviewStatus.SECOND_REVIEW_IN_PROGRESS
        assert result.outcomes[0].effects == [ReviewEffect.NOTIFY_SECOND_REVIEWER]
        assert result.documents[0] is documents[0]
        assert result.documents[2] is documents[2]

    def test_batch_approve_publishes(self, engine):
        """Test single-level documents are published by a batch approval."""
        documents = [self._reviewing(engine, "A"), self._reviewing(engine, "B")]
        result = engine.batch_approve(documents, 1)

        assert result.affected_count == 2
        assert result.published_ids == ["A", "B"]
        assert all(d.lifecycle == LifecycleStatus.PUBLISHED for d in result.documents)

    def test_batch_approve_level2_requires_level1(self, engine):
        """Test level-2 batch only touches documents approved at level 1."""
        approved_first = engine.approve(self._reviewing(engine, "A", reviewer2=BOB), 1).document
        pending_first = self._reviewing(engine, "B", reviewer2=BOB)

        result = engine.batch_approve([approved_first, pending_first], 2)

        assert result.affected_count == 1
        assert result.skipped_count == 1
        assert result.published_ids == ["A"]
        assert result.documents[1] is pending_first

    def test_batch_reject(self, engine):
        """Test a batch rejection reverts affected documents to draft."""
        documents = [self._reviewing(engine, "A"), self._reviewing(engine, "B")]
        result = engine.batch_reject(documents, 1)

        assert result.reverted_ids == ["A", "B"]
        assert all(d.lifecycle == LifecycleStatus.DRAFT for d in result.documents)

    def test_empty_batch(self, engine):
        """Test nothing eligible leaves every document unchanged."""
        engine.logger = MagicMock()
        documents = [make_document("A", reviewer1=None), make_document("B", reviewer1=None)]

        result = engine.batch_approve(documents, 1)

        assert result.is_empty
        assert result.affected_count == 0
        assert result.skipped_count == 2
        assert result.documents == documents
        engine.logger.warning.assert_called_once()
        assert engine.logger.warning.call_args.args[0] == "batch_review_empty"


class TestLogging:
    """Test transition logging."""

    def test_decision_logged(self, engine):
        engine.logger = MagicMock()
        document = make_document()
        document = engine.submit_for_review(document).document
        engine.approve(document, 1)

        events = [c.args[0] for c in engine.logger.info.call_args_list]
        assert events == ["review_submitted", "review_decision_recorded", "document_published"]

    def test_missing_reviewer_logged(self, engine):
        engine.logger = MagicMock()
        with pytest.raises(MissingReviewer1Error):
            engine.submit_for_review(make_document(reviewer1=None))
        engine.logger.warning.assert_called_once()
