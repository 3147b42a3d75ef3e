"""Unit tests for two-level review state.

Tests cover:
- Reviewer assignment and clearing
- Decision recording per level without cascading
- ReviewerNotAssignedError handling
- Batch eligibility predicates
- Batch decisions with skipped counts
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from prdflow.review.state import (
    AssignedLevel,
    ReviewDecision,
    ReviewerNotAssignedError,
    ReviewState,
    UnassignedLevel,
    UserRef,
    all_reviewers,
    approval_eligibility,
    assign_reviewer,
    batch_record_decision,
    record_decision,
    rejection_eligibility,
    requires_level,
    update_opinion,
)

ALICE = UserRef(id="u1", name="Alice")
BOB = UserRef(id="u2", name="Bob", email="bob@example.com")
REVIEWED_AT = datetime(2025, 1, 8, 9, 30, tzinfo=timezone.utc)


def make_state(
    d1: ReviewDecision | None = None,
    d2: ReviewDecision | None = None,
) -> ReviewState:
    """Build a state; a None decision means the level is unassigned."""
    state = ReviewState()
    if d1 is not None:
        state = record_decision(assign_reviewer(state, 1, ALICE), 1, d1)
    if d2 is not None:
        state = record_decision(assign_reviewer(state, 2, BOB), 2, d2)
    return state


class TestAssignReviewer:
    """Test reviewer assignment."""

    def test_empty_state(self):
        """Test a new state has no reviewers."""
        state = ReviewState()
        assert state.reviewer1 is None
        assert state.reviewer2 is None
        assert state.reviewer1_decision is None
        assert state.reviewer2_decision is None

    def test_assign_sets_pending(self):
        """Test assigning a reviewer starts the level as pending."""
        state = assign_reviewer(ReviewState(), 1, ALICE)
        assert state.reviewer1 == ALICE
        assert state.reviewer1_decision == ReviewDecision.PENDING
        assert state.reviewer2 is None

    def test_reassign_resets_decision(self):
        """Test re-assigning the same reviewer resets the decision."""
        state = make_state(d1=ReviewDecision.APPROVED)
        state = assign_reviewer(state, 1, ALICE)
        assert state.reviewer1_decision == ReviewDecision.PENDING

    def test_clear_removes_reviewer_and_decision(self):
        """Test clearing a level removes both reviewer and decision."""
        state = make_state(d1=ReviewDecision.APPROVED, d2=ReviewDecision.PENDING)
        state = assign_reviewer(state, 2, None)
        assert isinstance(state.level2, UnassignedLevel)
        assert state.reviewer2 is None
        assert state.reviewer2_decision is None
        assert state.reviewer1_decision == ReviewDecision.APPROVED

    def test_original_state_unchanged(self):
        """Test operations return new values."""
        original = ReviewState()
        assign_reviewer(original, 1, ALICE)
        assert original.reviewer1 is None

    @pytest.mark.parametrize("level", [0, 3, -1])
    def test_invalid_level(self, level):
        """Test levels other than 1 and 2 are rejected."""
        with pytest.raises(ValueError, match="Invalid review level"):
            assign_reviewer(ReviewState(), level, ALICE)

    def test_frozen(self):
        """Test states cannot be mutated in place."""
        state = ReviewState()
        with pytest.raises(ValidationError):
            state.level1 = AssignedLevel(reviewer=ALICE)


class TestRecordDecision:
    """Test decision recording."""

    def test_records_only_target_level(self):
        """Test recording at level 1 leaves level 2 untouched."""
        state = make_state(d1=ReviewDecision.PENDING, d2=ReviewDecision.PENDING)
        state = record_decision(state, 1, ReviewDecision.APPROVED)
        assert state.reviewer1_decision == ReviewDecision.APPROVED
        assert state.reviewer2_decision == ReviewDecision.PENDING

    def test_records_opinion_and_time(self):
        """Test opinion and reviewed_at are stored on the level."""
        state = make_state(d1=ReviewDecision.PENDING)
        state = record_decision(
            state,
            1,
            ReviewDecision.REJECTED,
            opinion="Scope unclear",
            reviewed_at=REVIEWED_AT,
        )
        slot = state.level(1)
        assert isinstance(slot, AssignedLevel)
        assert slot.opinion == "Scope unclear"
        assert slot.reviewed_at == REVIEWED_AT

    def test_keeps_previous_opinion_when_none(self):
        """Test omitting the opinion keeps the earlier remark."""
        state = make_state(d1=ReviewDecision.PENDING)
        state = record_decision(state, 1, ReviewDecision.REJECTED, opinion="Needs data")
        state = record_decision(state, 1, ReviewDecision.APPROVED)
        assert state.level(1).opinion == "Needs data"

    def test_level2_before_level1_is_held(self):
        """Test an early level-2 decision is accepted."""
        state = make_state(d1=ReviewDecision.PENDING, d2=ReviewDecision.PENDING)
        state = record_decision(state, 2, ReviewDecision.APPROVED)
        assert state.reviewer2_decision == ReviewDecision.APPROVED
        assert state.reviewer1_decision == ReviewDecision.PENDING

    @pytest.mark.parametrize("level", [1, 2])
    def test_unassigned_level_raises(self, level):
        """Test recording at an unassigned level fails."""
        with pytest.raises(ReviewerNotAssignedError) as exc_info:
            record_decision(
                ReviewState(), level, ReviewDecision.APPROVED, document_id="REQ-7"
            )
        assert exc_info.value.level == level
        assert exc_info.value.document_id == "REQ-7"
        assert "REQ-7" in str(exc_info.value)


class TestHelpers:
    """Test small state helpers."""

    def test_update_opinion(self):
        """Test the opinion changes without touching the decision."""
        state = make_state(d1=ReviewDecision.APPROVED)
        state = update_opinion(state, 1, "Looks good")
        assert state.level(1).opinion == "Looks good"
        assert state.reviewer1_decision == ReviewDecision.APPROVED

    def test_update_opinion_unassigned(self):
        with pytest.raises(ReviewerNotAssignedError):
            update_opinion(ReviewState(), 2, "n/a")

    def test_requires_level(self):
        state = make_state(d1=ReviewDecision.PENDING)
        assert requires_level(state, 1) is True
        assert requires_level(state, 2) is False

    def test_all_reviewers_distinct(self):
        """Test a reviewer assigned to both levels is listed once."""
        state = assign_reviewer(assign_reviewer(ReviewState(), 1, ALICE), 2, ALICE)
        assert all_reviewers(state) == [ALICE]

        state = assign_reviewer(state, 2, BOB)
        assert all_reviewers(state) == [ALICE, BOB]


class TestEligibility:
    """Test batch eligibility predicates."""

    @pytest.mark.parametrize(
        "d1,d2,level,expected",
        [
            (None, None, 1, False),
            (ReviewDecision.PENDING, None, 1, True),
            (ReviewDecision.REJECTED, None, 1, True),
            (ReviewDecision.APPROVED, None, 1, False),
            (ReviewDecision.APPROVED, None, 2, False),
            (ReviewDecision.PENDING, ReviewDecision.PENDING, 2, False),
            (ReviewDecision.APPROVED, ReviewDecision.PENDING, 2, True),
            (ReviewDecision.APPROVED, ReviewDecision.REJECTED, 2, True),
            (ReviewDecision.APPROVED, ReviewDecision.APPROVED, 2, False),
        ],
    )
    def test_approval_eligibility(self, d1, d2, level, expected):
        """Test which states a batch approval may touch."""
        assert approval_eligibility(level)(make_state(d1, d2)) is expected

    @pytest.mark.parametrize(
        "d1,d2,level,expected",
        [
            (ReviewDecision.PENDING, None, 1, True),
            (ReviewDecision.APPROVED, None, 1, True),
            (ReviewDecision.REJECTED, None, 1, False),
            (ReviewDecision.PENDING, ReviewDecision.PENDING, 2, False),
            (ReviewDecision.APPROVED, ReviewDecision.PENDING, 2, True),
            (ReviewDecision.APPROVED, ReviewDecision.REJECTED, 2, False),
        ],
    )
    def test_rejection_eligibility(self, d1, d2, level, expected):
        """Test which states a batch rejection may touch."""
        assert rejection_eligibility(level)(make_state(d1, d2)) is expected


class TestBatchRecordDecision:
    """Test batch decisions."""

    def test_only_eligible_updated(self):
        """Test five states where two are eligible for level-2 approval."""
        states = [
            make_state(ReviewDecision.APPROVED, ReviewDecision.PENDING),
            make_state(ReviewDecision.PENDING, ReviewDecision.PENDING),
            make_state(ReviewDecision.APPROVED, None),
            make_state(ReviewDecision.APPROVED, ReviewDecision.PENDING),
            make_state(ReviewDecision.APPROVED, ReviewDecision.APPROVED),
        ]

        result = batch_record_decision(
            states,
            2,
            ReviewDecision.APPROVED,
            approval_eligibility(2),
            reviewed_at=REVIEWED_AT,
        )

        assert result.updated_indices == [0, 3]
        assert result.updated_count == 2
        assert result.skipped_count == 3
        assert not result.is_empty
        for index in (0, 3):
            assert result.states[index].reviewer2_decision == ReviewDecision.APPROVED
            assert result.states[index].level(2).reviewed_at == REVIEWED_AT
        for index in (1, 2, 4):
            assert result.states[index] == states[index]

    def test_empty_selection(self):
        """Test zero eligible states is a normal, empty result."""
        states = [make_state(None, None), make_state(ReviewDecision.APPROVED, None)]
        result = batch_record_decision(
            states, 1, ReviewDecision.APPROVED, approval_eligibility(1)
        )
        assert result.is_empty
        assert result.updated == []
        assert result.skipped_count == 2
        assert result.states == states

    def test_invalid_level(self):
        with pytest.raises(ValueError):
            batch_record_decision([], 3, ReviewDecision.APPROVED, lambda s: True)
