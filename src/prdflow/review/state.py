"""Two-level reviewer assignment state for requirements and PRDs.

Each review level is either unassigned or assigned to a reviewer together
with that reviewer's decision. Modelling the level as a tagged variant
makes "a decision exists if and only if a reviewer is assigned" hold by
construction.

All values are immutable; every operation returns a new ReviewState.
Recording a decision never cascades to the other level. What a
combination of decisions means is decided by the aggregator.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Callable, Iterable, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

REVIEW_LEVELS = (1, 2)


class ReviewDecision(str, Enum):
    """Outcome recorded by a single reviewer.

    States:
        PENDING: Reviewer assigned, no verdict yet.
        APPROVED: Reviewer accepted the document.
        REJECTED: Reviewer sent the document back.
    """

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ReviewerNotAssignedError(Exception):
    """Raised when a decision is recorded at a level with no reviewer.

    Attributes:
        level: The review level (1 or 2) that has no reviewer.
        document_id: The document the decision was meant for, if known.
    """

    def __init__(self, level: int, document_id: str | None = None):
        self.level = level
        self.document_id = document_id
        msg = f"No level-{level} reviewer assigned"
        if document_id:
            msg += f" for document {document_id}"
        super().__init__(msg)


class UserRef(BaseModel):
    """Reference to a user acting as reviewer."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    email: str | None = None


class UnassignedLevel(BaseModel):
    """A review level with no reviewer; the level is skipped."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["unassigned"] = "unassigned"


class AssignedLevel(BaseModel):
    """A review level with a reviewer and their decision.

    Attributes:
        reviewer: The assigned reviewer.
        decision: The reviewer's current decision.
        opinion: Free-text remark left with the decision.
        reviewed_at: When the decision was recorded, as supplied by the caller.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["assigned"] = "assigned"
    reviewer: UserRef
    decision: ReviewDecision = ReviewDecision.PENDING
    opinion: str | None = None
    reviewed_at: datetime | None = None


ReviewLevel = Annotated[
    Union[UnassignedLevel, AssignedLevel],
    Field(discriminator="kind"),
]


def _check_level(level: int) -> None:
    if level not in REVIEW_LEVELS:
        raise ValueError(f"Invalid review level: {level}. Must be 1 or 2")


class ReviewState(BaseModel):
    """Reviewer assignment and outcome for both review levels."""

    model_config = ConfigDict(frozen=True)

    level1: ReviewLevel = Field(default_factory=UnassignedLevel)
    level2: ReviewLevel = Field(default_factory=UnassignedLevel)

    def level(self, level: int) -> UnassignedLevel | AssignedLevel:
        """Return the slot for ``level`` (1 or 2)."""
        _check_level(level)
        return self.level1 if level == 1 else self.level2

    def reviewer(self, level: int) -> UserRef | None:
        slot = self.level(level)
        return slot.reviewer if isinstance(slot, AssignedLevel) else None

    def decision(self, level: int) -> ReviewDecision | None:
        slot = self.level(level)
        return slot.decision if isinstance(slot, AssignedLevel) else None

    @property
    def reviewer1(self) -> UserRef | None:
        return self.reviewer(1)

    @property
    def reviewer2(self) -> UserRef | None:
        return self.reviewer(2)

    @property
    def reviewer1_decision(self) -> ReviewDecision | None:
        return self.decision(1)

    @property
    def reviewer2_decision(self) -> ReviewDecision | None:
        return self.decision(2)

    def _with_level(self, level: int, slot: UnassignedLevel | AssignedLevel) -> ReviewState:
        field = "level1" if level == 1 else "level2"
        return self.model_copy(update={field: slot})


def assign_reviewer(state: ReviewState, level: int, user: UserRef | None) -> ReviewState:
    """Assign or clear the reviewer at ``level``.

    Assigning a user (even the same one again) resets the level's decision
    to pending. Passing ``None`` clears both reviewer and decision.
    """
    _check_level(level)
    if user is None:
        return state._with_level(level, UnassignedLevel())
    return state._with_level(level, AssignedLevel(reviewer=user))


def record_decision(
    state: ReviewState,
    level: int,
    decision: ReviewDecision,
    *,
    opinion: str | None = None,
    reviewed_at: datetime | None = None,
    document_id: str | None = None,
) -> ReviewState:
    """Overwrite the decision at ``level``.

    Args:
        state: Current review state.
        level: Review level (1 or 2).
        decision: Decision to record.
        opinion: Optional remark; keeps the previous remark when None.
        reviewed_at: Optional decision time; keeps the previous value when None.
        document_id: Only used to enrich the error message.

    Returns:
        A new ReviewState with the decision applied.

    Raises:
        ReviewerNotAssignedError: If the level has no reviewer.
    """
    slot = state.level(level)
    if not isinstance(slot, AssignedLevel):
        raise ReviewerNotAssignedError(level, document_id)

    updates: dict[str, object] = {"decision": decision}
    if opinion is not None:
        updates["opinion"] = opinion
    if reviewed_at is not None:
        updates["reviewed_at"] = reviewed_at
    return state._with_level(level, slot.model_copy(update=updates))


def update_opinion(state: ReviewState, level: int, opinion: str) -> ReviewState:
    """Replace the reviewer's remark at ``level`` without touching the decision.

    Raises:
        ReviewerNotAssignedError: If the level has no reviewer.
    """
    slot = state.level(level)
    if not isinstance(slot, AssignedLevel):
        raise ReviewerNotAssignedError(level)
    return state._with_level(level, slot.model_copy(update={"opinion": opinion}))


def requires_level(state: ReviewState, level: int) -> bool:
    """Whether the document has a reviewer at ``level``."""
    return isinstance(state.level(level), AssignedLevel)


def all_reviewers(state: ReviewState) -> list[UserRef]:
    """Distinct reviewers in level order."""
    seen: set[str] = set()
    reviewers: list[UserRef] = []
    for level in REVIEW_LEVELS:
        user = state.reviewer(level)
        if user is not None and user.id not in seen:
            seen.add(user.id)
            reviewers.append(user)
    return reviewers


# ---------------------------------------------------------------------------
# Batch decisions
# ---------------------------------------------------------------------------

EligibilityPredicate = Callable[[ReviewState], bool]


def eligible_for_level1_approval(state: ReviewState) -> bool:
    return state.reviewer1 is not None and state.reviewer1_decision != ReviewDecision.APPROVED


def eligible_for_level2_approval(state: ReviewState) -> bool:
    return (
        state.reviewer2 is not None
        and state.reviewer1_decision == ReviewDecision.APPROVED
        and state.reviewer2_decision != ReviewDecision.APPROVED
    )


def eligible_for_level1_rejection(state: ReviewState) -> bool:
    return state.reviewer1 is not None and state.reviewer1_decision != ReviewDecision.REJECTED


def eligible_for_level2_rejection(state: ReviewState) -> bool:
    return (
        state.reviewer2 is not None
        and state.reviewer1_decision == ReviewDecision.APPROVED
        and state.reviewer2_decision != ReviewDecision.REJECTED
    )


def approval_eligibility(level: int) -> EligibilityPredicate:
    """Predicate selecting the states a batch approval at ``level`` may touch."""
    _check_level(level)
    return eligible_for_level1_approval if level == 1 else eligible_for_level2_approval


def rejection_eligibility(level: int) -> EligibilityPredicate:
    """Predicate selecting the states a batch rejection at ``level`` may touch."""
    _check_level(level)
    return eligible_for_level1_rejection if level == 1 else eligible_for_level2_rejection


class BatchDecisionResult(BaseModel):
    """Outcome of applying one decision to many review states.

    Attributes:
        states: Every input state in input order, updated where eligible.
        updated_indices: Positions in ``states`` that were updated.
        skipped_count: Number of states the predicate excluded.
    """

    model_config = ConfigDict(frozen=True)

    states: list[ReviewState]
    updated_indices: list[int] = Field(default_factory=list)
    skipped_count: int = 0

    @property
    def updated(self) -> list[ReviewState]:
        return [self.states[i] for i in self.updated_indices]

    @property
    def updated_count(self) -> int:
        return len(self.updated_indices)

    @property
    def is_empty(self) -> bool:
        """True when no state was eligible and nothing changed."""
        return not self.updated_indices


def batch_record_decision(
    states: Iterable[ReviewState],
    level: int,
    decision: ReviewDecision,
    eligible: EligibilityPredicate,
    *,
    reviewed_at: datetime | None = None,
) -> BatchDecisionResult:
    """Record ``decision`` at ``level`` on every state ``eligible`` accepts.

    Ineligible states are returned untouched and counted as skipped. A
    result with zero updates is a normal outcome; callers check
    ``is_empty`` to tell the user nothing changed.
    """
    _check_level(level)
    result_states: list[ReviewState] = []
    updated_indices: list[int] = []
    skipped = 0

    for index, state in enumerate(states):
        if eligible(state):
            result_states.append(
                record_decision(state, level, decision, reviewed_at=reviewed_at)
            )
            updated_indices.append(index)
        else:
            result_states.append(state)
            skipped += 1

    return BatchDecisionResult(
        states=result_states,
        updated_indices=updated_indices,
        skipped_count=skipped,
    )
