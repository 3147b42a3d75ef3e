"""Overall review status derived from a two-level ReviewState.

Every surface that shows a review status (list tables, detail views, batch
toolbars, the CLI) goes through ``aggregate`` so the classification exists
in one place.

Classification, evaluated in order:

    1. no reviewer at either level           -> NO_REVIEW_REQUIRED
    2. level 1 rejected                      -> REJECTED
    3. level 2 assigned and rejected         -> REJECTED
    4. only level 1 assigned                 -> APPROVED / FIRST_REVIEW_IN_PROGRESS
    5. both assigned                         -> APPROVED when both approved,
                                                SECOND_REVIEW_IN_PROGRESS when only
                                                level 1 approved, otherwise
                                                FIRST_REVIEW_IN_PROGRESS
    6. only level 2 assigned                 -> APPROVED / SECOND_REVIEW_IN_PROGRESS

An unassigned level is skipped, never treated as pending. Rejection at any
assigned level wins over every in-progress state.
"""

from __future__ import annotations

from enum import Enum

from prdflow.review.state import ReviewDecision, ReviewState


class OverallReviewStatus(str, Enum):
    """Overall review status of a document.

    States:
        NO_REVIEW_REQUIRED: No reviewer assigned at either level.
        PENDING: Reviewer assigned on a document not yet submitted (display only).
        FIRST_REVIEW_IN_PROGRESS: Waiting on the level-1 reviewer.
        SECOND_REVIEW_IN_PROGRESS: Level 1 approved, waiting on level 2.
        APPROVED: Every assigned level approved.
        REJECTED: Some assigned level rejected.
    """

    NO_REVIEW_REQUIRED = "no_review_required"
    PENDING = "pending"
    FIRST_REVIEW_IN_PROGRESS = "first_review_in_progress"
    SECOND_REVIEW_IN_PROGRESS = "second_review_in_progress"
    APPROVED = "approved"
    REJECTED = "rejected"


class LifecycleStatus(str, Enum):
    """Publication state of a requirement or PRD."""

    DRAFT = "draft"
    REVIEWING = "reviewing"
    PUBLISHED = "published"


STATUS_LABELS: dict[str, dict[OverallReviewStatus, str]] = {
    "en": {
        OverallReviewStatus.NO_REVIEW_REQUIRED: "No review required",
        OverallReviewStatus.PENDING: "Pending review",
        OverallReviewStatus.FIRST_REVIEW_IN_PROGRESS: "First review in progress",
        OverallReviewStatus.SECOND_REVIEW_IN_PROGRESS: "Second review in progress",
        OverallReviewStatus.APPROVED: "Approved",
        OverallReviewStatus.REJECTED: "Rejected",
    },
    "zh": {
        OverallReviewStatus.NO_REVIEW_REQUIRED: "无需评审",
        OverallReviewStatus.PENDING: "待评审",
        OverallReviewStatus.FIRST_REVIEW_IN_PROGRESS: "一级评审中",
        OverallReviewStatus.SECOND_REVIEW_IN_PROGRESS: "二级评审中",
        OverallReviewStatus.APPROVED: "评审通过",
        OverallReviewStatus.REJECTED: "评审不通过",
    },
}


def aggregate(state: ReviewState) -> OverallReviewStatus:
    """Classify a review state into one overall status."""
    has_first = state.reviewer1 is not None
    has_second = state.reviewer2 is not None
    d1 = state.reviewer1_decision
    d2 = state.reviewer2_decision

    if not has_first and not has_second:
        return OverallReviewStatus.NO_REVIEW_REQUIRED

    # Order matters: level-1 rejection is terminal even if level 2 approved
    if has_first and d1 == ReviewDecision.REJECTED:
        return OverallReviewStatus.REJECTED
    if has_second and d2 == ReviewDecision.REJECTED:
        return OverallReviewStatus.REJECTED

    if not has_second:
        if d1 == ReviewDecision.APPROVED:
            return OverallReviewStatus.APPROVED
        return OverallReviewStatus.FIRST_REVIEW_IN_PROGRESS

    if not has_first:
        if d2 == ReviewDecision.APPROVED:
            return OverallReviewStatus.APPROVED
        return OverallReviewStatus.SECOND_REVIEW_IN_PROGRESS

    if d1 == ReviewDecision.APPROVED:
        if d2 == ReviewDecision.APPROVED:
            return OverallReviewStatus.APPROVED
        return OverallReviewStatus.SECOND_REVIEW_IN_PROGRESS

    # A level-2 verdict recorded early is held until level 1 approves
    return OverallReviewStatus.FIRST_REVIEW_IN_PROGRESS


def display_status(
    status: OverallReviewStatus,
    lifecycle: LifecycleStatus,
) -> OverallReviewStatus:
    """Status as shown to users.

    A draft with a reviewer assigned has not entered review yet, so the
    canonical FIRST_REVIEW_IN_PROGRESS is shown as PENDING.
    """
    if (
        lifecycle == LifecycleStatus.DRAFT
        and status == OverallReviewStatus.FIRST_REVIEW_IN_PROGRESS
    ):
        return OverallReviewStatus.PENDING
    return status


def status_label(status: OverallReviewStatus, locale: str = "en") -> str:
    """Human-readable label for ``status`` in ``locale`` ("en" or "zh")."""
    try:
        labels = STATUS_LABELS[locale]
    except KeyError:
        raise ValueError(f"Unsupported label locale: {locale}") from None
    return labels[status]


def publication_trigger(status: OverallReviewStatus) -> LifecycleStatus | None:
    """Lifecycle a document moves to when it enters ``status``, if any."""
    if status == OverallReviewStatus.APPROVED:
        return LifecycleStatus.PUBLISHED
    if status == OverallReviewStatus.REJECTED:
        return LifecycleStatus.DRAFT
    return None
