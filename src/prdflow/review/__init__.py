"""Two-level review subsystem for prdflow.

Reviewer assignment and decisions (state), the canonical overall status
(aggregator), and the workflow engine that maps review outcomes onto a
document's publication lifecycle.
"""

from prdflow.review.aggregator import (
    LifecycleStatus,
    OverallReviewStatus,
    aggregate,
    display_status,
    publication_trigger,
    status_label,
)
from prdflow.review.state import (
    AssignedLevel,
    BatchDecisionResult,
    ReviewDecision,
    ReviewerNotAssignedError,
    ReviewState,
    UnassignedLevel,
    UserRef,
    all_reviewers,
    approval_eligibility,
    assign_reviewer,
    batch_record_decision,
    eligible_for_level1_approval,
    eligible_for_level1_rejection,
    eligible_for_level2_approval,
    eligible_for_level2_rejection,
    record_decision,
    rejection_eligibility,
    requires_level,
    update_opinion,
)
from prdflow.review.workflow import (
    BatchWorkflowResult,
    DocumentKind,
    MissingReviewer1Error,
    ReviewableDocument,
    ReviewEffect,
    ReviewWorkflowEngine,
    WorkflowOutcome,
)

__all__ = [
    "AssignedLevel",
    "BatchDecisionResult",
    "BatchWorkflowResult",
    "DocumentKind",
    "LifecycleStatus",
    "MissingReviewer1Error",
    "OverallReviewStatus",
    "ReviewDecision",
    "ReviewEffect",
    "ReviewState",
    "ReviewWorkflowEngine",
    "ReviewableDocument",
    "ReviewerNotAssignedError",
    "UnassignedLevel",
    "UserRef",
    "WorkflowOutcome",
    "aggregate",
    "all_reviewers",
    "approval_eligibility",
    "assign_reviewer",
    "batch_record_decision",
    "display_status",
    "eligible_for_level1_approval",
    "eligible_for_level1_rejection",
    "eligible_for_level2_approval",
    "eligible_for_level2_rejection",
    "publication_trigger",
    "record_decision",
    "rejection_eligibility",
    "requires_level",
    "status_label",
    "update_opinion",
]
