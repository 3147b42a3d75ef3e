"""Release scheduling for prdflow.

Derives the drafting, prototyping, development and testing windows of a
release from its release date, and validates version records.
"""

from prdflow.schedule.calculator import (
    DateWindow,
    InvalidDateError,
    ReleaseSchedule,
    compute_schedule,
    friday_of,
    monday_of,
    parse_release_date,
    wednesday_of,
)
from prdflow.schedule.version import (
    NO_VERSION_LABEL,
    ReleaseDateInPastError,
    VersionSpec,
    ensure_release_not_past,
    version_label,
    version_labels,
)

__all__ = [
    "DateWindow",
    "InvalidDateError",
    "NO_VERSION_LABEL",
    "ReleaseDateInPastError",
    "ReleaseSchedule",
    "VersionSpec",
    "compute_schedule",
    "ensure_release_not_past",
    "friday_of",
    "monday_of",
    "parse_release_date",
    "version_label",
    "version_labels",
    "wednesday_of",
]
