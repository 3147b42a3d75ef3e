"""Release version records and their validation rules.

A version belongs to a platform (e.g. "iOS", "PC"), carries a dotted
version number and a release date, and owns the schedule derived from
that date. The schedule is recomputed whenever the release date changes
and is never edited directly.
"""

from __future__ import annotations

import re
from datetime import date
from typing import Iterable

from pydantic import BaseModel, ConfigDict, Field, field_validator

from prdflow.schedule.calculator import ReleaseSchedule, compute_schedule, parse_release_date

NO_VERSION_LABEL = "No version"

PLATFORM_MAX_LENGTH = 20

_PLATFORM_PATTERN = re.compile(r"^[\u4e00-\u9fa5A-Za-z0-9_]+$")
_VERSION_NUMBER_PATTERN = re.compile(r"^\d+\.\d+(\.\d+)?$")


class ReleaseDateInPastError(ValueError):
    """Raised when a new release date lies before the current day.

    Attributes:
        release_date: The rejected release date.
        today: The reference day the check was made against.
    """

    def __init__(self, release_date: date, today: date):
        self.release_date = release_date
        self.today = today
        super().__init__(
            f"Release date {release_date.isoformat()} is earlier than today ({today.isoformat()})"
        )


class VersionSpec(BaseModel):
    """Validated input for creating a version.

    Attributes:
        platform: Platform name; letters (including CJK), digits and underscores.
        version_number: Dotted number in ``x.y`` or ``x.y.z`` form.
        release_date: Planned release date.
    """

    model_config = ConfigDict(frozen=True)

    platform: str = Field(max_length=PLATFORM_MAX_LENGTH)
    version_number: str
    release_date: date

    @field_validator("platform", mode="before")
    @classmethod
    def validate_platform(cls, v: object) -> str:
        """Strip and check the platform name."""
        if v is None:
            v = ""
        if not isinstance(v, str):
            raise ValueError("Platform must be a string")
        v = v.strip()
        if not v:
            raise ValueError("Platform must not be empty")
        if not _PLATFORM_PATTERN.match(v):
            raise ValueError(
                "Platform may only contain letters, digits and underscores"
            )
        return v

    @field_validator("version_number", mode="before")
    @classmethod
    def validate_version_number(cls, v: object) -> str:
        """Check the version number is dotted ``x.y[.z]``."""
        if v is None:
            v = ""
        if not isinstance(v, str):
            raise ValueError("Version number must be a string")
        v = v.strip()
        if not v:
            raise ValueError("Version number must not be empty")
        if not _VERSION_NUMBER_PATTERN.match(v):
            raise ValueError(
                f"Invalid version number: {v}. Use x.y.z format (e.g. 1.0.0)"
            )
        return v

    @field_validator("release_date", mode="before")
    @classmethod
    def validate_release_date(cls, v: object) -> date:
        """Accept dates, datetimes and ISO strings."""
        return parse_release_date(v)  # type: ignore[arg-type]

    @property
    def label(self) -> str:
        """Display label used in version pickers."""
        return version_label(self.platform, self.version_number)

    def schedule(self) -> ReleaseSchedule:
        """Schedule derived from this version's release date."""
        return compute_schedule(self.release_date)


def ensure_release_not_past(release_date: date, today: date) -> None:
    """Reject release dates before ``today``.

    Raises:
        ReleaseDateInPastError: If ``release_date`` precedes ``today``.
    """
    if release_date < today:
        raise ReleaseDateInPastError(release_date, today)


def version_label(platform: str, version_number: str) -> str:
    return f"{platform} {version_number}"


def version_labels(labels: Iterable[str]) -> list[str]:
    """Build the picker list: the "no version" entry, then labels descending."""
    return [NO_VERSION_LABEL, *sorted(labels, reverse=True)]
