"""Release schedule calculator.

Derives the four working windows of a release from its release date. Weeks
are Monday-start ISO weeks:

    drafting     Mon..Wed of the week four weeks before release
    prototyping  Mon..Fri of the week three weeks before release
    development  Mon two weeks before .. Fri one week before release
    testing      Mon of the release week .. the release date itself

The calculation is a pure function of the release date and is memoized.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from functools import lru_cache

from pydantic import BaseModel, ConfigDict, model_validator


class InvalidDateError(ValueError):
    """Raised when a release date cannot be interpreted as a calendar date.

    Attributes:
        value: The rejected input.
    """

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Invalid release date: {value!r} (expected YYYY-MM-DD)")


class DateWindow(BaseModel):
    """An inclusive range of calendar dates."""

    model_config = ConfigDict(frozen=True)

    start: date
    end: date

    @model_validator(mode="after")
    def _check_order(self) -> DateWindow:
        if self.end < self.start:
            raise ValueError(f"Window end {self.end} precedes start {self.start}")
        return self

    @property
    def days(self) -> int:
        """Number of calendar days covered, both ends included."""
        return (self.end - self.start).days + 1


class ReleaseSchedule(BaseModel):
    """Working windows derived from a single release date.

    Attributes:
        release_date: The date the version ships.
        drafting_window: PRD drafting, three working days.
        prototyping_window: Prototype design, five working days.
        development_window: Development, ten working days over two weeks.
        testing_window: Testing, from the release week's Monday to release.
    """

    model_config = ConfigDict(frozen=True)

    release_date: date
    drafting_window: DateWindow
    prototyping_window: DateWindow
    development_window: DateWindow
    testing_window: DateWindow

    def windows(self) -> dict[str, DateWindow]:
        """Return the windows in chronological order, keyed by phase name."""
        return {
            "drafting": self.drafting_window,
            "prototyping": self.prototyping_window,
            "development": self.development_window,
            "testing": self.testing_window,
        }


def monday_of(d: date) -> date:
    """Monday of the ISO week containing ``d``."""
    return d - timedelta(days=d.weekday())


def wednesday_of(d: date) -> date:
    """Wednesday of the ISO week containing ``d``."""
    return monday_of(d) + timedelta(days=2)


def friday_of(d: date) -> date:
    """Friday of the ISO week containing ``d``."""
    return monday_of(d) + timedelta(days=4)


def parse_release_date(value: date | datetime | str) -> date:
    """Coerce a caller-supplied release date into a ``date``.

    Args:
        value: A date, a datetime (its calendar date is used) or an ISO
            ``YYYY-MM-DD`` string.

    Returns:
        The calendar date.

    Raises:
        InvalidDateError: If the value is of another type or does not parse.
    """
    # datetime is a date subclass, so check it first
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError as e:
            raise InvalidDateError(value) from e
    raise InvalidDateError(value)


@lru_cache(maxsize=256)
def _schedule_for(release: date) -> ReleaseSchedule:
    four_weeks_before = release - timedelta(weeks=4)
    three_weeks_before = release - timedelta(weeks=3)
    two_weeks_before = release - timedelta(weeks=2)
    one_week_before = release - timedelta(weeks=1)

    return ReleaseSchedule(
        release_date=release,
        drafting_window=DateWindow(
            start=monday_of(four_weeks_before),
            end=wednesday_of(four_weeks_before),
        ),
        prototyping_window=DateWindow(
            start=monday_of(three_weeks_before),
            end=friday_of(three_weeks_before),
        ),
        development_window=DateWindow(
            start=monday_of(two_weeks_before),
            end=friday_of(one_week_before),
        ),
        testing_window=DateWindow(
            start=monday_of(release),
            end=release,
        ),
    )


def compute_schedule(release_date: date | datetime | str) -> ReleaseSchedule:
    """Compute the release schedule for a release date.

    Args:
        release_date: Release date as a date, datetime or ISO string.

    Returns:
        The derived ReleaseSchedule. Identical inputs yield equal schedules.

    Raises:
        InvalidDateError: If ``release_date`` is not a valid date.
    """
    return _schedule_for(parse_release_date(release_date))
