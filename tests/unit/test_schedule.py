"""Unit tests for the release schedule calculator.

Tests cover:
- Week helpers (Monday / Wednesday / Friday of a date's week)
- Window derivation for a known release date
- Window lengths and ordering across many release dates
- Determinism and memoization
- Input coercion and InvalidDateError
"""

from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest
from pydantic import ValidationError

from prdflow.schedule.calculator import (
    DateWindow,
    InvalidDateError,
    compute_schedule,
    friday_of,
    monday_of,
    parse_release_date,
    wednesday_of,
)


class TestWeekHelpers:
    """Test Monday-start week helpers."""

    @pytest.mark.parametrize(
        "day,expected_monday",
        [
            (date(2025, 1, 6), date(2025, 1, 6)),  # Monday
            (date(2025, 1, 8), date(2025, 1, 6)),  # Wednesday
            (date(2025, 1, 10), date(2025, 1, 6)),  # Friday
            (date(2025, 1, 12), date(2025, 1, 6)),  # Sunday belongs to the same ISO week
            (date(2025, 1, 1), date(2024, 12, 30)),  # Across a year boundary
        ],
    )
    def test_monday_of(self, day, expected_monday):
        """Test Monday is found for every weekday including Sunday."""
        assert monday_of(day) == expected_monday

    def test_wednesday_and_friday(self):
        """Test Wednesday and Friday are offsets from Monday."""
        sunday = date(2025, 1, 12)
        assert wednesday_of(sunday) == date(2025, 1, 8)
        assert friday_of(sunday) == date(2025, 1, 10)


class TestComputeSchedule:
    """Test window derivation."""

    def test_friday_release(self):
        """Test all windows for a Friday release on 2025-01-10."""
        schedule = compute_schedule(date(2025, 1, 10))

        assert schedule.release_date == date(2025, 1, 10)
        assert schedule.drafting_window == DateWindow(
            start=date(2024, 12, 9), end=date(2024, 12, 11)
        )
        assert schedule.prototyping_window == DateWindow(
            start=date(2024, 12, 16), end=date(2024, 12, 20)
        )
        assert schedule.development_window == DateWindow(
            start=date(2024, 12, 23), end=date(2025, 1, 3)
        )
        assert schedule.testing_window == DateWindow(
            start=date(2025, 1, 6), end=date(2025, 1, 10)
        )

    def test_monday_release_has_one_day_testing(self):
        """Test a Monday release collapses testing to the release day."""
        schedule = compute_schedule(date(2025, 1, 6))
        assert schedule.testing_window.start == date(2025, 1, 6)
        assert schedule.testing_window.end == date(2025, 1, 6)
        assert schedule.testing_window.days == 1

    @pytest.mark.parametrize("offset", range(0, 400, 13))
    def test_window_lengths(self, offset):
        """Test fixed window lengths for a spread of release dates."""
        release = date(2025, 1, 1) + timedelta(days=offset)
        schedule = compute_schedule(release)

        assert schedule.drafting_window.end - schedule.drafting_window.start == timedelta(days=2)
        assert schedule.prototyping_window.end - schedule.prototyping_window.start == timedelta(
            days=4
        )
        assert schedule.development_window.days == 12
        assert schedule.testing_window.end == release

    @pytest.mark.parametrize("offset", range(0, 400, 13))
    def test_windows_do_not_overlap(self, offset):
        """Test windows are strictly ordered and start on Mondays."""
        release = date(2025, 1, 1) + timedelta(days=offset)
        windows = list(compute_schedule(release).windows().values())

        for window in windows:
            assert window.start.weekday() == 0
        for earlier, later in zip(windows, windows[1:]):
            assert earlier.end < later.start

    def test_windows_order(self):
        """Test windows() returns phases in chronological order."""
        schedule = compute_schedule("2025-03-14")
        assert list(schedule.windows()) == ["drafting", "prototyping", "development", "testing"]

    def test_deterministic(self):
        """Test identical inputs give equal schedules."""
        first = compute_schedule(date(2025, 6, 20))
        second = compute_schedule("2025-06-20")
        third = compute_schedule(datetime(2025, 6, 20, 23, 59))
        assert first == second == third

    def test_schedule_is_immutable(self):
        """Test returned schedules cannot be modified."""
        schedule = compute_schedule(date(2025, 6, 20))
        with pytest.raises(ValidationError):
            schedule.release_date = date(2025, 7, 1)


class TestParseReleaseDate:
    """Test release date coercion."""

    def test_accepts_date_datetime_and_string(self):
        """Test supported input types."""
        assert parse_release_date(date(2025, 1, 10)) == date(2025, 1, 10)
        assert parse_release_date(datetime(2025, 1, 10, 8, 30)) == date(2025, 1, 10)
        assert parse_release_date(" 2025-01-10 ") == date(2025, 1, 10)

    @pytest.mark.parametrize("value", ["", "2025-13-01", "2025-02-30", "next friday", None, 20250110])
    def test_rejects_invalid(self, value):
        """Test unparseable values raise InvalidDateError."""
        with pytest.raises(InvalidDateError) as exc_info:
            compute_schedule(value)
        assert exc_info.value.value == value
        assert "Invalid release date" in str(exc_info.value)

    def test_invalid_date_error_is_value_error(self):
        """Test InvalidDateError can be handled as ValueError."""
        with pytest.raises(ValueError):
            parse_release_date("not-a-date")


class TestDateWindow:
    """Test DateWindow validation."""

    def test_days_inclusive(self):
        """Test days counts both ends."""
        window = DateWindow(start=date(2025, 1, 6), end=date(2025, 1, 10))
        assert window.days == 5

    def test_end_before_start_rejected(self):
        """Test a reversed window is invalid."""
        with pytest.raises(ValidationError):
            DateWindow(start=date(2025, 1, 10), end=date(2025, 1, 6))
