"""Version model for prdflow.

A release version of one platform. The eight schedule columns are always
written from ``compute_schedule(release_date)``; they are stored so that
listings and reports do not need to recompute them.
"""

from __future__ import annotations

from datetime import date

from sqlalchemy import Date, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from prdflow.database.models.base import Base, TimestampMixin
from prdflow.schedule.calculator import DateWindow, ReleaseSchedule
from prdflow.schedule.version import version_label


class Version(TimestampMixin, Base):
    """A planned release of a platform.

    Attributes:
        id: UUID primary key (from TimestampMixin).
        platform: Platform name (e.g. "iOS", "PC").
        version_number: Dotted version number.
        release_date: Planned release date.
        drafting_start / drafting_end: PRD drafting window.
        prototyping_start / prototyping_end: Prototyping window.
        development_start / development_end: Development window.
        testing_start / testing_end: Testing window.
    """

    __tablename__ = "versions"
    __table_args__ = (
        UniqueConstraint("platform", "version_number", name="uq_versions_platform_number"),
    )

    platform: Mapped[str] = mapped_column(Text, nullable=False)
    version_number: Mapped[str] = mapped_column(Text, nullable=False)
    release_date: Mapped[date] = mapped_column(Date, nullable=False)

    drafting_start: Mapped[date] = mapped_column(Date, nullable=False)
    drafting_end: Mapped[date] = mapped_column(Date, nullable=False)
    prototyping_start: Mapped[date] = mapped_column(Date, nullable=False)
    prototyping_end: Mapped[date] = mapped_column(Date, nullable=False)
    development_start: Mapped[date] = mapped_column(Date, nullable=False)
    development_end: Mapped[date] = mapped_column(Date, nullable=False)
    testing_start: Mapped[date] = mapped_column(Date, nullable=False)
    testing_end: Mapped[date] = mapped_column(Date, nullable=False)

    @property
    def label(self) -> str:
        return version_label(self.platform, self.version_number)

    @property
    def schedule(self) -> ReleaseSchedule:
        """Schedule as stored on the row."""
        return ReleaseSchedule(
            release_date=self.release_date,
            drafting_window=DateWindow(start=self.drafting_start, end=self.drafting_end),
            prototyping_window=DateWindow(
                start=self.prototyping_start, end=self.prototyping_end
            ),
            development_window=DateWindow(
                start=self.development_start, end=self.development_end
            ),
            testing_window=DateWindow(start=self.testing_start, end=self.testing_end),
        )

    def apply_schedule(self, schedule: ReleaseSchedule) -> None:
        """Write ``schedule`` (and its release date) onto the row."""
        self.release_date = schedule.release_date
        for phase, window in schedule.windows().items():
            setattr(self, f"{phase}_start", window.start)
            setattr(self, f"{phase}_end", window.end)
