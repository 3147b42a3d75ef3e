"""Version CRUD query functions for prdflow.

Creating a version validates its fields and stores the schedule computed
from the release date. Changing the release date always recomputes the
schedule.
"""

from __future__ import annotations

from datetime import date
from uuid import UUID

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from prdflow.database.models.version import Version
from prdflow.schedule.calculator import compute_schedule, parse_release_date
from prdflow.schedule.version import VersionSpec, ensure_release_not_past, version_labels

logger = structlog.get_logger(__name__)


async def create_version(
    session: AsyncSession,
    platform: str,
    version_number: str,
    release_date: date | str,
    today: date | None = None,
) -> Version:
    """Create a version and its schedule.

    Args:
        session: Active async database session.
        platform: Platform name.
        version_number: Dotted version number.
        release_date: Planned release date.
        today: When given, release dates before this day are rejected.

    Returns:
        The newly created Version instance.

    Raises:
        pydantic.ValidationError: If platform, version number or date are malformed.
        ReleaseDateInPastError: If ``release_date`` precedes ``today``.
    """
    spec = VersionSpec(
        platform=platform,
        version_number=version_number,
        release_date=release_date,
    )
    if today is not None:
        ensure_release_not_past(spec.release_date, today)

    version = Version(platform=spec.platform, version_number=spec.version_number)
    version.apply_schedule(spec.schedule())

    session.add(version)
    await session.commit()
    await session.refresh(version)

    logger.info(
        "version_created",
        version_id=str(version.id),
        label=version.label,
        release_date=version.release_date.isoformat(),
    )

    return version


async def get_version(
    session: AsyncSession,
    version_id: UUID,
) -> Version | None:
    """Retrieve a version by ID."""
    stmt = select(Version).where(Version.id == version_id)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def list_versions(
    session: AsyncSession,
    platform: str | None = None,
) -> list[Version]:
    """List versions, most recent release first.

    Args:
        session: Active async database session.
        platform: Optional platform to filter by.

    Returns:
        List of matching Version instances.
    """
    stmt = select(Version)

    if platform is not None:
        stmt = stmt.where(Version.platform == platform)

    stmt = stmt.order_by(Version.release_date.desc(), Version.platform.asc())

    result = await session.execute(stmt)
    return list(result.scalars().all())


async def update_release_date(
    session: AsyncSession,
    version_id: UUID,
    release_date: date | str,
    today: date | None = None,
) -> Version:
    """Move a version's release date and recompute its schedule.

    Raises:
        InvalidDateError: If ``release_date`` is not a valid date.
        ReleaseDateInPastError: If ``release_date`` precedes ``today``.
        ValueError: If the version does not exist.
    """
    new_date = parse_release_date(release_date)
    if today is not None:
        ensure_release_not_past(new_date, today)

    version = await get_version(session, version_id)
    if version is None:
        raise ValueError(f"Version {version_id} not found")

    old_date = version.release_date
    version.apply_schedule(compute_schedule(new_date))
    await session.commit()
    await session.refresh(version)

    logger.info(
        "version_rescheduled",
        version_id=str(version_id),
        old_release_date=old_date.isoformat(),
        new_release_date=new_date.isoformat(),
    )

    return version


async def delete_version(
    session: AsyncSession,
    version_id: UUID,
) -> bool:
    """Delete a version.

    Returns:
        True if a row was deleted, False if it did not exist.
    """
    stmt = delete(Version).where(Version.id == version_id)
    result = await session.execute(stmt)
    await session.commit()

    deleted = result.rowcount > 0
    if deleted:
        logger.info("version_deleted", version_id=str(version_id))
    return deleted


async def list_version_labels(
    session: AsyncSession,
    platform: str | None = None,
) -> list[str]:
    """Labels for version pickers: "No version", then labels descending."""
    versions = await list_versions(session, platform=platform)
    return version_labels(v.label for v in versions)
