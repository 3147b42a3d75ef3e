"""Engine and session helpers.

The same code path serves the default SQLite file and an optional
PostgreSQL deployment; only ``DatabaseConfig.url`` changes.

    engine = get_engine(config.database)
    sessions = get_session_factory(engine)
    async with sessions() as session:
        documents = await list_documents(session)
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from prdflow.config import DatabaseConfig
from prdflow.database.models.base import Base


def get_engine(config: DatabaseConfig) -> AsyncEngine:
    """Build the async engine described by ``config``."""
    return create_async_engine(config.url, echo=config.echo)


def get_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory for ``engine``.

    Loaded rows stay usable after commit (``expire_on_commit=False``), so
    callers can convert them to domain objects outside the transaction.
    """
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def create_schema(engine: AsyncEngine) -> None:
    """Create any missing tables directly from the model metadata.

    Used by ``prdflow init-db`` and the tests; alembic owns migrations of
    existing databases.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
