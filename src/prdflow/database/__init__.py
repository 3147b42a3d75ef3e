"""Database layer for prdflow.

Handles database connections, session management, ORM models for
documents and versions, and the DocumentStore used by the CLI.

Public API:
    get_engine: Create an AsyncEngine from DatabaseConfig.
    get_session_factory: Create an async_sessionmaker from an engine.
    create_schema: Create missing tables.
    DocumentStore: Load and save documents as domain values.
"""

from prdflow.database.connection import create_schema, get_engine, get_session_factory
from prdflow.database.models import Base, Document, TimestampMixin, Version
from prdflow.database.store import DocumentStore, parse_document_id

__all__ = [
    "get_engine",
    "get_session_factory",
    "create_schema",
    "Base",
    "TimestampMixin",
    "Document",
    "Version",
    "DocumentStore",
    "parse_document_id",
]
