"""SQLAlchemy ORM models for prdflow.

All models use SQLAlchemy 2.0 declarative style with Mapped[] type annotations.
"""

from prdflow.database.models.base import Base, TimestampMixin
from prdflow.database.models.document import Document
from prdflow.database.models.version import Version

__all__ = [
    "Base",
    "TimestampMixin",
    "Document",
    "Version",
]
