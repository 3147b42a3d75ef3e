"""Database query functions for prdflow.

Async query functions for:
- Document (requirement / PRD) CRUD
- Version CRUD with schedule computation
"""

from prdflow.database.queries.document import (
    create_document,
    delete_document,
    get_document,
    get_documents,
    list_documents,
    save_document,
)
from prdflow.database.queries.version import (
    create_version,
    delete_version,
    get_version,
    list_version_labels,
    list_versions,
    update_release_date,
)

__all__ = [
    # Document queries
    "create_document",
    "get_document",
    "get_documents",
    "list_documents",
    "save_document",
    "delete_document",
    # Version queries
    "create_version",
    "get_version",
    "list_versions",
    "update_release_date",
    "delete_version",
    "list_version_labels",
]
