"""Initial schema for prdflow.

Creates the documents table (requirements and PRDs with their two review
levels) and the versions table (release versions with stored schedules).

Revision ID: 001
Revises: None
Create Date: 2025-01-06
"""

from __future__ import annotations

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _review_decision() -> sa.Enum:
    return sa.Enum("pending", "approved", "rejected", name="review_decision")


def _reviewer_columns(level: int, decision: sa.Enum) -> list[sa.Column]:
    prefix = f"reviewer{level}_"
    return [
        sa.Column(prefix + "id", sa.Text(), nullable=True),
        sa.Column(prefix + "name", sa.Text(), nullable=True),
        sa.Column(prefix + "email", sa.Text(), nullable=True),
        sa.Column(prefix + "decision", decision, nullable=True),
        sa.Column(prefix + "opinion", sa.Text(), nullable=True),
        sa.Column(prefix + "reviewed_at", sa.DateTime(timezone=True), nullable=True),
    ]


def _window_columns(phase: str) -> list[sa.Column]:
    return [
        sa.Column(f"{phase}_start", sa.Date(), nullable=False),
        sa.Column(f"{phase}_end", sa.Date(), nullable=False),
    ]


def upgrade() -> None:
    review_decision = _review_decision()

    # Documents table
    op.create_table(
        "documents",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "kind",
            sa.Enum("requirement", "prd", name="document_kind"),
            nullable=False,
        ),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column(
            "lifecycle",
            sa.Enum("draft", "reviewing", "published", name="lifecycle_status"),
            nullable=False,
            server_default="draft",
        ),
        sa.Column("planned_version", sa.Text(), nullable=True),
        *_reviewer_columns(1, review_decision),
        *_reviewer_columns(2, review_decision),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
    )
    op.create_index("ix_documents_kind_lifecycle", "documents", ["kind", "lifecycle"])

    # Versions table
    op.create_table(
        "versions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("platform", sa.Text(), nullable=False),
        sa.Column("version_number", sa.Text(), nullable=False),
        sa.Column("release_date", sa.Date(), nullable=False),
        *_window_columns("drafting"),
        *_window_columns("prototyping"),
        *_window_columns("development"),
        *_window_columns("testing"),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.UniqueConstraint("platform", "version_number", name="uq_versions_platform_number"),
    )


def downgrade() -> None:
    op.drop_table("versions")
    op.drop_index("ix_documents_kind_lifecycle", table_name="documents")
    op.drop_table("documents")

    bind = op.get_bind()
    for name in ("review_decision", "lifecycle_status", "document_kind"):
        sa.Enum(name=name).drop(bind, checkfirst=True)
