"""Initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-17

Creates subject, extraction_unit and generated_document.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

json_type = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    """Create all tables."""
    # subject table
    op.create_table(
        "subject",
        sa.Column("subject_id", sa.Uuid(), primary_key=True),
        sa.Column("owner_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.Text(), nullable=True),
        sa.Column("source_url", sa.Text(), nullable=False),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("content_updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("idx_subject_owner", "subject", ["owner_id", "created_at"])

    # extraction_unit table
    op.create_table(
        "extraction_unit",
        sa.Column("unit_id", sa.Uuid(), primary_key=True),
        sa.Column("subject_id", sa.Uuid(), nullable=False),
        sa.Column("unit_type", sa.Text(), nullable=False),
        sa.Column("status", sa.Text(), server_default="queued", nullable=False),
        sa.Column("raw_output", sa.Text(), nullable=True),
        sa.Column("parsed_output", json_type, nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("retry_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["subject_id"], ["subject.subject_id"], ondelete="CASCADE"),
        sa.UniqueConstraint("subject_id", "unit_type", name="uq_unit_subject_type"),
    )
    op.create_index("idx_unit_subject_created", "extraction_unit", ["subject_id", "created_at"])

    # generated_document table
    op.create_table(
        "generated_document",
        sa.Column("document_id", sa.Uuid(), primary_key=True),
        sa.Column("subject_id", sa.Uuid(), nullable=False),
        sa.Column("template_id", sa.Text(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("status", sa.Text(), server_default="generating", nullable=False),
        sa.Column("content", json_type, nullable=True),
        sa.Column("markdown", sa.Text(), nullable=True),
        sa.Column("source_snapshot", json_type, nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("external_id", sa.Text(), nullable=True),
        sa.Column("external_url", sa.Text(), nullable=True),
        sa.Column("exported_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["subject_id"], ["subject.subject_id"], ondelete="CASCADE"),
    )
    op.create_index(
        "idx_document_subject_template",
        "generated_document",
        ["subject_id", "template_id", "created_at"],
    )


def downgrade() -> None:
    """Drop all tables."""
    op.drop_index("idx_document_subject_template", table_name="generated_document")
    op.drop_table("generated_document")
    op.drop_index("idx_unit_subject_created", table_name="extraction_unit")
    op.drop_table("extraction_unit")
    op.drop_index("idx_subject_owner", table_name="subject")
    op.drop_table("subject")
