"""SQLAlchemy ORM models for subjects, extraction units and generated documents."""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Integer, Text, UniqueConstraint, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from brandkit.models.common import utcnow

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JsonType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class SubjectRow(Base):
    """Subject table - the business being analyzed."""

    __tablename__ = "subject"
    __table_args__ = (Index("idx_subject_owner", "owner_id", "created_at"),)

    subject_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    name: Mapped[str | None] = mapped_column(Text, nullable=True)
    source_url: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    content_updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    # Relationships
    units: Mapped[list["ExtractionUnitRow"]] = relationship(
        "ExtractionUnitRow", back_populates="subject", cascade="all, delete-orphan"
    )
    documents: Mapped[list["GeneratedDocumentRow"]] = relationship(
        "GeneratedDocumentRow", back_populates="subject", cascade="all, delete-orphan"
    )


class ExtractionUnitRow(Base):
    """Extraction unit table - one row per (subject, unit_type)."""

    __tablename__ = "extraction_unit"
    __table_args__ = (
        UniqueConstraint("subject_id", "unit_type", name="uq_unit_subject_type"),
        Index("idx_unit_subject_created", "subject_id", "created_at"),
    )

    unit_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    subject_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("subject.subject_id", ondelete="CASCADE"), nullable=False
    )
    unit_type: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="queued")
    raw_output: Mapped[str | None] = mapped_column(Text, nullable=True)
    parsed_output: Mapped[dict[str, Any] | None] = mapped_column(JsonType, nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    retry_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    subject: Mapped["SubjectRow"] = relationship("SubjectRow", back_populates="units")


class GeneratedDocumentRow(Base):
    """Generated document table - regeneration inserts a new row."""

    __tablename__ = "generated_document"
    __table_args__ = (
        Index("idx_document_subject_template", "subject_id", "template_id", "created_at"),
    )

    document_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    subject_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("subject.subject_id", ondelete="CASCADE"), nullable=False
    )
    template_id: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="generating")
    content: Mapped[dict[str, Any] | None] = mapped_column(JsonType, nullable=True)
    markdown: Mapped[str | None] = mapped_column(Text, nullable=True)
    source_snapshot: Mapped[dict[str, Any] | None] = mapped_column(JsonType, nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    external_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    external_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    exported_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    # Relationships
    subject: Mapped["SubjectRow"] = relationship("SubjectRow", back_populates="documents")
