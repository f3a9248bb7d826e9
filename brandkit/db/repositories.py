"""Repository protocol interfaces for data access."""

import uuid
from collections.abc import Sequence
from typing import Protocol

from brandkit.models.common import ExtractorId
from brandkit.models.documents import DocumentUpdate, GeneratedDocument
from brandkit.models.subject import Subject, SubjectUpdate
from brandkit.models.units import ExtractionUnit, UnitUpdate


class SubjectRepository(Protocol):
    """Repository for subject operations."""

    async def create_subject(self, subject: Subject) -> Subject:
        """Persist a new subject.

        Args:
            subject: Subject to store

        Returns:
            The stored subject
        """
        ...

    async def get_subject(self, subject_id: uuid.UUID) -> Subject | None:
        """Get subject by ID.

        Args:
            subject_id: Subject ID

        Returns:
            Subject or None if not found
        """
        ...

    async def list_subjects(self, owner_id: uuid.UUID) -> list[Subject]:
        """List an owner's subjects, newest first."""
        ...

    async def update_subject(self, subject_id: uuid.UUID, update: SubjectUpdate) -> Subject | None:
        """Apply a partial update and bump updated_at.

        A content change also bumps content_updated_at.

        Args:
            subject_id: Subject ID
            update: Fields to change (only explicitly set ones apply)

        Returns:
            Updated subject or None if not found
        """
        ...

    async def delete_subject(self, subject_id: uuid.UUID) -> bool:
        """Delete a subject with its units and documents.

        Returns:
            True if a subject was deleted
        """
        ...


class UnitRepository(Protocol):
    """Repository for extraction unit operations."""

    async def create_units(
        self, subject_id: uuid.UUID, unit_types: Sequence[ExtractorId]
    ) -> list[ExtractionUnit]:
        """Idempotently upsert one queued unit per type.

        An existing unit keeps its id, created_at, outputs and retry_count,
        but its status returns to queued and error/started/completed clear.

        Args:
            subject_id: Subject ID
            unit_types: Extractor ids to create units for

        Returns:
            The upserted units in the order given
        """
        ...

    async def update_unit(
        self, subject_id: uuid.UUID, unit_type: ExtractorId, update: UnitUpdate
    ) -> ExtractionUnit | None:
        """Apply a partial update to the unit keyed by (subject, type).

        Returns:
            Updated unit or None if not found
        """
        ...

    async def update_unit_by_id(
        self, unit_id: uuid.UUID, update: UnitUpdate
    ) -> ExtractionUnit | None:
        """Apply a partial update to a unit by its ID."""
        ...

    async def get_unit(
        self, subject_id: uuid.UUID, unit_type: ExtractorId
    ) -> ExtractionUnit | None:
        """Get the unit keyed by (subject, type)."""
        ...

    async def list_units(self, subject_id: uuid.UUID) -> list[ExtractionUnit]:
        """List a subject's units ordered by created_at ascending."""
        ...


class DocumentRepository(Protocol):
    """Repository for generated document operations."""

    async def insert_document(self, document: GeneratedDocument) -> GeneratedDocument:
        """Persist a new document row."""
        ...

    async def update_document(
        self, document_id: uuid.UUID, update: DocumentUpdate
    ) -> GeneratedDocument | None:
        """Apply a partial update.

        Raises:
            DocumentImmutableError: If the document is complete and the update
                touches anything besides export metadata

        Returns:
            Updated document or None if not found
        """
        ...

    async def delete_document(self, document_id: uuid.UUID) -> bool:
        """Delete a document.

        Returns:
            True if a document was deleted
        """
        ...

    async def get_document(self, document_id: uuid.UUID) -> GeneratedDocument | None:
        """Get document by ID."""
        ...

    async def list_documents(self, subject_id: uuid.UUID) -> list[GeneratedDocument]:
        """List a subject's documents ordered by created_at descending."""
        ...
