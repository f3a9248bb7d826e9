"""In-memory implementations of repository interfaces."""

import uuid
from collections.abc import Sequence

from brandkit.models.common import ExtractorId, UnitStatus, utcnow
from brandkit.models.documents import DocumentUpdate, GeneratedDocument, check_update_allowed
from brandkit.models.subject import Subject, SubjectUpdate
from brandkit.models.units import ExtractionUnit, UnitUpdate
from brandkit.sync.feed import ChangeKind, InMemoryChangeFeed, UnitChangeEvent


class InMemoryUnitRepository:
    """In-memory implementation of UnitRepository.

    Every insert and update is published to the change feed when one is given.
    """

    def __init__(self, feed: InMemoryChangeFeed | None = None) -> None:
        self._units: dict[tuple[uuid.UUID, ExtractorId], ExtractionUnit] = {}
        self._feed = feed

    def _publish(self, unit: ExtractionUnit, kind: ChangeKind) -> None:
        if self._feed is not None:
            self._feed.publish(
                UnitChangeEvent(
                    subject_id=unit.subject_id,
                    unit_type=unit.unit_type,
                    kind=kind,
                    status=unit.status,
                )
            )

    async def create_units(
        self, subject_id: uuid.UUID, unit_types: Sequence[ExtractorId]
    ) -> list[ExtractionUnit]:
        """Upsert one queued unit per type."""
        result: list[ExtractionUnit] = []
        for unit_type in unit_types:
            key = (subject_id, unit_type)
            existing = self._units.get(key)
            if existing is None:
                unit = ExtractionUnit(subject_id=subject_id, unit_type=unit_type)
                kind = ChangeKind.insert
            else:
                unit = existing.model_copy(
                    update={
                        "status": UnitStatus.queued,
                        "raw_output": None,
                        "parsed_output": None,
                        "error_message": None,
                        "started_at": None,
                        "completed_at": None,
                    }
                )
                kind = ChangeKind.update
            self._units[key] = unit
            self._publish(unit, kind)
            result.append(unit)
        return result

    async def update_unit(
        self, subject_id: uuid.UUID, unit_type: ExtractorId, update: UnitUpdate
    ) -> ExtractionUnit | None:
        """Apply a partial update to the unit keyed by (subject, type)."""
        key = (subject_id, unit_type)
        existing = self._units.get(key)
        if existing is None:
            return None

        changes = update.model_dump(exclude_unset=True)
        unit = ExtractionUnit.model_validate({**existing.model_dump(), **changes})
        self._units[key] = unit
        self._publish(unit, ChangeKind.update)
        return unit

    async def update_unit_by_id(
        self, unit_id: uuid.UUID, update: UnitUpdate
    ) -> ExtractionUnit | None:
        for unit in self._units.values():
            if unit.unit_id == unit_id:
                return await self.update_unit(unit.subject_id, unit.unit_type, update)
        return None

    async def get_unit(
        self, subject_id: uuid.UUID, unit_type: ExtractorId
    ) -> ExtractionUnit | None:
        return self._units.get((subject_id, unit_type))

    async def list_units(self, subject_id: uuid.UUID) -> list[ExtractionUnit]:
        units = [u for (sid, _), u in self._units.items() if sid == subject_id]
        return sorted(units, key=lambda u: u.created_at)

    def remove_subject(self, subject_id: uuid.UUID) -> None:
        """Drop every unit belonging to a subject."""
        for key in [k for k in self._units if k[0] == subject_id]:
            unit = self._units.pop(key)
            self._publish(unit, ChangeKind.delete)


class InMemoryDocumentRepository:
    """In-memory implementation of DocumentRepository."""

    def __init__(self) -> None:
        self._documents: dict[uuid.UUID, GeneratedDocument] = {}

    async def insert_document(self, document: GeneratedDocument) -> GeneratedDocument:
        self._documents[document.document_id] = document
        return document

    async def update_document(
        self, document_id: uuid.UUID, update: DocumentUpdate
    ) -> GeneratedDocument | None:
        """Apply a partial update, refusing content changes to complete documents."""
        existing = self._documents.get(document_id)
        if existing is None:
            return None

        check_update_allowed(existing, update)
        changes = update.model_dump(exclude_unset=True)
        document = GeneratedDocument.model_validate(
            {**existing.model_dump(), **changes, "updated_at": utcnow()}
        )
        self._documents[document_id] = document
        return document

    async def delete_document(self, document_id: uuid.UUID) -> bool:
        return self._documents.pop(document_id, None) is not None

    async def get_document(self, document_id: uuid.UUID) -> GeneratedDocument | None:
        return self._documents.get(document_id)

    async def list_documents(self, subject_id: uuid.UUID) -> list[GeneratedDocument]:
        documents = [d for d in self._documents.values() if d.subject_id == subject_id]
        return sorted(documents, key=lambda d: d.created_at, reverse=True)

    def remove_subject(self, subject_id: uuid.UUID) -> None:
        """Drop every document belonging to a subject."""
        for document_id in [k for k, d in self._documents.items() if d.subject_id == subject_id]:
            del self._documents[document_id]


class InMemorySubjectRepository:
    """In-memory implementation of SubjectRepository.

    Deleting a subject cascades to the unit and document repositories it
    was constructed with.
    """

    def __init__(
        self,
        units: InMemoryUnitRepository | None = None,
        documents: InMemoryDocumentRepository | None = None,
    ) -> None:
        self._subjects: dict[uuid.UUID, Subject] = {}
        self._units = units
        self._documents = documents

    async def create_subject(self, subject: Subject) -> Subject:
        self._subjects[subject.subject_id] = subject
        return subject

    async def get_subject(self, subject_id: uuid.UUID) -> Subject | None:
        return self._subjects.get(subject_id)

    async def list_subjects(self, owner_id: uuid.UUID) -> list[Subject]:
        subjects = [s for s in self._subjects.values() if s.owner_id == owner_id]
        return sorted(subjects, key=lambda s: s.created_at, reverse=True)

    async def update_subject(self, subject_id: uuid.UUID, update: SubjectUpdate) -> Subject | None:
        """Apply a partial update and bump timestamps."""
        existing = self._subjects.get(subject_id)
        if existing is None:
            return None

        changes = update.model_dump(exclude_unset=True)
        now = utcnow()
        changes["updated_at"] = now
        if "content" in changes and changes["content"] != existing.content:
            changes["content_updated_at"] = now

        subject = existing.model_copy(update=changes)
        self._subjects[subject_id] = subject
        return subject

    async def delete_subject(self, subject_id: uuid.UUID) -> bool:
        if self._subjects.pop(subject_id, None) is None:
            return False
        if self._units is not None:
            self._units.remove_subject(subject_id)
        if self._documents is not None:
            self._documents.remove_subject(subject_id)
        return True
