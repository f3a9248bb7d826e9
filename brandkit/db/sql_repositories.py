"""SQL implementations of repository interfaces.

Each operation opens its own session from the factory and commits before
returning, so repositories are safe to share between concurrent tasks.
"""

import uuid
from collections.abc import Sequence
from datetime import datetime, timezone

from sqlalchemy import delete, null, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from brandkit.db.models import ExtractionUnitRow, GeneratedDocumentRow, SubjectRow
from brandkit.models.common import ExtractorId, UnitStatus, utcnow
from brandkit.models.documents import DocumentUpdate, GeneratedDocument, check_update_allowed
from brandkit.models.subject import Subject, SubjectUpdate
from brandkit.models.units import ExtractionUnit, UnitUpdate


_UPSERT_INSERTS = {"postgresql": postgresql.insert, "sqlite": sqlite.insert}


def _aware(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_subject(row: SubjectRow) -> Subject:
    return Subject(
        subject_id=row.subject_id,
        owner_id=row.owner_id,
        name=row.name,
        source_url=row.source_url,
        content=row.content,
        content_updated_at=_aware(row.content_updated_at),
        created_at=_aware(row.created_at),
        updated_at=_aware(row.updated_at),
    )


def _to_unit(row: ExtractionUnitRow) -> ExtractionUnit:
    return ExtractionUnit(
        unit_id=row.unit_id,
        subject_id=row.subject_id,
        unit_type=ExtractorId(row.unit_type),
        status=UnitStatus(row.status),
        raw_output=row.raw_output,
        parsed_output=row.parsed_output,
        error_message=row.error_message,
        retry_count=row.retry_count,
        created_at=_aware(row.created_at),
        started_at=_aware(row.started_at),
        completed_at=_aware(row.completed_at),
    )


def _to_document(row: GeneratedDocumentRow) -> GeneratedDocument:
    return GeneratedDocument(
        document_id=row.document_id,
        subject_id=row.subject_id,
        template_id=row.template_id,
        title=row.title,
        status=row.status,
        content=row.content,
        markdown=row.markdown,
        source_snapshot=row.source_snapshot,
        error_message=row.error_message,
        external_id=row.external_id,
        external_url=row.external_url,
        exported_at=_aware(row.exported_at),
        created_at=_aware(row.created_at),
        updated_at=_aware(row.updated_at),
    )


def _column_values(changes: dict) -> dict:
    """Turn enum values into the plain strings stored in text columns."""
    return {k: (v.value if hasattr(v, "value") else v) for k, v in changes.items()}


class SqlSubjectRepository:
    """SQL implementation of SubjectRepository."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def create_subject(self, subject: Subject) -> Subject:
        row = SubjectRow(
            subject_id=subject.subject_id,
            owner_id=subject.owner_id,
            name=subject.name,
            source_url=subject.source_url,
            content=subject.content,
            content_updated_at=subject.content_updated_at,
            created_at=subject.created_at,
            updated_at=subject.updated_at,
        )
        async with self._session_factory() as session:
            session.add(row)
            await session.commit()
            return _to_subject(row)

    async def get_subject(self, subject_id: uuid.UUID) -> Subject | None:
        async with self._session_factory() as session:
            row = await session.get(SubjectRow, subject_id)
            return _to_subject(row) if row is not None else None

    async def list_subjects(self, owner_id: uuid.UUID) -> list[Subject]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(SubjectRow)
                .where(SubjectRow.owner_id == owner_id)
                .order_by(SubjectRow.created_at.desc())
            )
            return [_to_subject(row) for row in result.scalars().all()]

    async def update_subject(self, subject_id: uuid.UUID, update: SubjectUpdate) -> Subject | None:
        """Apply a partial update and bump timestamps."""
        changes = update.model_dump(exclude_unset=True)
        async with self._session_factory() as session:
            row = await session.get(SubjectRow, subject_id)
            if row is None:
                return None

            now = utcnow()
            if "content" in changes and changes["content"] != row.content:
                row.content_updated_at = now
            for field, value in changes.items():
                setattr(row, field, value)
            row.updated_at = now

            await session.commit()
            return _to_subject(row)

    async def delete_subject(self, subject_id: uuid.UUID) -> bool:
        """Delete a subject; units and documents go with it via ON DELETE CASCADE."""
        async with self._session_factory() as session:
            result = await session.execute(
                delete(SubjectRow).where(SubjectRow.subject_id == subject_id)
            )
            await session.commit()
            return result.rowcount > 0


class SqlUnitRepository:
    """SQL implementation of UnitRepository."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def _get_row(
        self, session: AsyncSession, subject_id: uuid.UUID, unit_type: ExtractorId
    ) -> ExtractionUnitRow | None:
        result = await session.execute(
            select(ExtractionUnitRow)
            .where(ExtractionUnitRow.subject_id == subject_id)
            .where(ExtractionUnitRow.unit_type == unit_type.value)
        )
        return result.scalar_one_or_none()

    async def create_units(
        self, subject_id: uuid.UUID, unit_types: Sequence[ExtractorId]
    ) -> list[ExtractionUnit]:
        """Upsert one queued unit per type.

        A single INSERT ... ON CONFLICT (subject_id, unit_type) DO UPDATE, so
        overlapping calls for the same subject converge on one row per type.
        """
        unit_types = list(dict.fromkeys(unit_types))
        if not unit_types:
            return []

        async with self._session_factory() as session:
            insert = _UPSERT_INSERTS[session.get_bind().dialect.name]
            now = utcnow()
            stmt = insert(ExtractionUnitRow).values(
                [
                    {
                        "unit_id": uuid.uuid4(),
                        "subject_id": subject_id,
                        "unit_type": unit_type.value,
                        "status": UnitStatus.queued.value,
                        "retry_count": 0,
                        "created_at": now,
                    }
                    for unit_type in unit_types
                ]
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=["subject_id", "unit_type"],
                set_={
                    "status": UnitStatus.queued.value,
                    "raw_output": None,
                    "parsed_output": null(),
                    "error_message": None,
                    "started_at": None,
                    "completed_at": None,
                },
            )
            await session.execute(stmt)
            await session.commit()

            result = await session.execute(
                select(ExtractionUnitRow)
                .where(ExtractionUnitRow.subject_id == subject_id)
                .where(ExtractionUnitRow.unit_type.in_([t.value for t in unit_types]))
            )
            rows = {row.unit_type: row for row in result.scalars().all()}
            return [_to_unit(rows[unit_type.value]) for unit_type in unit_types]

    async def update_unit(
        self, subject_id: uuid.UUID, unit_type: ExtractorId, update: UnitUpdate
    ) -> ExtractionUnit | None:
        async with self._session_factory() as session:
            row = await self._get_row(session, subject_id, unit_type)
            return await self._apply(session, row, update)

    async def update_unit_by_id(
        self, unit_id: uuid.UUID, update: UnitUpdate
    ) -> ExtractionUnit | None:
        async with self._session_factory() as session:
            row = await session.get(ExtractionUnitRow, unit_id)
            return await self._apply(session, row, update)

    async def _apply(
        self, session: AsyncSession, row: ExtractionUnitRow | None, update: UnitUpdate
    ) -> ExtractionUnit | None:
        if row is None:
            return None

        changes = update.model_dump(exclude_unset=True)
        # Validate the merged unit before anything is written
        merged = ExtractionUnit.model_validate({**_to_unit(row).model_dump(), **changes})
        for field, value in _column_values(changes).items():
            setattr(row, field, value)

        await session.commit()
        return merged

    async def get_unit(
        self, subject_id: uuid.UUID, unit_type: ExtractorId
    ) -> ExtractionUnit | None:
        async with self._session_factory() as session:
            row = await self._get_row(session, subject_id, unit_type)
            return _to_unit(row) if row is not None else None

    async def list_units(self, subject_id: uuid.UUID) -> list[ExtractionUnit]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(ExtractionUnitRow)
                .where(ExtractionUnitRow.subject_id == subject_id)
                .order_by(ExtractionUnitRow.created_at.asc())
            )
            return [_to_unit(row) for row in result.scalars().all()]


class SqlDocumentRepository:
    """SQL implementation of DocumentRepository."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def insert_document(self, document: GeneratedDocument) -> GeneratedDocument:
        row = GeneratedDocumentRow(
            document_id=document.document_id,
            subject_id=document.subject_id,
            template_id=document.template_id.value,
            title=document.title,
            status=document.status.value,
            content=document.content,
            markdown=document.markdown,
            source_snapshot=document.source_snapshot,
            error_message=document.error_message,
            external_id=document.external_id,
            external_url=document.external_url,
            exported_at=document.exported_at,
            created_at=document.created_at,
            updated_at=document.updated_at,
        )
        async with self._session_factory() as session:
            session.add(row)
            await session.commit()
            return _to_document(row)

    async def update_document(
        self, document_id: uuid.UUID, update: DocumentUpdate
    ) -> GeneratedDocument | None:
        """Apply a partial update, refusing content changes to complete documents."""
        async with self._session_factory() as session:
            row = await session.get(GeneratedDocumentRow, document_id)
            if row is None:
                return None

            existing = _to_document(row)
            check_update_allowed(existing, update)
            changes = update.model_dump(exclude_unset=True)
            changes["updated_at"] = utcnow()
            merged = GeneratedDocument.model_validate({**existing.model_dump(), **changes})
            for field, value in _column_values(changes).items():
                setattr(row, field, value)

            await session.commit()
            return merged

    async def delete_document(self, document_id: uuid.UUID) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(
                delete(GeneratedDocumentRow).where(GeneratedDocumentRow.document_id == document_id)
            )
            await session.commit()
            return result.rowcount > 0

    async def get_document(self, document_id: uuid.UUID) -> GeneratedDocument | None:
        async with self._session_factory() as session:
            row = await session.get(GeneratedDocumentRow, document_id)
            return _to_document(row) if row is not None else None

    async def list_documents(self, subject_id: uuid.UUID) -> list[GeneratedDocument]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(GeneratedDocumentRow)
                .where(GeneratedDocumentRow.subject_id == subject_id)
                .order_by(GeneratedDocumentRow.created_at.desc())
            )
            return [_to_document(row) for row in result.scalars().all()]
