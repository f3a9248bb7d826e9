"""Document service - readiness gate, persistence around generation, and export records."""

import logging
import uuid
from collections.abc import Callable
from datetime import datetime

from brandkit.db.repositories import DocumentRepository, SubjectRepository, UnitRepository
from brandkit.documents.export import DocumentExporter
from brandkit.documents.generator import DocumentGenerator
from brandkit.documents.readiness import build_aggregated_inputs, check_readiness
from brandkit.documents.registry import get_template
from brandkit.documents.state import DocumentState, get_all_states
from brandkit.errors import (
    DocumentNotFoundError,
    NotReadyError,
    SubjectNotFoundError,
    ValidationFailure,
)
from brandkit.models.common import DocumentStatus, TemplateId, utcnow
from brandkit.models.documents import DocumentUpdate, GeneratedDocument
from brandkit.models.readiness import ReadinessResult
from brandkit.models.subject import Subject

logger = logging.getLogger(__name__)


class DocumentService:
    """Generates, lists and exports documents for subjects."""

    def __init__(
        self,
        subjects: SubjectRepository,
        units: UnitRepository,
        documents: DocumentRepository,
        generator: DocumentGenerator,
        *,
        default_subject_name: str = "Unknown Brand",
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._subjects = subjects
        self._units = units
        self._documents = documents
        self._generator = generator
        self._default_name = default_subject_name
        self._now = clock or utcnow

    async def _require_subject(self, subject_id: uuid.UUID) -> Subject:
        subject = await self._subjects.get_subject(subject_id)
        if subject is None:
            raise SubjectNotFoundError(f"Subject not found: {subject_id}")
        return subject

    async def _require_document(self, document_id: uuid.UUID) -> GeneratedDocument:
        document = await self._documents.get_document(document_id)
        if document is None:
            raise DocumentNotFoundError(f"Document not found: {document_id}")
        return document

    async def readiness(
        self, subject_id: uuid.UUID, template_id: TemplateId | str
    ) -> ReadinessResult:
        await self._require_subject(subject_id)
        return check_readiness(await self._units.list_units(subject_id), template_id)

    async def generate_document(
        self, subject_id: uuid.UUID, template_id: TemplateId | str
    ) -> GeneratedDocument:
        """Generate a new document row for a subject.

        The row is inserted as generating with a snapshot of its inputs and
        then moved to complete or error. Earlier documents are never touched.

        Raises:
            UnknownTemplateError: If the template id is not in the catalog
            TemplateUnavailableError: If the template cannot be generated yet
            SubjectNotFoundError: If the subject does not exist
            NotReadyError: If required extractors or fields are missing
        """
        template = get_template(template_id)
        subject = await self._require_subject(subject_id)
        units = await self._units.list_units(subject_id)

        readiness = check_readiness(units, template.id)
        if not readiness.is_ready:
            raise NotReadyError(readiness)

        inputs = build_aggregated_inputs(self._default_name, subject.source_url, units)
        name = subject.name or (inputs.basics.business_name if inputs.basics else None)
        inputs = inputs.model_copy(update={"subject_name": name or self._default_name})

        document = await self._documents.insert_document(
            GeneratedDocument(
                subject_id=subject_id,
                template_id=template.id,
                title=self._generator.generate_title(template.id, inputs),
                status=DocumentStatus.generating,
                source_snapshot=inputs.model_dump(mode="json"),
                created_at=self._now(),
                updated_at=self._now(),
            )
        )

        result = await self._generator.generate(subject_id, template.id, inputs)
        if result.success:
            update = DocumentUpdate(
                status=DocumentStatus.complete,
                content=result.content,
                markdown=result.markdown,
                error_message=None,
            )
        else:
            update = DocumentUpdate(status=DocumentStatus.error, error_message=result.error)

        updated = await self._documents.update_document(document.document_id, update)
        if updated is None:
            raise DocumentNotFoundError(
                f"Document {document.document_id} disappeared during generation"
            )
        logger.info(
            f"Document {updated.document_id} ({template.id.value}) for subject {subject_id}: "
            f"{updated.status.value}"
        )
        return updated

    async def list_documents(self, subject_id: uuid.UUID) -> list[GeneratedDocument]:
        await self._require_subject(subject_id)
        return await self._documents.list_documents(subject_id)

    async def document_states(self, subject_id: uuid.UUID) -> dict[TemplateId, DocumentState]:
        """Derived state per template for a subject."""
        subject = await self._require_subject(subject_id)
        documents = await self._documents.list_documents(subject_id)
        return get_all_states(documents, subject)

    async def get_document(self, document_id: uuid.UUID) -> GeneratedDocument:
        return await self._require_document(document_id)

    async def delete_document(self, document_id: uuid.UUID) -> None:
        if not await self._documents.delete_document(document_id):
            raise DocumentNotFoundError(f"Document not found: {document_id}")

    async def record_export(
        self,
        document_id: uuid.UUID,
        external_id: str,
        external_url: str,
        exported_at: datetime | None = None,
    ) -> GeneratedDocument:
        """Record where a complete document was exported.

        Raises:
            DocumentNotFoundError: If the document does not exist
            ValidationFailure: If the document is not complete
        """
        document = await self._require_document(document_id)
        if document.status != DocumentStatus.complete:
            raise ValidationFailure(
                f"Only complete documents can be exported (status={document.status.value})"
            )
        updated = await self._documents.update_document(
            document_id,
            DocumentUpdate(
                external_id=external_id,
                external_url=external_url,
                exported_at=exported_at or self._now(),
            ),
        )
        if updated is None:
            raise DocumentNotFoundError(f"Document not found: {document_id}")
        return updated

    async def export_document(
        self, document_id: uuid.UUID, exporter: DocumentExporter
    ) -> GeneratedDocument:
        """Export through ``exporter`` and record the resulting reference."""
        document = await self._require_document(document_id)
        if document.status != DocumentStatus.complete or document.markdown is None:
            raise ValidationFailure(
                f"Only complete documents can be exported (status={document.status.value})"
            )
        reference = await exporter.export(document.title, document.markdown)
        return await self.record_export(
            document_id, reference.external_id, reference.external_url
        )
