"""Template catalog, readiness, document generation and export endpoints."""

import uuid
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field

from brandkit.api.deps import Services, get_services
from brandkit.documents.base import TemplateConfig
from brandkit.documents.readiness import check_all_templates, check_readiness
from brandkit.documents.registry import all_template_configs
from brandkit.documents.state import DocumentState
from brandkit.models.common import (
    ExportState,
    ExtractorId,
    GenerationState,
    PrimaryAction,
    TemplateAvailability,
    TemplateCategory,
    TemplateId,
)
from brandkit.models.documents import GeneratedDocument
from brandkit.models.readiness import ReadinessResult

router = APIRouter(tags=["documents"])


class TemplateResponse(BaseModel):
    """One catalog entry."""

    id: TemplateId
    name: str
    description: str
    short_description: str
    category: TemplateCategory
    availability: TemplateAvailability
    required_extractors: list[ExtractorId]

    @classmethod
    def from_config(cls, config: TemplateConfig) -> "TemplateResponse":
        return cls(
            id=config.id,
            name=config.name,
            description=config.description,
            short_description=config.short_description,
            category=config.category,
            availability=config.availability,
            required_extractors=list(config.required_extractors),
        )


class GenerateDocumentRequest(BaseModel):
    """Request body for POST /documents/generate."""

    subject_id: uuid.UUID
    template_id: str = Field(..., min_length=1)


class ExportRequest(BaseModel):
    """Request body for POST /documents/{document_id}/export."""

    external_id: str = Field(..., min_length=1)
    external_url: str = Field(..., min_length=1)
    exported_at: datetime | None = None


class DocumentStateResponse(BaseModel):
    """Derived state of the latest document for one template."""

    exists: bool
    latest_document_id: str | None
    generation_count: int
    generation_state: GenerationState
    export_state: ExportState
    is_stale: bool
    is_exported: bool
    is_export_stale: bool
    status_message: str
    primary_action: PrimaryAction

    @classmethod
    def from_state(cls, state: DocumentState) -> "DocumentStateResponse":
        return cls(
            exists=state.exists,
            latest_document_id=str(state.latest.document_id) if state.latest else None,
            generation_count=state.generation_count,
            generation_state=state.generation_state,
            export_state=state.export_state,
            is_stale=state.is_stale,
            is_exported=state.is_exported,
            is_export_stale=state.is_export_stale,
            status_message=state.status_message,
            primary_action=state.primary_action,
        )


class SubjectDocumentsResponse(BaseModel):
    """Response for GET /subjects/{subject_id}/documents."""

    documents: list[GeneratedDocument]
    states: dict[TemplateId, DocumentStateResponse]


@router.get("/templates", response_model=list[TemplateResponse])
async def list_templates() -> list[TemplateResponse]:
    """Full catalog, available templates first."""
    return [TemplateResponse.from_config(c) for c in all_template_configs()]


@router.get("/subjects/{subject_id}/readiness", response_model=dict[TemplateId, ReadinessResult])
async def get_readiness(
    subject_id: uuid.UUID,
    services: Annotated[Services, Depends(get_services)],
    template_id: Annotated[str | None, Query()] = None,
) -> dict[TemplateId, ReadinessResult]:
    """Readiness of one template, or of every generatable template when none is given."""
    units = await services.analysis.list_units(subject_id)
    if template_id is not None:
        result = check_readiness(units, template_id)
        return {TemplateId(template_id): result}
    return check_all_templates(units)


@router.post(
    "/documents/generate",
    response_model=GeneratedDocument,
    status_code=status.HTTP_201_CREATED,
)
async def generate_document(
    request: GenerateDocumentRequest,
    services: Annotated[Services, Depends(get_services)],
) -> GeneratedDocument:
    """Generate a new document; the row ends up complete or error.

    Args:
        request: Subject and template to generate
        services: Wired services

    Returns:
        The stored document
    """
    return await services.document_service.generate_document(
        request.subject_id, request.template_id
    )


@router.get("/subjects/{subject_id}/documents", response_model=SubjectDocumentsResponse)
async def list_documents(
    subject_id: uuid.UUID,
    services: Annotated[Services, Depends(get_services)],
) -> SubjectDocumentsResponse:
    documents = await services.document_service.list_documents(subject_id)
    states = await services.document_service.document_states(subject_id)
    return SubjectDocumentsResponse(
        documents=documents,
        states={tid: DocumentStateResponse.from_state(s) for tid, s in states.items()},
    )


@router.get("/documents/{document_id}", response_model=GeneratedDocument)
async def get_document(
    document_id: uuid.UUID,
    services: Annotated[Services, Depends(get_services)],
) -> GeneratedDocument:
    return await services.document_service.get_document(document_id)


@router.delete("/documents/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(
    document_id: uuid.UUID,
    services: Annotated[Services, Depends(get_services)],
) -> Response:
    await services.document_service.delete_document(document_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/documents/{document_id}/export", response_model=GeneratedDocument)
async def record_export(
    document_id: uuid.UUID,
    request: ExportRequest,
    services: Annotated[Services, Depends(get_services)],
) -> GeneratedDocument:
    """Record where a complete document was exported."""
    return await services.document_service.record_export(
        document_id, request.external_id, request.external_url, request.exported_at
    )
