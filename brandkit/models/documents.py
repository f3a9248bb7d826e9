"""Generated document models."""

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, model_validator

from brandkit.errors import DocumentImmutableError
from brandkit.models.common import DocumentStatus, TemplateId, utcnow

# Fields that may still change once a document is complete
EXPORT_FIELDS = frozenset({"external_id", "external_url", "exported_at"})


class GeneratedDocument(BaseModel):
    """A persisted document produced from a template.

    Regeneration never rewrites an existing row: a new document is inserted
    and the latest complete one wins.
    """

    document_id: uuid.UUID = Field(default_factory=uuid.uuid4)
    subject_id: uuid.UUID
    template_id: TemplateId
    title: str
    status: DocumentStatus = DocumentStatus.generating
    content: dict[str, Any] | None = None
    markdown: str | None = None
    source_snapshot: dict[str, Any] | None = None
    error_message: str | None = None
    external_id: str | None = None
    external_url: str | None = None
    exported_at: datetime | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode="after")
    def check_content_only_when_complete(self) -> "GeneratedDocument":
        """Content and markdown are present only for complete documents."""
        if self.status == DocumentStatus.complete:
            if self.content is None or self.markdown is None:
                raise ValueError("complete documents require content and markdown")
        elif self.content is not None or self.markdown is not None:
            raise ValueError(f"{self.status.value} documents cannot carry content")
        return self


class DocumentUpdate(BaseModel):
    """Partial document update; only explicitly set fields are applied."""

    status: DocumentStatus | None = None
    content: dict[str, Any] | None = None
    markdown: str | None = None
    error_message: str | None = None
    external_id: str | None = None
    external_url: str | None = None
    exported_at: datetime | None = None


def check_update_allowed(document: GeneratedDocument, update: DocumentUpdate) -> None:
    """Reject changes to a complete document other than export metadata.

    Raises:
        DocumentImmutableError: If the update touches generated content
    """
    if document.status != DocumentStatus.complete:
        return
    changed = set(update.model_dump(exclude_unset=True)) - EXPORT_FIELDS
    if changed:
        raise DocumentImmutableError(
            f"Document {document.document_id} is complete; cannot change {sorted(changed)}"
        )
