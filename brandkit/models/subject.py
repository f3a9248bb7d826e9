"""Subject (the business being analyzed) models."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from brandkit.models.common import utcnow


class Subject(BaseModel):
    """A business whose website content is analyzed.

    ``updated_at`` moves on every mutation; ``content_updated_at`` only when
    the content snapshot itself changes. Documents compare against
    ``updated_at`` to decide staleness.
    """

    subject_id: uuid.UUID = Field(default_factory=uuid.uuid4)
    owner_id: uuid.UUID
    name: str | None = None
    source_url: str
    content: str | None = None
    content_updated_at: datetime | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class SubjectUpdate(BaseModel):
    """Partial subject update; only explicitly set fields are applied."""

    name: str | None = None
    source_url: str | None = None
    content: str | None = None
