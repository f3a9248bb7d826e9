"""Extraction unit models."""

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, model_validator

from brandkit.models.common import TERMINAL_UNIT_STATUSES, ExtractorId, UnitStatus, utcnow


class ExtractionUnit(BaseModel):
    """One run of one extractor against one subject."""

    unit_id: uuid.UUID = Field(default_factory=uuid.uuid4)
    subject_id: uuid.UUID
    unit_type: ExtractorId
    status: UnitStatus = UnitStatus.queued
    raw_output: str | None = None
    parsed_output: dict[str, Any] | None = None
    error_message: str | None = None
    retry_count: int = 0
    created_at: datetime = Field(default_factory=utcnow)
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @model_validator(mode="after")
    def check_completed_at(self) -> "ExtractionUnit":
        """completed_at is present exactly when the unit reached a terminal status."""
        terminal = self.status in TERMINAL_UNIT_STATUSES
        if terminal != (self.completed_at is not None):
            raise ValueError(
                f"completed_at must be set iff status is terminal (status={self.status.value})"
            )
        return self


class UnitUpdate(BaseModel):
    """Partial unit update.

    Repositories apply ``model_dump(exclude_unset=True)``, so fields left
    out are untouched while fields explicitly set to None are cleared.
    """

    status: UnitStatus | None = None
    raw_output: str | None = None
    parsed_output: dict[str, Any] | None = None
    error_message: str | None = None
    retry_count: int | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None


@dataclass
class UnitResult:
    """Outcome of running one extraction unit."""

    success: bool
    duration_ms: float
    raw_output: str | None = None
    parsed_output: dict[str, Any] | None = None
    error: str | None = None
