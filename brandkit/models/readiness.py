"""Readiness check result models."""

from pydantic import BaseModel, Field

from brandkit.models.common import ExtractorId


class MissingField(BaseModel):
    """A required output field that is absent or empty."""

    extractor: ExtractorId
    field: str
    description: str


class ReadinessResult(BaseModel):
    """Whether a template's prerequisites are satisfied."""

    is_ready: bool
    completed_extractors: list[ExtractorId] = Field(default_factory=list)
    missing_extractors: list[ExtractorId] = Field(default_factory=list)
    missing_fields: list[MissingField] = Field(default_factory=list)
