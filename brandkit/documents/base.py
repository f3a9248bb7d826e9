"""Definition types for document templates."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from pydantic import BaseModel

from brandkit.extractors.base import ParserDefinition
from brandkit.models.common import ExtractorId, TemplateAvailability, TemplateCategory, TemplateId
from brandkit.models.extractors import AggregatedInputs


@dataclass(frozen=True)
class TemplateConfig:
    """Catalog metadata and prerequisites of a template."""

    id: TemplateId
    name: str
    description: str
    short_description: str
    category: TemplateCategory
    availability: TemplateAvailability = TemplateAvailability.available
    required_extractors: tuple[ExtractorId, ...] = ()
    # Output fields that must be non-empty, per extractor
    required_fields: dict[ExtractorId, tuple[str, ...]] = field(default_factory=dict)


@dataclass(frozen=True)
class TemplateDefinition:
    """A generatable template.

    ``render_markdown`` takes the validated content model, the display name
    and an optional generation date (today when omitted).
    """

    config: TemplateConfig
    build_prompt: Callable[[AggregatedInputs], str]
    parser: ParserDefinition[Any]
    render_markdown: Callable[[BaseModel, str, date | None], str]
    generate_title: Callable[[AggregatedInputs], str]

    @property
    def id(self) -> TemplateId:
        return self.config.id
