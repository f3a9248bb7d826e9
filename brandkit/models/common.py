"""Common enums shared across all models."""

from datetime import datetime, timezone
from enum import Enum


def utcnow() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


class ExtractorId(str, Enum):
    """Registered extractor identifiers."""

    basics = "basics"
    customer = "customer"
    products = "products"


class TemplateId(str, Enum):
    """Registered document template identifiers."""

    golden_circle = "golden-circle"
    brand_brief = "brand-brief"
    customer_persona = "customer-persona"


class UnitStatus(str, Enum):
    """Lifecycle of one extraction unit."""

    queued = "queued"
    analyzing = "analyzing"
    parsing = "parsing"
    complete = "complete"
    error = "error"


TERMINAL_UNIT_STATUSES = frozenset({UnitStatus.complete, UnitStatus.error})


class DocumentStatus(str, Enum):
    """Lifecycle of one generated document."""

    generating = "generating"
    complete = "complete"
    error = "error"


class GenerationState(str, Enum):
    """Freshness of the latest document for a template."""

    never_generated = "never_generated"
    generated_fresh = "generated_fresh"
    generated_stale = "generated_stale"


class ExportState(str, Enum):
    """Freshness of the external copy of a document."""

    not_exported = "not_exported"
    exported_current = "exported_current"
    exported_stale = "exported_stale"


class PrimaryAction(str, Enum):
    """Action a client should offer for a template."""

    generate = "generate"
    view = "view"
    view_and_regenerate = "view_and_regenerate"
    open_in_external = "open_in_external"


class TemplateCategory(str, Enum):
    """Catalog grouping of document templates."""

    strategy = "strategy"
    audience = "audience"
    content = "content"
    sales = "sales"


class TemplateAvailability(str, Enum):
    """Whether a template can be generated today."""

    available = "available"
    coming_soon = "coming_soon"
