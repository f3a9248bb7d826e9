"""Models package - re-exports for convenience."""

from brandkit.models.common import (
    DocumentStatus,
    ExportState,
    ExtractorId,
    GenerationState,
    PrimaryAction,
    TemplateAvailability,
    TemplateCategory,
    TemplateId,
    UnitStatus,
)
from brandkit.models.documents import DocumentUpdate, GeneratedDocument
from brandkit.models.extractors import (
    AggregatedInputs,
    ParsedBasics,
    ParsedCustomer,
    ParsedProducts,
    PriorOutputs,
    ProductOffering,
)
from brandkit.models.readiness import MissingField, ReadinessResult
from brandkit.models.subject import Subject, SubjectUpdate
from brandkit.models.units import ExtractionUnit, UnitResult, UnitUpdate

__all__ = [
    # Common
    "ExtractorId",
    "TemplateId",
    "UnitStatus",
    "DocumentStatus",
    "GenerationState",
    "ExportState",
    "PrimaryAction",
    "TemplateCategory",
    "TemplateAvailability",
    # Subject
    "Subject",
    "SubjectUpdate",
    # Units
    "ExtractionUnit",
    "UnitUpdate",
    "UnitResult",
    # Extractor outputs
    "ParsedBasics",
    "ParsedCustomer",
    "ParsedProducts",
    "ProductOffering",
    "PriorOutputs",
    "AggregatedInputs",
    # Documents
    "GeneratedDocument",
    "DocumentUpdate",
    # Readiness
    "MissingField",
    "ReadinessResult",
]
