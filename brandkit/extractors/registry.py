"""Extractor registry - immutable, keyed by ExtractorId.

Adding an extractor means adding an ExtractorId member, a PriorOutputs
field and an entry here; the import-time check below refuses a partial
addition.
"""

from brandkit.errors import UnknownExtractorError
from brandkit.extractors import basics, customer, products
from brandkit.extractors.base import ExtractorConfig, ExtractorDefinition
from brandkit.models.common import ExtractorId
from brandkit.models.extractors import PriorOutputs

EXTRACTORS: dict[ExtractorId, ExtractorDefinition] = {
    ExtractorId.basics: basics.EXTRACTOR,
    ExtractorId.customer: customer.EXTRACTOR,
    ExtractorId.products: products.EXTRACTOR,
}


def _check_exhaustive() -> None:
    enum_ids = set(ExtractorId)
    if set(EXTRACTORS) != enum_ids:
        missing = sorted(e.value for e in enum_ids - set(EXTRACTORS))
        raise RuntimeError(f"Extractor registry is missing definitions for: {missing}")
    for key, definition in EXTRACTORS.items():
        if definition.id != key:
            raise RuntimeError(f"Extractor registered as {key.value} reports id {definition.id.value}")
        for dep in definition.depends_on:
            if dep not in EXTRACTORS:
                raise RuntimeError(f"Extractor {key.value} depends on unregistered {dep}")
    prior_fields = set(PriorOutputs.model_fields)
    if prior_fields != {e.value for e in enum_ids}:
        raise RuntimeError(
            f"PriorOutputs fields {sorted(prior_fields)} do not match extractor ids"
        )


_check_exhaustive()


def coerce_extractor_id(extractor_id: ExtractorId | str) -> ExtractorId:
    """Convert a raw id to ExtractorId.

    Raises:
        UnknownExtractorError: If the id is not registered
    """
    if isinstance(extractor_id, ExtractorId):
        return extractor_id
    try:
        return ExtractorId(extractor_id)
    except ValueError:
        raise UnknownExtractorError(str(extractor_id)) from None


def get_extractor(extractor_id: ExtractorId | str) -> ExtractorDefinition:
    """Look up an extractor definition.

    Raises:
        UnknownExtractorError: If the id is not registered
    """
    return EXTRACTORS[coerce_extractor_id(extractor_id)]


def get_extractor_config(extractor_id: ExtractorId | str) -> ExtractorConfig:
    return get_extractor(extractor_id).config


def extractor_ids() -> list[ExtractorId]:
    """All extractor ids in registration order."""
    return list(EXTRACTORS)


def definitions() -> list[ExtractorDefinition]:
    return list(EXTRACTORS.values())


def is_valid_extractor_id(value: str) -> bool:
    return value in {e.value for e in ExtractorId}
