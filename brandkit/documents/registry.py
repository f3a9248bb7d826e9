"""Document template registry.

Implemented templates carry a full definition; coming-soon templates are
catalog entries only and cannot be generated.
"""

from brandkit.documents.base import TemplateConfig, TemplateDefinition
from brandkit.documents.templates import golden_circle
from brandkit.errors import TemplateUnavailableError, UnknownTemplateError
from brandkit.extractors.registry import get_extractor
from brandkit.models.common import (
    ExtractorId,
    TemplateAvailability,
    TemplateCategory,
    TemplateId,
)

TEMPLATES: dict[TemplateId, TemplateDefinition] = {
    TemplateId.golden_circle: golden_circle.TEMPLATE,
}

COMING_SOON: tuple[TemplateConfig, ...] = (
    TemplateConfig(
        id=TemplateId.brand_brief,
        name="Brand Brief",
        description="Complete brand overview document for stakeholders",
        short_description="One-page brand overview for sharing",
        category=TemplateCategory.strategy,
        availability=TemplateAvailability.coming_soon,
        required_extractors=(ExtractorId.basics, ExtractorId.customer, ExtractorId.products),
    ),
    TemplateConfig(
        id=TemplateId.customer_persona,
        name="Customer Persona",
        description="Detailed ideal customer profile with demographics and psychographics",
        short_description="Bring your target audience to life",
        category=TemplateCategory.audience,
        availability=TemplateAvailability.coming_soon,
        required_extractors=(ExtractorId.customer,),
    ),
)

ALL_CONFIGS: tuple[TemplateConfig, ...] = (
    *(t.config for t in TEMPLATES.values()),
    *COMING_SOON,
)


def _check_registry() -> None:
    configured = {c.id for c in ALL_CONFIGS}
    if configured != set(TemplateId):
        missing = sorted(t.value for t in set(TemplateId) - configured)
        raise RuntimeError(f"Template catalog is missing configs for: {missing}")
    for template_id, template in TEMPLATES.items():
        if template.id != template_id:
            raise RuntimeError(f"Template registered as {template_id.value} reports {template.id}")
    for config in ALL_CONFIGS:
        for extractor_id, fields in config.required_fields.items():
            if extractor_id not in config.required_extractors:
                raise RuntimeError(
                    f"{config.id.value} requires fields of {extractor_id.value} "
                    "without requiring the extractor"
                )
            known = get_extractor(extractor_id).parser.output_model.model_fields
            unknown = [f for f in fields if f not in known]
            if unknown:
                raise RuntimeError(
                    f"{config.id.value} requires unknown {extractor_id.value} fields: {unknown}"
                )


_check_registry()


def coerce_template_id(template_id: TemplateId | str) -> TemplateId:
    """Convert a raw id to TemplateId.

    Raises:
        UnknownTemplateError: If the id is not in the catalog
    """
    if isinstance(template_id, TemplateId):
        return template_id
    try:
        return TemplateId(template_id)
    except ValueError:
        raise UnknownTemplateError(str(template_id)) from None


def get_template(template_id: TemplateId | str) -> TemplateDefinition:
    """Look up a generatable template.

    Raises:
        UnknownTemplateError: If the id is not in the catalog
        TemplateUnavailableError: If the template is coming soon
    """
    tid = coerce_template_id(template_id)
    template = TEMPLATES.get(tid)
    if template is None:
        raise TemplateUnavailableError(tid.value)
    return template


def get_template_config(template_id: TemplateId | str) -> TemplateConfig:
    """Config for any catalog template, implemented or coming soon."""
    tid = coerce_template_id(template_id)
    for config in ALL_CONFIGS:
        if config.id == tid:
            return config
    raise UnknownTemplateError(tid.value)


def template_ids() -> list[TemplateId]:
    """Ids of implemented templates in registration order."""
    return list(TEMPLATES)


def all_template_configs() -> list[TemplateConfig]:
    return list(ALL_CONFIGS)


def templates_by_category() -> dict[TemplateCategory, list[TemplateConfig]]:
    """Catalog grouped by category; available templates first, then by name."""
    grouped: dict[TemplateCategory, list[TemplateConfig]] = {c: [] for c in TemplateCategory}
    for config in ALL_CONFIGS:
        grouped[config.category].append(config)
    for configs in grouped.values():
        configs.sort(
            key=lambda c: (c.availability != TemplateAvailability.available, c.name.lower())
        )
    return grouped


def is_valid_template_id(value: str) -> bool:
    return any(c.id.value == value for c in ALL_CONFIGS)


def is_implemented_template_id(value: str) -> bool:
    return any(t.value == value for t in TEMPLATES)
