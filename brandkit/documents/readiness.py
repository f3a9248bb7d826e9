"""Readiness checks: can a template be generated from the current units?"""

import logging
from collections.abc import Iterable

from pydantic import ValidationError

from brandkit.documents.registry import get_template_config, template_ids
from brandkit.extractors.registry import get_extractor
from brandkit.models.common import ExtractorId, TemplateId, UnitStatus
from brandkit.models.extractors import AggregatedInputs, PriorOutputs
from brandkit.models.readiness import MissingField, ReadinessResult
from brandkit.models.units import ExtractionUnit

logger = logging.getLogger(__name__)

FIELD_LABELS: dict[str, str] = {
    # Basics
    "business_name": "Business name",
    "business_description": "Business description",
    "business_model": "Business model type",
    "industry": "Industry",
    "founder_name": "Founder name",
    "founded_year": "Year founded",
    # Customer
    "primary_problem": "Primary customer problem",
    "secondary_problems": "Secondary problems",
    "buying_motivation": "Buying motivation",
    "customer_sophistication": "Customer sophistication level",
    "subcultures": "Target subcultures",
    # Products
    "offerings": "Product/service offerings",
    "offering_type": "Offering type",
    "primary_offer": "Primary offer",
    "price_positioning": "Price positioning",
}


def _complete_units(units: Iterable[ExtractionUnit]) -> dict[ExtractorId, ExtractionUnit]:
    return {
        u.unit_type: u
        for u in units
        if u.status == UnitStatus.complete and u.parsed_output is not None
    }


def check_readiness(
    units: Iterable[ExtractionUnit], template_id: TemplateId | str
) -> ReadinessResult:
    """Check a template's required extractors and fields against a subject's units.

    Args:
        units: All extraction units of one subject
        template_id: Template to check (coming-soon templates are accepted)

    Returns:
        ReadinessResult; ready only when nothing is missing

    Raises:
        UnknownTemplateError: If the template id is not in the catalog
    """
    config = get_template_config(template_id)
    complete = _complete_units(units)

    completed: list[ExtractorId] = []
    missing: list[ExtractorId] = []
    missing_fields: list[MissingField] = []

    for extractor_id in config.required_extractors:
        unit = complete.get(extractor_id)
        if unit is None or unit.parsed_output is None:
            missing.append(extractor_id)
            continue

        completed.append(extractor_id)
        for field in config.required_fields.get(extractor_id, ()):
            value = unit.parsed_output.get(field)
            if value is None or value == "":
                missing_fields.append(
                    MissingField(
                        extractor=extractor_id,
                        field=field,
                        description=FIELD_LABELS.get(field, field),
                    )
                )

    result = ReadinessResult(
        is_ready=not missing and not missing_fields,
        completed_extractors=completed,
        missing_extractors=missing,
        missing_fields=missing_fields,
    )
    logger.debug(
        f"Readiness for {config.id.value}: ready={result.is_ready} "
        f"missing={[e.value for e in missing]} missing_fields={len(missing_fields)}"
    )
    return result


def check_all_templates(units: Iterable[ExtractionUnit]) -> dict[TemplateId, ReadinessResult]:
    """Readiness of every implemented template."""
    unit_list = list(units)
    return {tid: check_readiness(unit_list, tid) for tid in template_ids()}


def collect_prior_outputs(units: Iterable[ExtractionUnit]) -> PriorOutputs:
    """Typed outputs of every complete unit.

    A stored record that no longer validates is logged and left out.
    """
    prior = PriorOutputs()
    for extractor_id, unit in _complete_units(units).items():
        parser = get_extractor(extractor_id).parser
        try:
            record = parser.output_model.model_validate(unit.parsed_output)
        except ValidationError as e:
            logger.warning(f"Stored {extractor_id.value} output is invalid, ignoring: {e}")
            continue
        prior = prior.with_output(extractor_id, record)
    return prior


def build_aggregated_inputs(
    subject_name: str, source_url: str | None, units: Iterable[ExtractionUnit]
) -> AggregatedInputs:
    """Assemble template inputs from a subject's complete units."""
    prior = collect_prior_outputs(units)
    return AggregatedInputs(
        subject_name=subject_name,
        source_url=source_url,
        **{eid.value: prior.get(eid) for eid in ExtractorId},
    )
