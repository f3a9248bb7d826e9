"""Document state model - pure derivation of freshness and export state.

Nothing here touches storage or the clock; the same documents and subject
always produce the same state.
"""

import logging
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone

from brandkit.models.common import (
    DocumentStatus,
    ExportState,
    GenerationState,
    PrimaryAction,
    TemplateId,
)
from brandkit.models.documents import GeneratedDocument
from brandkit.models.subject import Subject

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DocumentState:
    """Derived state of the latest document for one template."""

    exists: bool
    latest: GeneratedDocument | None
    generation_count: int
    generation_state: GenerationState
    export_state: ExportState
    is_stale: bool
    is_exported: bool
    is_export_stale: bool
    status_message: str
    primary_action: PrimaryAction


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def has_export_reference(doc: GeneratedDocument) -> bool:
    return bool(doc.external_url or doc.external_id)


def compute_generation_state(
    latest: GeneratedDocument | None, subject_updated_at: datetime
) -> GenerationState:
    """Any subject change after the document was created makes it stale."""
    if latest is None:
        return GenerationState.never_generated
    if _utc(subject_updated_at) > _utc(latest.created_at):
        return GenerationState.generated_stale
    return GenerationState.generated_fresh


def compute_export_state(latest: GeneratedDocument | None) -> ExportState:
    """Export state of a document.

    A recorded reference without a timestamp counts as current.
    """
    if latest is None or not has_export_reference(latest):
        return ExportState.not_exported
    if latest.exported_at is None:
        return ExportState.exported_current
    if _utc(latest.created_at) > _utc(latest.exported_at):
        return ExportState.exported_stale
    return ExportState.exported_current


def determine_primary_action(
    generation_state: GenerationState, export_state: ExportState
) -> PrimaryAction:
    if generation_state == GenerationState.never_generated:
        return PrimaryAction.generate
    is_stale = generation_state == GenerationState.generated_stale
    if export_state != ExportState.not_exported and not is_stale:
        return PrimaryAction.open_in_external
    if is_stale:
        return PrimaryAction.view_and_regenerate
    return PrimaryAction.view


def format_short_date(value: datetime) -> str:
    return f"{value:%b} {value.day}"


def build_status_message(
    latest: GeneratedDocument | None,
    generation_state: GenerationState,
    export_state: ExportState,
) -> str:
    """Human-readable one-liner, e.g. "Generated Jan 5 • Data updated • In external doc"."""
    if latest is None:
        return "Not yet generated"

    parts = [f"Generated {format_short_date(_utc(latest.created_at))}"]
    if generation_state == GenerationState.generated_stale:
        parts.append("• Data updated")
    if export_state == ExportState.exported_current:
        parts.append("• In external doc")
    elif export_state == ExportState.exported_stale:
        parts.append("• External doc outdated")
    return " ".join(parts)


def get_state(
    documents: Iterable[GeneratedDocument],
    subject: Subject,
    template_id: TemplateId | None = None,
) -> DocumentState:
    """Derive the state of the latest complete document.

    Args:
        documents: Candidate documents (any status, any template)
        subject: Subject the documents were generated for
        template_id: Restrict candidates to one template

    Returns:
        DocumentState for the most recently created complete document
    """
    candidates = [
        d
        for d in documents
        if d.status == DocumentStatus.complete
        and (template_id is None or d.template_id == template_id)
    ]
    candidates.sort(key=lambda d: _utc(d.created_at), reverse=True)
    latest = candidates[0] if candidates else None

    generation_state = compute_generation_state(latest, subject.updated_at)
    export_state = compute_export_state(latest)
    state = DocumentState(
        exists=latest is not None,
        latest=latest,
        generation_count=len(candidates),
        generation_state=generation_state,
        export_state=export_state,
        is_stale=generation_state == GenerationState.generated_stale,
        is_exported=latest is not None and has_export_reference(latest),
        is_export_stale=export_state == ExportState.exported_stale,
        status_message=build_status_message(latest, generation_state, export_state),
        primary_action=determine_primary_action(generation_state, export_state),
    )
    logger.debug(
        f"Document state for {template_id.value if template_id else 'all'}: "
        f"{generation_state.value}/{export_state.value} -> {state.primary_action.value}"
    )
    return state


def get_all_states(
    documents: Iterable[GeneratedDocument], subject: Subject
) -> dict[TemplateId, DocumentState]:
    """State per template for every template that has at least one document."""
    by_template: dict[TemplateId, list[GeneratedDocument]] = defaultdict(list)
    for doc in documents:
        by_template[doc.template_id].append(doc)
    return {
        tid: get_state(docs, subject, template_id=tid) for tid, docs in by_template.items()
    }
