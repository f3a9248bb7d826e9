"""Tests for the derived document state model."""

import itertools
import uuid

from brandkit.documents.state import (
    build_status_message,
    compute_export_state,
    determine_primary_action,
    get_all_states,
    get_state,
)
from brandkit.models.common import (
    DocumentStatus,
    ExportState,
    GenerationState,
    PrimaryAction,
    TemplateId,
)
from tests.factories import at, make_document, make_subject


def test_stale_after_subject_update() -> None:
    """Document at T=100, subject at T=90 is fresh; moving the subject to T=150 makes it stale."""
    subject = make_subject(updated_at=at(90))
    doc = make_document(subject.subject_id, created_at=at(100))

    fresh = get_state([doc], subject, TemplateId.golden_circle)
    assert fresh.is_stale is False
    assert fresh.generation_state == GenerationState.generated_fresh
    assert fresh.primary_action == PrimaryAction.view

    updated = subject.model_copy(update={"updated_at": at(150)})
    stale = get_state([doc], updated, TemplateId.golden_circle)
    assert stale.is_stale is True
    assert stale.generation_state == GenerationState.generated_stale
    assert stale.primary_action == PrimaryAction.view_and_regenerate


def test_staleness_is_monotonic() -> None:
    subject = make_subject(updated_at=at(0))
    doc = make_document(subject.subject_id, created_at=at(100))

    results = [
        get_state([doc], subject.model_copy(update={"updated_at": at(t)})).is_stale
        for t in range(0, 400, 25)
    ]

    first_stale = results.index(True)
    assert all(results[first_stale:])


def test_export_then_regenerate() -> None:
    """A later regeneration is a new row and leaves the first document's export untouched."""
    subject = make_subject(updated_at=at(50))
    first = make_document(
        subject.subject_id,
        created_at=at(100),
        external_id="doc-1",
        external_url="https://docs.example/doc-1",
        exported_at=at(200),
    )

    assert compute_export_state(first) == ExportState.exported_current
    state = get_state([first], subject)
    assert state.is_exported
    assert state.primary_action == PrimaryAction.open_in_external

    second = make_document(subject.subject_id, created_at=at(300))
    state = get_state([first, second], subject)

    assert state.latest is not None
    assert state.latest.document_id == second.document_id
    assert state.generation_count == 2
    assert state.export_state == ExportState.not_exported
    assert compute_export_state(first) == ExportState.exported_current
    assert first.exported_at == at(200)


def test_export_older_than_document_is_stale() -> None:
    subject = make_subject(updated_at=at(0))
    doc = make_document(
        subject.subject_id, created_at=at(300), external_url="https://x", exported_at=at(200)
    )

    state = get_state([doc], subject)

    assert state.export_state == ExportState.exported_stale
    assert state.is_export_stale
    assert state.status_message == "Generated Jan 1 • External doc outdated"


def test_reference_without_timestamp_counts_as_current() -> None:
    doc = make_document(uuid.uuid4(), created_at=at(100), external_id="doc-1")

    assert compute_export_state(doc) == ExportState.exported_current


def test_never_generated() -> None:
    subject = make_subject()

    state = get_state([], subject, TemplateId.golden_circle)

    assert state.exists is False
    assert state.latest is None
    assert state.generation_count == 0
    assert state.generation_state == GenerationState.never_generated
    assert state.export_state == ExportState.not_exported
    assert state.primary_action == PrimaryAction.generate
    assert state.status_message == "Not yet generated"


def test_only_complete_documents_count() -> None:
    subject = make_subject(updated_at=at(0))
    done = make_document(subject.subject_id, created_at=at(100))
    failed = make_document(
        subject.subject_id, created_at=at(200), status=DocumentStatus.error, error_message="x"
    )
    running = make_document(subject.subject_id, created_at=at(300), status=DocumentStatus.generating)

    state = get_state([running, failed, done], subject)

    assert state.latest is not None
    assert state.latest.document_id == done.document_id
    assert state.generation_count == 1


def test_get_state_is_pure() -> None:
    subject = make_subject(updated_at=at(150))
    docs = [
        make_document(subject.subject_id, created_at=at(100), external_url="https://x"),
        make_document(subject.subject_id, created_at=at(120)),
    ]
    before = [d.model_copy(deep=True) for d in docs]

    assert get_state(docs, subject) == get_state(docs, subject)
    assert docs == before


def test_primary_action_table() -> None:
    expected = {
        GenerationState.never_generated: {
            ExportState.not_exported: PrimaryAction.generate,
            ExportState.exported_current: PrimaryAction.generate,
            ExportState.exported_stale: PrimaryAction.generate,
        },
        GenerationState.generated_fresh: {
            ExportState.not_exported: PrimaryAction.view,
            ExportState.exported_current: PrimaryAction.open_in_external,
            ExportState.exported_stale: PrimaryAction.open_in_external,
        },
        GenerationState.generated_stale: {
            ExportState.not_exported: PrimaryAction.view_and_regenerate,
            ExportState.exported_current: PrimaryAction.view_and_regenerate,
            ExportState.exported_stale: PrimaryAction.view_and_regenerate,
        },
    }

    for gen, export in itertools.product(GenerationState, ExportState):
        assert determine_primary_action(gen, export) == expected[gen][export]


def test_status_message_parts() -> None:
    doc = make_document(uuid.uuid4(), created_at=at(0))

    assert (
        build_status_message(doc, GenerationState.generated_fresh, ExportState.not_exported)
        == "Generated Jan 1"
    )
    assert (
        build_status_message(doc, GenerationState.generated_stale, ExportState.exported_current)
        == "Generated Jan 1 • Data updated • In external doc"
    )


def test_all_states_grouped_by_template() -> None:
    subject = make_subject(updated_at=at(0))
    golden = make_document(subject.subject_id, created_at=at(100))
    brief = make_document(
        subject.subject_id, created_at=at(200), template_id=TemplateId.brand_brief
    )

    states = get_all_states([golden, brief], subject)

    assert set(states) == {TemplateId.golden_circle, TemplateId.brand_brief}
    assert states[TemplateId.golden_circle].latest == golden
    assert states[TemplateId.brand_brief].latest == brief
