"""Tests for AnalysisService and the subject-level status rollup."""

import uuid

import pytest

from brandkit.db.inmemory import InMemorySubjectRepository, InMemoryUnitRepository
from brandkit.errors import MissingContentError, SubjectNotFoundError, UnknownExtractorError
from brandkit.models.common import ExtractorId, UnitStatus
from brandkit.orchestration.analysis import AnalysisService
from brandkit.orchestration.runner import ExtractionRunner
from brandkit.orchestration.status import AnalysisStatus, summarize_units
from tests.factories import PROMPT_MARKERS, ScriptedLLM, make_unit


def make_service(
    subjects: InMemorySubjectRepository, units: InMemoryUnitRepository, llm: ScriptedLLM
) -> AnalysisService:
    return AnalysisService(subjects, units, ExtractionRunner(units, llm))


class TestAnalysisService:
    """Test subject registration, analysis and retries."""

    @pytest.mark.asyncio
    async def test_register_queues_one_unit_per_extractor(
        self, subject_repo: InMemorySubjectRepository, unit_repo: InMemoryUnitRepository
    ) -> None:
        service = make_service(subject_repo, unit_repo, ScriptedLLM())

        subject, units = await service.register_subject(
            uuid.uuid4(), "https://acme.example", "Acme sells coffee."
        )

        assert subject.content_updated_at == subject.created_at
        assert {u.unit_type for u in units} == set(ExtractorId)
        assert all(u.status == UnitStatus.queued for u in units)
        status = await service.get_status(subject.subject_id)
        assert status.status == AnalysisStatus.queued
        assert status.total_units == 3

    @pytest.mark.asyncio
    async def test_analyze_completes_all_units(
        self, subject_repo: InMemorySubjectRepository, unit_repo: InMemoryUnitRepository
    ) -> None:
        service = make_service(subject_repo, unit_repo, ScriptedLLM())
        subject, _ = await service.register_subject(
            uuid.uuid4(), "https://acme.example", "Acme sells coffee."
        )

        results = await service.analyze(subject.subject_id)

        assert all(r.success for r in results.values())
        status = await service.get_status(subject.subject_id)
        assert status.status == AnalysisStatus.complete
        assert status.completed_units == 3

    @pytest.mark.asyncio
    async def test_partial_failure(
        self, subject_repo: InMemorySubjectRepository, unit_repo: InMemoryUnitRepository
    ) -> None:
        llm = ScriptedLLM(fail_prompts=(PROMPT_MARKERS[ExtractorId.products],))
        service = make_service(subject_repo, unit_repo, llm)
        subject, _ = await service.register_subject(
            uuid.uuid4(), "https://acme.example", "Acme sells coffee."
        )

        await service.analyze(subject.subject_id)

        status = await service.get_status(subject.subject_id)
        assert status.status == AnalysisStatus.partial
        assert status.error_units == 1

    @pytest.mark.asyncio
    async def test_analyze_requires_content(
        self, subject_repo: InMemorySubjectRepository, unit_repo: InMemoryUnitRepository
    ) -> None:
        llm = ScriptedLLM()
        service = make_service(subject_repo, unit_repo, llm)
        subject, _ = await service.register_subject(uuid.uuid4(), "https://acme.example", None)

        with pytest.raises(MissingContentError):
            await service.analyze(subject.subject_id)
        assert llm.prompts == []

    @pytest.mark.asyncio
    async def test_unknown_subject(
        self, subject_repo: InMemorySubjectRepository, unit_repo: InMemoryUnitRepository
    ) -> None:
        service = make_service(subject_repo, unit_repo, ScriptedLLM())

        with pytest.raises(SubjectNotFoundError):
            await service.analyze(uuid.uuid4())
        with pytest.raises(SubjectNotFoundError):
            await service.list_units(uuid.uuid4())

    @pytest.mark.asyncio
    async def test_rerun_failed_unit(
        self, subject_repo: InMemorySubjectRepository, unit_repo: InMemoryUnitRepository
    ) -> None:
        """A retry bumps retry_count and clears the previous error."""
        llm = ScriptedLLM(fail_prompts=(PROMPT_MARKERS[ExtractorId.customer],))
        service = make_service(subject_repo, unit_repo, llm)
        subject, _ = await service.register_subject(
            uuid.uuid4(), "https://acme.example", "Acme sells coffee."
        )
        await service.analyze(subject.subject_id)
        failed = await unit_repo.get_unit(subject.subject_id, ExtractorId.customer)
        assert failed is not None and failed.status == UnitStatus.error

        llm.fail_prompts = ()
        llm.prompts.clear()
        result = await service.rerun_unit(subject.subject_id, "customer")

        assert result.success
        unit = await unit_repo.get_unit(subject.subject_id, ExtractorId.customer)
        assert unit is not None
        assert unit.status == UnitStatus.complete
        assert unit.retry_count == 1
        assert unit.error_message is None
        assert len(llm.prompts) == 1
        assert PROMPT_MARKERS[ExtractorId.customer] in llm.prompts[0]

    @pytest.mark.asyncio
    async def test_rerun_unknown_extractor(
        self, subject_repo: InMemorySubjectRepository, unit_repo: InMemoryUnitRepository
    ) -> None:
        service = make_service(subject_repo, unit_repo, ScriptedLLM())
        subject, _ = await service.register_subject(
            uuid.uuid4(), "https://acme.example", "Acme sells coffee."
        )

        with pytest.raises(UnknownExtractorError):
            await service.rerun_unit(subject.subject_id, "pricing")


class TestSummarizeUnits:
    """Test summarize_units."""

    def test_rollup(self) -> None:
        sid = uuid.uuid4()
        B, C, P = ExtractorId.basics, ExtractorId.customer, ExtractorId.products
        cases = [
            ([], AnalysisStatus.queued),
            ([make_unit(sid, B), make_unit(sid, C)], AnalysisStatus.complete),
            (
                [make_unit(sid, B, UnitStatus.error), make_unit(sid, C, UnitStatus.error)],
                AnalysisStatus.error,
            ),
            (
                [make_unit(sid, B), make_unit(sid, C, UnitStatus.analyzing)],
                AnalysisStatus.analyzing,
            ),
            (
                [make_unit(sid, B), make_unit(sid, C, UnitStatus.error)],
                AnalysisStatus.partial,
            ),
            (
                [make_unit(sid, B), make_unit(sid, P, UnitStatus.queued)],
                AnalysisStatus.queued,
            ),
        ]

        for units, expected in cases:
            assert summarize_units(units).status == expected
