"""Analysis service - subject registration, full analysis and explicit unit retries."""

import logging
import uuid

from brandkit.db.repositories import SubjectRepository, UnitRepository
from brandkit.documents.readiness import collect_prior_outputs
from brandkit.errors import MissingContentError, SubjectNotFoundError
from brandkit.extractors.registry import coerce_extractor_id, extractor_ids
from brandkit.models.common import ExtractorId, UnitStatus
from brandkit.models.subject import Subject
from brandkit.models.units import ExtractionUnit, UnitResult, UnitUpdate
from brandkit.orchestration.runner import ExtractionRunner
from brandkit.orchestration.status import AnalysisSummary, summarize_units

logger = logging.getLogger(__name__)


class AnalysisService:
    """Coordinates subjects, their units and the extraction runner."""

    def __init__(
        self,
        subjects: SubjectRepository,
        units: UnitRepository,
        runner: ExtractionRunner,
    ) -> None:
        self._subjects = subjects
        self._units = units
        self._runner = runner

    async def register_subject(
        self,
        owner_id: uuid.UUID,
        source_url: str,
        content: str | None,
        name: str | None = None,
    ) -> tuple[Subject, list[ExtractionUnit]]:
        """Store a subject and queue one unit per extractor.

        Returns:
            The subject and its queued units
        """
        subject = Subject(
            owner_id=owner_id,
            name=name,
            source_url=source_url,
            content=content,
        )
        if content is not None:
            subject.content_updated_at = subject.created_at
        subject = await self._subjects.create_subject(subject)
        units = await self._units.create_units(subject.subject_id, extractor_ids())
        logger.info(f"Registered subject {subject.subject_id} with {len(units)} queued units")
        return subject, units

    async def _require_subject(self, subject_id: uuid.UUID) -> Subject:
        subject = await self._subjects.get_subject(subject_id)
        if subject is None:
            raise SubjectNotFoundError(f"Subject not found: {subject_id}")
        return subject

    @staticmethod
    def _require_content(subject: Subject) -> str:
        if not subject.content or not subject.content.strip():
            raise MissingContentError(f"Subject {subject.subject_id} has no content to analyze")
        return subject.content

    async def queue_analysis(self, subject_id: uuid.UUID) -> list[ExtractionUnit]:
        """Put every unit of the subject back into queued.

        Raises:
            SubjectNotFoundError: If the subject does not exist
            MissingContentError: If the subject has no content snapshot
        """
        subject = await self._require_subject(subject_id)
        self._require_content(subject)
        return await self._units.create_units(subject_id, extractor_ids())

    async def run_queued(self, subject_id: uuid.UUID) -> dict[ExtractorId, UnitResult]:
        """Run all extractors against the subject's current content."""
        subject = await self._require_subject(subject_id)
        content = self._require_content(subject)
        return await self._runner.run_all(subject_id, content)

    async def analyze(self, subject_id: uuid.UUID) -> dict[ExtractorId, UnitResult]:
        """Queue every unit again and run all extractors.

        Raises:
            SubjectNotFoundError: If the subject does not exist
            MissingContentError: If the subject has no content snapshot
        """
        await self.queue_analysis(subject_id)
        return await self.run_queued(subject_id)

    async def rerun_unit(self, subject_id: uuid.UUID, unit_type: ExtractorId | str) -> UnitResult:
        """Explicitly retry one unit with the outputs of currently complete units.

        Raises:
            UnknownExtractorError: If the extractor id is not registered
            SubjectNotFoundError: If the subject does not exist
            MissingContentError: If the subject has no content snapshot
        """
        eid = coerce_extractor_id(unit_type)
        subject = await self._require_subject(subject_id)
        content = self._require_content(subject)

        units = await self._units.list_units(subject_id)
        current = next((u for u in units if u.unit_type == eid), None)
        if current is None:
            await self._units.create_units(subject_id, [eid])
            retry_count = 0
        else:
            retry_count = current.retry_count + 1
            await self._units.update_unit(
                subject_id,
                eid,
                UnitUpdate(
                    status=UnitStatus.queued,
                    retry_count=retry_count,
                    raw_output=None,
                    parsed_output=None,
                    error_message=None,
                    started_at=None,
                    completed_at=None,
                ),
            )

        prior = collect_prior_outputs(u for u in units if u.unit_type != eid)
        logger.info(f"Retrying {eid.value} for subject {subject_id} (retry {retry_count})")
        return await self._runner.run_unit(subject_id, eid, content, prior)

    async def list_units(self, subject_id: uuid.UUID) -> list[ExtractionUnit]:
        await self._require_subject(subject_id)
        return await self._units.list_units(subject_id)

    async def get_status(self, subject_id: uuid.UUID) -> AnalysisSummary:
        return summarize_units(await self.list_units(subject_id))
