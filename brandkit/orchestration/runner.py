"""Extraction runner - drives units through the two-phase protocol in dependency waves.

Each unit moves queued -> analyzing -> parsing -> complete, or to error at
the first failing phase. Failures are recorded on the unit and never
cancel siblings or later waves.
"""

import asyncio
import logging
import time
import uuid
from collections.abc import Callable, Mapping
from datetime import datetime

from pydantic import BaseModel

from brandkit.db.repositories import UnitRepository
from brandkit.errors import UnitNotFoundError, UnknownExtractorError, UpstreamCallError
from brandkit.extractors.base import ExtractorDefinition
from brandkit.extractors.registry import EXTRACTORS, coerce_extractor_id
from brandkit.llm.client import LLMClient
from brandkit.models.common import ExtractorId, UnitStatus, utcnow
from brandkit.models.extractors import PriorOutputs
from brandkit.models.units import UnitResult, UnitUpdate
from brandkit.orchestration.hooks import UnitContext, UnitLogger, UnitMetrics
from brandkit.orchestration.protocol import PhaseBudget, run_analysis, run_parse
from brandkit.orchestration.schedule import Schedule, build_schedule

logger = logging.getLogger(__name__)


class ExtractionRunner:
    """Runs extractors for one subject and persists each unit's progress."""

    def __init__(
        self,
        units: UnitRepository,
        llm: LLMClient,
        *,
        extractors: Mapping[ExtractorId, ExtractorDefinition] | None = None,
        budget: PhaseBudget | None = None,
        metrics: UnitMetrics | None = None,
        unit_logger: UnitLogger | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize runner.

        Args:
            units: Unit repository for status persistence
            llm: Language model client
            extractors: Extractor definitions (default: the registry)
            budget: Token budgets (default: PhaseBudget())
            metrics: Metrics recorder (optional, defaults to no-op)
            unit_logger: Structured logger (optional, defaults to no-op)
            clock: Injectable clock for timestamps (default: utcnow)
        """
        self._units = units
        self._llm = llm
        self._extractors = dict(extractors) if extractors is not None else dict(EXTRACTORS)
        self._budget = budget or PhaseBudget()
        self._metrics = metrics or UnitMetrics()
        self._logger = unit_logger or UnitLogger()
        self._now = clock or utcnow

    def schedule(self) -> Schedule:
        return build_schedule(self._extractors.values())

    def _definition(self, unit_type: ExtractorId | str) -> ExtractorDefinition:
        eid = coerce_extractor_id(unit_type)
        definition = self._extractors.get(eid)
        if definition is None:
            raise UnknownExtractorError(eid.value)
        return definition

    async def run_unit(
        self,
        subject_id: uuid.UUID,
        unit_type: ExtractorId | str,
        content: str,
        prior: PriorOutputs | None = None,
    ) -> UnitResult:
        """Run one extractor through both phases and persist every transition.

        Args:
            subject_id: Subject the unit belongs to
            unit_type: Extractor id
            content: Subject content snapshot
            prior: Outputs of extractors that completed earlier

        Returns:
            UnitResult describing success or the failure message

        Raises:
            UnknownExtractorError: If the extractor id is not registered
        """
        definition = self._definition(unit_type)
        result, _ = await self._execute(
            subject_id, definition, content, prior if prior is not None else PriorOutputs()
        )
        return result

    async def run_all(self, subject_id: uuid.UUID, content: str) -> dict[ExtractorId, UnitResult]:
        """Run every extractor wave by wave.

        Units of a wave run concurrently; each wave sees the outputs of all
        units that succeeded in earlier waves. Never raises for unit failures.

        Returns:
            Result per scheduled extractor id
        """
        schedule = self.schedule()
        if schedule.unscheduled:
            logger.error(
                f"Subject {subject_id}: skipping unschedulable extractors "
                f"{[e.value for e in schedule.unscheduled]}"
            )

        results: dict[ExtractorId, UnitResult] = {}
        prior = PriorOutputs()

        for index, wave in enumerate(schedule.waves):
            logger.info(
                f"Subject {subject_id}: wave {index + 1}/{len(schedule.waves)} "
                f"running {[e.value for e in wave]}"
            )
            snapshot = prior
            outcomes = await asyncio.gather(
                *(
                    self._execute(subject_id, self._extractors[eid], content, snapshot)
                    for eid in wave
                )
            )
            for eid, (result, record) in zip(wave, outcomes):
                results[eid] = result
                if record is not None:
                    prior = prior.with_output(eid, record)

        succeeded = sum(1 for r in results.values() if r.success)
        logger.info(f"Subject {subject_id}: {succeeded}/{len(results)} extractors succeeded")
        return results

    async def _execute(
        self,
        subject_id: uuid.UUID,
        definition: ExtractorDefinition,
        content: str,
        prior: PriorOutputs,
    ) -> tuple[UnitResult, BaseModel | None]:
        eid = definition.id
        ctx = UnitContext(subject_id=subject_id, kind="extractor", name=eid.value)
        start = time.perf_counter()
        phase = "analysis"
        raw_text: str | None = None

        try:
            await self._update(
                subject_id,
                eid,
                UnitUpdate(
                    status=UnitStatus.analyzing,
                    raw_output=None,
                    parsed_output=None,
                    started_at=self._now(),
                    completed_at=None,
                    error_message=None,
                ),
            )
            self._logger.log_phase(ctx, "analyzing")
            raw_text = await run_analysis(
                self._llm, definition.build_prompt(content, prior), self._budget
            )

            phase = "parsing"
            await self._update(
                subject_id, eid, UnitUpdate(status=UnitStatus.parsing, raw_output=raw_text)
            )
            self._logger.log_phase(ctx, "parsing")
            record = await run_parse(self._llm, raw_text, definition.parser, self._budget)

            phase = "persist"
            parsed = record.model_dump(mode="json")
            await self._update(
                subject_id,
                eid,
                UnitUpdate(
                    status=UnitStatus.complete,
                    parsed_output=parsed,
                    error_message=None,
                    completed_at=self._now(),
                ),
            )
        except (UpstreamCallError, UnitNotFoundError) as e:
            return await self._fail(ctx, start, phase, str(e), raw_text), None
        except Exception as e:
            logger.exception(f"Unexpected failure in {eid.value} during {phase}")
            return await self._fail(ctx, start, phase, f"{type(e).__name__}: {e}", raw_text), None

        elapsed_ms = (time.perf_counter() - start) * 1000
        self._metrics.record_latency(ctx, "success", elapsed_ms)
        self._logger.log_phase(ctx, "complete", latency_ms=elapsed_ms)
        return (
            UnitResult(
                success=True, duration_ms=elapsed_ms, raw_output=raw_text, parsed_output=parsed
            ),
            record,
        )

    async def _fail(
        self,
        ctx: UnitContext,
        start: float,
        phase: str,
        message: str,
        raw_text: str | None,
    ) -> UnitResult:
        elapsed_ms = (time.perf_counter() - start) * 1000
        self._metrics.record_latency(ctx, "error", elapsed_ms)
        self._metrics.inc_error(ctx, phase)
        self._logger.log_phase(ctx, "error", latency_ms=elapsed_ms, error_reason=message)

        try:
            await self._update(
                ctx.subject_id,
                ExtractorId(ctx.name),
                UnitUpdate(
                    status=UnitStatus.error,
                    error_message=message,
                    completed_at=self._now(),
                ),
            )
        except UnitNotFoundError:
            logger.warning(f"Failure of {ctx.name} for {ctx.subject_id} not persisted: no unit row")
        except Exception:
            logger.exception(f"Could not record failure of {ctx.name} for {ctx.subject_id}")

        return UnitResult(
            success=False, duration_ms=elapsed_ms, raw_output=raw_text, error=message
        )

    async def _update(self, subject_id: uuid.UUID, eid: ExtractorId, update: UnitUpdate) -> None:
        unit = await self._units.update_unit(subject_id, eid, update)
        if unit is None:
            raise UnitNotFoundError(subject_id, eid.value)
