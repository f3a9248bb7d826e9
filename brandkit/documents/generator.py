"""Document generator - two-phase generation plus markdown rendering.

The generator only produces content; persisting the document row is the
caller's job.
"""

import logging
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from typing import Any

from brandkit.documents.registry import get_template
from brandkit.errors import UpstreamCallError
from brandkit.llm.client import LLMClient
from brandkit.models.common import TemplateId
from brandkit.models.extractors import AggregatedInputs
from brandkit.orchestration.hooks import UnitContext, UnitLogger, UnitMetrics
from brandkit.orchestration.protocol import PhaseBudget, run_analysis, run_parse

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    """Outcome of generating one document."""

    success: bool
    duration_ms: float
    raw_output: str | None = None
    content: dict[str, Any] | None = None
    markdown: str | None = None
    error: str | None = None


class DocumentGenerator:
    """Generates template content from aggregated extractor outputs."""

    def __init__(
        self,
        llm: LLMClient,
        *,
        budget: PhaseBudget | None = None,
        metrics: UnitMetrics | None = None,
        unit_logger: UnitLogger | None = None,
        today: Callable[[], date] | None = None,
    ) -> None:
        self._llm = llm
        self._budget = budget or PhaseBudget(analysis_max_tokens=2500)
        self._metrics = metrics or UnitMetrics()
        self._logger = unit_logger or UnitLogger()
        self._today = today or date.today

    async def generate(
        self,
        subject_id: uuid.UUID,
        template_id: TemplateId | str,
        inputs: AggregatedInputs,
    ) -> GenerationResult:
        """Generate, parse and render a document.

        Args:
            subject_id: Subject the document is for (used for logging)
            template_id: Template to generate
            inputs: Aggregated extractor outputs and display name

        Returns:
            GenerationResult with content and markdown, or the failure message

        Raises:
            UnknownTemplateError: If the template id is not in the catalog
            TemplateUnavailableError: If the template cannot be generated yet
        """
        template = get_template(template_id)
        ctx = UnitContext(subject_id=subject_id, kind="document", name=template.id.value)
        start = time.perf_counter()
        phase = "analysis"
        raw_text: str | None = None

        try:
            self._logger.log_phase(ctx, "analyzing")
            raw_text = await run_analysis(self._llm, template.build_prompt(inputs), self._budget)

            phase = "parsing"
            self._logger.log_phase(ctx, "parsing")
            record = await run_parse(self._llm, raw_text, template.parser, self._budget)

            phase = "rendering"
            self._logger.log_phase(ctx, "rendering")
            markdown = template.render_markdown(record, inputs.subject_name, self._today())
        except UpstreamCallError as e:
            return self._fail(ctx, start, phase, str(e), raw_text)
        except Exception as e:
            logger.exception(f"Unexpected failure generating {template.id.value} during {phase}")
            return self._fail(ctx, start, phase, f"{type(e).__name__}: {e}", raw_text)

        elapsed_ms = (time.perf_counter() - start) * 1000
        self._metrics.record_latency(ctx, "success", elapsed_ms)
        self._logger.log_phase(ctx, "complete", latency_ms=elapsed_ms)
        return GenerationResult(
            success=True,
            duration_ms=elapsed_ms,
            raw_output=raw_text,
            content=record.model_dump(mode="json"),
            markdown=markdown,
        )

    def generate_title(self, template_id: TemplateId | str, inputs: AggregatedInputs) -> str:
        """Document title for the given inputs (pure)."""
        return get_template(template_id).generate_title(inputs)

    def _fail(
        self,
        ctx: UnitContext,
        start: float,
        phase: str,
        message: str,
        raw_text: str | None,
    ) -> GenerationResult:
        elapsed_ms = (time.perf_counter() - start) * 1000
        self._metrics.record_latency(ctx, "error", elapsed_ms)
        self._metrics.inc_error(ctx, phase)
        self._logger.log_phase(ctx, "error", latency_ms=elapsed_ms, error_reason=message)
        return GenerationResult(
            success=False, duration_ms=elapsed_ms, raw_output=raw_text, error=message
        )
