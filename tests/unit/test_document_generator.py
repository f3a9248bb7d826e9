"""Tests for DocumentGenerator."""

import uuid
from datetime import date
from unittest.mock import MagicMock

import pytest

from brandkit.documents.generator import DocumentGenerator
from brandkit.errors import TemplateUnavailableError, UnknownTemplateError
from brandkit.models.common import TemplateId
from brandkit.models.extractors import AggregatedInputs, ParsedBasics, ParsedCustomer
from brandkit.orchestration.protocol import PhaseBudget
from tests.factories import BASICS_OUTPUT, CUSTOMER_OUTPUT, ScriptedLLM


@pytest.fixture
def inputs() -> AggregatedInputs:
    return AggregatedInputs(
        subject_name="Acme Coffee",
        basics=ParsedBasics.model_validate(BASICS_OUTPUT),
        customer=ParsedCustomer.model_validate(CUSTOMER_OUTPUT),
    )


class TestDocumentGenerator:
    """Test DocumentGenerator.generate."""

    @pytest.mark.asyncio
    async def test_generates_content_and_markdown(self, inputs: AggregatedInputs) -> None:
        llm = ScriptedLLM()
        generator = DocumentGenerator(llm, today=lambda: date(2026, 10, 17))

        result = await generator.generate(uuid.uuid4(), TemplateId.golden_circle, inputs)

        assert result.success
        assert result.error is None
        assert result.content is not None
        assert result.content["why"]["headline"] == "Great coffee belongs at home."
        assert result.markdown is not None
        assert result.markdown.startswith("# Golden Circle: Acme Coffee")
        assert "October 17, 2026" in result.markdown
        assert llm.extract_calls == ["extract_golden_circle"]
        assert "Acme Coffee" in llm.prompts[0]

    @pytest.mark.asyncio
    async def test_analysis_failure(self, inputs: AggregatedInputs) -> None:
        metrics = MagicMock()
        generator = DocumentGenerator(
            ScriptedLLM(fail_prompts=("Golden Circle",)), metrics=metrics
        )

        result = await generator.generate(uuid.uuid4(), "golden-circle", inputs)

        assert not result.success
        assert "Model analysis failed" in (result.error or "")
        assert result.content is None
        assert result.markdown is None
        ctx, phase = metrics.inc_error.call_args.args
        assert ctx.kind == "document"
        assert ctx.name == "golden-circle"
        assert phase == "analysis"

    @pytest.mark.asyncio
    async def test_parse_failure_keeps_raw_text(self, inputs: AggregatedInputs) -> None:
        generator = DocumentGenerator(ScriptedLLM(fail_functions=("extract_golden_circle",)))

        result = await generator.generate(uuid.uuid4(), TemplateId.golden_circle, inputs)

        assert not result.success
        assert result.raw_output
        assert "Model parsing failed" in (result.error or "")

    @pytest.mark.asyncio
    async def test_unknown_template_raises_before_any_call(
        self, inputs: AggregatedInputs
    ) -> None:
        llm = ScriptedLLM()
        generator = DocumentGenerator(llm)

        with pytest.raises(UnknownTemplateError):
            await generator.generate(uuid.uuid4(), "mission-statement", inputs)
        with pytest.raises(TemplateUnavailableError):
            await generator.generate(uuid.uuid4(), TemplateId.brand_brief, inputs)

        assert llm.prompts == []

    @pytest.mark.asyncio
    async def test_uses_document_budget(self, inputs: AggregatedInputs) -> None:
        seen: list[int] = []
        llm = ScriptedLLM()
        original = llm.complete

        async def complete(prompt: str, *, max_tokens: int, temperature: float) -> str:
            seen.append(max_tokens)
            return await original(prompt, max_tokens=max_tokens, temperature=temperature)

        llm.complete = complete  # type: ignore[method-assign]
        generator = DocumentGenerator(llm)

        await generator.generate(uuid.uuid4(), TemplateId.golden_circle, inputs)

        assert seen == [PhaseBudget(analysis_max_tokens=2500).analysis_max_tokens]

    def test_generate_title(self, inputs: AggregatedInputs) -> None:
        generator = DocumentGenerator(ScriptedLLM())

        assert generator.generate_title("golden-circle", inputs) == "Golden Circle: Acme Coffee"
