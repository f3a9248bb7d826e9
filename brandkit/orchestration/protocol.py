"""Two-phase language model protocol shared by extraction and document generation.

Phase 1 asks for free text; phase 2 extracts a schema-constrained record
from that text, which is then normalized and validated.
"""

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ValidationError

from brandkit.config import Settings
from brandkit.errors import UpstreamCallError
from brandkit.extractors.base import ParserDefinition
from brandkit.llm.client import LLMClient


@dataclass(frozen=True)
class PhaseBudget:
    """Token budgets and temperatures for both phases."""

    analysis_max_tokens: int = 2000
    analysis_temperature: float = 0.7
    parse_max_tokens: int = 1500
    parse_temperature: float = 0.1

    @classmethod
    def for_extraction(cls, settings: Settings) -> "PhaseBudget":
        return cls(
            analysis_max_tokens=settings.analysis_max_tokens,
            analysis_temperature=settings.analysis_temperature,
            parse_max_tokens=settings.parse_max_tokens,
            parse_temperature=settings.parse_temperature,
        )

    @classmethod
    def for_documents(cls, settings: Settings) -> "PhaseBudget":
        """Documents get a larger first-phase budget."""
        return cls(
            analysis_max_tokens=settings.document_max_tokens,
            analysis_temperature=settings.analysis_temperature,
            parse_max_tokens=settings.parse_max_tokens,
            parse_temperature=settings.parse_temperature,
        )


async def run_analysis(llm: LLMClient, prompt: str, budget: PhaseBudget) -> str:
    """Phase 1: free-text analysis.

    Raises:
        UpstreamCallError: If the call fails or the text is empty
    """
    text = await llm.complete(
        prompt,
        max_tokens=budget.analysis_max_tokens,
        temperature=budget.analysis_temperature,
    )
    if not text or not text.strip():
        raise UpstreamCallError("Model returned an empty response")
    return text


async def run_parse(
    llm: LLMClient, text: str, parser: ParserDefinition[Any], budget: PhaseBudget
) -> BaseModel:
    """Phase 2: structured extraction, normalization and validation.

    Raises:
        UpstreamCallError: If extraction fails or the record does not validate
    """
    raw = await llm.extract(
        text,
        system_prompt=parser.system_prompt,
        function_name=parser.function_name,
        function_description=parser.function_description,
        schema=parser.schema,
        max_tokens=budget.parse_max_tokens,
        temperature=budget.parse_temperature,
    )
    try:
        record: BaseModel = parser.to_record(raw)
    except ValidationError as e:
        raise UpstreamCallError(
            f"Extracted record for {parser.function_name} is invalid: "
            f"{e.error_count()} validation error(s)"
        ) from e
    return record
