"""Definition types shared by extractors and document templates."""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from brandkit.models.common import ExtractorId
from brandkit.models.extractors import PriorOutputs

M = TypeVar("M", bound=BaseModel)

Normalizer = Callable[[dict[str, Any]], dict[str, Any]]


def _identity(raw: dict[str, Any]) -> dict[str, Any]:
    return raw


@dataclass(frozen=True)
class ParserDefinition(Generic[M]):
    """Second-phase instructions: turn free text into a typed record."""

    system_prompt: str
    function_name: str
    function_description: str
    output_model: type[M]
    normalize: Normalizer = _identity

    @property
    def schema(self) -> dict[str, Any]:
        """JSON schema handed to the language model."""
        return self.output_model.model_json_schema()

    def to_record(self, raw: dict[str, Any]) -> M:
        """Normalize raw extraction output and validate it.

        Raises:
            pydantic.ValidationError: If the normalized record does not match the model
        """
        return self.output_model.model_validate(self.normalize(dict(raw)))


@dataclass(frozen=True)
class ExtractorConfig:
    """Identity and scheduling metadata of an extractor."""

    id: ExtractorId
    name: str
    description: str
    depends_on: tuple[ExtractorId, ...] = field(default_factory=tuple)


PromptBuilder = Callable[[str, PriorOutputs], str]


@dataclass(frozen=True)
class ExtractorDefinition:
    """A registered extractor: config, first-phase prompt and second-phase parser."""

    config: ExtractorConfig
    build_prompt: PromptBuilder
    parser: ParserDefinition[Any]

    @property
    def id(self) -> ExtractorId:
        return self.config.id

    @property
    def depends_on(self) -> tuple[ExtractorId, ...]:
        return self.config.depends_on
