"""Language model client with OpenAI integration.

Security: Reads API key from settings only, never hardcoded.
Provides a deterministic stub when no key is configured.
"""

import json
import logging
from typing import Any, Protocol

from openai import AsyncOpenAI

from brandkit.config import Settings, get_settings
from brandkit.errors import UpstreamCallError

logger = logging.getLogger(__name__)


class LLMClient(Protocol):
    """Protocol for language model client implementations."""

    async def complete(self, prompt: str, *, max_tokens: int, temperature: float) -> str:
        """Free-text completion for a single user prompt.

        Args:
            prompt: Full prompt text
            max_tokens: Completion token budget
            temperature: Sampling temperature

        Returns:
            Non-empty completion text

        Raises:
            UpstreamCallError: If the call fails or returns nothing
        """
        ...

    async def extract(
        self,
        text: str,
        *,
        system_prompt: str,
        function_name: str,
        function_description: str,
        schema: dict[str, Any],
        max_tokens: int,
        temperature: float,
    ) -> dict[str, Any]:
        """Schema-constrained extraction of a record from free text.

        Args:
            text: Free text produced by the first phase
            system_prompt: Extraction instructions
            function_name: Name of the structured-output function
            function_description: What the function extracts
            schema: JSON schema of the record
            max_tokens: Completion token budget
            temperature: Sampling temperature

        Returns:
            Raw record as decoded from the model's function arguments

        Raises:
            UpstreamCallError: If the call fails or the arguments are unusable
        """
        ...


def _resolve(schema: dict[str, Any], defs: dict[str, Any]) -> dict[str, Any]:
    ref = schema.get("$ref")
    if isinstance(ref, str) and ref.startswith("#/$defs/"):
        resolved: dict[str, Any] = defs[ref.removeprefix("#/$defs/")]
        return resolved
    return schema


def _stub_value(name: str, schema: dict[str, Any], defs: dict[str, Any]) -> Any:
    schema = _resolve(schema, defs)

    if "anyOf" in schema:
        options = [_resolve(s, defs) for s in schema["anyOf"]]
        if any(o.get("type") == "null" for o in options):
            return None
        return _stub_value(name, options[0], defs)
    if "enum" in schema:
        return schema["enum"][0]
    if "const" in schema:
        return schema["const"]

    kind = schema.get("type")
    if kind == "object":
        return {
            key: _stub_value(key, sub, defs)
            for key, sub in schema.get("properties", {}).items()
        }
    if kind == "array":
        return []
    if kind in ("integer", "number"):
        return 0
    if kind == "boolean":
        return False
    return f"Stub {name.replace('_', ' ')}"


class DeterministicStubClient:
    """Deterministic stub client for testing (no API key required)."""

    async def complete(self, prompt: str, *, max_tokens: int, temperature: float) -> str:
        """Return a fixed analysis that echoes the prompt size."""
        return (
            f"Stub analysis of a {len(prompt)}-character prompt. "
            "This text was produced without a language model."
        )

    async def extract(
        self,
        text: str,
        *,
        system_prompt: str,
        function_name: str,
        function_description: str,
        schema: dict[str, Any],
        max_tokens: int,
        temperature: float,
    ) -> dict[str, Any]:
        """Build a record that satisfies ``schema`` from its structure alone."""
        record = _stub_value(function_name, schema, schema.get("$defs", {}))
        if not isinstance(record, dict):
            raise UpstreamCallError(f"Schema for {function_name} is not an object schema")
        return record


class OpenAIClient:
    """OpenAI-backed language model client."""

    def __init__(self, api_key: str, model: str = "gpt-4o-mini"):
        """Initialize OpenAI client.

        Args:
            api_key: OpenAI API key (read from settings)
            model: Model name to use (default: gpt-4o-mini for cost efficiency)
        """
        self.client = AsyncOpenAI(api_key=api_key)
        self.model = model

    async def complete(self, prompt: str, *, max_tokens: int, temperature: float) -> str:
        logger.debug(f"Starting completion with {self.model} (max_tokens={max_tokens})")
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except Exception as e:
            logger.error(f"OpenAI completion failed: {e}")
            raise UpstreamCallError(f"Model analysis failed: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            logger.error("OpenAI returned an empty completion")
            raise UpstreamCallError("Model returned an empty response")

        if response.usage is not None:
            logger.debug(f"Completion used {response.usage.total_tokens} tokens")
        return content

    async def extract(
        self,
        text: str,
        *,
        system_prompt: str,
        function_name: str,
        function_description: str,
        schema: dict[str, Any],
        max_tokens: int,
        temperature: float,
    ) -> dict[str, Any]:
        logger.debug(f"Starting extraction {function_name} with {self.model}")
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {
                        "role": "user",
                        "content": f"Extract the structured data from this analysis:\n\n{text}",
                    },
                ],
                tools=[
                    {
                        "type": "function",
                        "function": {
                            "name": function_name,
                            "description": function_description,
                            "parameters": schema,
                        },
                    }
                ],
                tool_choice={"type": "function", "function": {"name": function_name}},
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except Exception as e:
            logger.error(f"OpenAI extraction failed: {e}")
            raise UpstreamCallError(f"Model parsing failed: {e}") from e

        message = response.choices[0].message if response.choices else None
        tool_calls = message.tool_calls if message is not None else None
        if not tool_calls or tool_calls[0].type != "function":
            raise UpstreamCallError("Model did not return structured data in the expected format")

        call = tool_calls[0].function
        if call.name != function_name:
            raise UpstreamCallError(
                f"Model called unexpected function {call.name!r} (expected {function_name!r})"
            )

        try:
            data = json.loads(call.arguments)
        except json.JSONDecodeError as e:
            raise UpstreamCallError(f"Model returned malformed function arguments: {e}") from e
        if not isinstance(data, dict):
            raise UpstreamCallError("Model function arguments are not a JSON object")
        return data


def get_llm_client(settings: Settings | None = None) -> LLMClient:
    """Factory function to get appropriate client based on config.

    Returns:
        OpenAIClient if API key is configured, DeterministicStubClient otherwise
    """
    settings = settings or get_settings()
    api_key = settings.openai_api_key

    if api_key and api_key.get_secret_value():
        logger.info("Using OpenAI client")
        return OpenAIClient(api_key=api_key.get_secret_value(), model=settings.openai_model)
    else:
        logger.warning("No OpenAI API key configured, using deterministic stub client")
        return DeterministicStubClient()
