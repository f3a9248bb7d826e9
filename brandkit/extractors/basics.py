"""Basics extractor - business name, founder, industry and model."""

from typing import Any

from brandkit.extractors.base import ExtractorConfig, ExtractorDefinition, ParserDefinition
from brandkit.models.common import ExtractorId
from brandkit.models.extractors import ParsedBasics, PriorOutputs
from brandkit.utils.text import clean_optional, clean_text

CONFIG = ExtractorConfig(
    id=ExtractorId.basics,
    name="Basics",
    description="Core business information like name, industry, and what they do",
)


def build_prompt(content: str, prior: PriorOutputs) -> str:
    """Ask for a conversational intake summary of the website."""
    return f"""You are a sharp brand strategist doing intake research on a new client.
You've just reviewed their website content (provided below).

Write a brief, natural summary covering:
- What the business is called and who founded it (if apparent)
- Roughly when they seem to have started (if mentioned or inferable)
- What industry or space they operate in
- What this business actually does, explained like you're telling a colleague
- What their primary business model seems to be (products, services, SaaS, agency, etc.)

Be conversational and observant. Note if anything is unclear or missing from the website.
Don't use bullet points or structured formatting. Write naturally, as if you're jotting
notes after reviewing their site.

If you can't find certain information (like founder name or founding year), just mention
that it wasn't apparent from the website. Don't make things up.

---
WEBSITE CONTENT:
{content}"""


def normalize(raw: dict[str, Any]) -> dict[str, Any]:
    """Trim and decode strings, fill in required names, null out empty optionals."""
    return {
        **raw,
        "business_name": clean_text(raw.get("business_name")) or "Unknown Business",
        "industry": clean_text(raw.get("industry")) or "Unknown",
        "business_description": clean_text(raw.get("business_description")),
        "founder_name": clean_optional(raw.get("founder_name")),
        "founded_year": clean_optional(raw.get("founded_year")),
    }


PARSER = ParserDefinition(
    system_prompt="""You are a precise data extraction assistant.
Read the brand analysis below and extract the requested fields into the function call.
If something wasn't mentioned or is genuinely unclear, use null for optional fields.
For required fields, make your best inference from context.""",
    function_name="extract_basics",
    function_description="Extract basic business information from the analysis",
    output_model=ParsedBasics,
    normalize=normalize,
)

EXTRACTOR = ExtractorDefinition(config=CONFIG, build_prompt=build_prompt, parser=PARSER)
