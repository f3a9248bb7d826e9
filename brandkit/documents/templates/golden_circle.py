"""Golden Circle template - Why, How and What of a brand."""

from datetime import date
from typing import Any

from pydantic import BaseModel, Field

from brandkit.documents.base import TemplateConfig, TemplateDefinition
from brandkit.extractors.base import ParserDefinition
from brandkit.models.common import ExtractorId, TemplateCategory, TemplateId
from brandkit.models.extractors import AggregatedInputs
from brandkit.utils.text import clean_text

CONFIG = TemplateConfig(
    id=TemplateId.golden_circle,
    name="Golden Circle",
    description="Define your Why, How, and What using Simon Sinek's framework",
    short_description="Articulate why you exist and how you deliver",
    category=TemplateCategory.strategy,
    required_extractors=(ExtractorId.basics, ExtractorId.customer),
    required_fields={
        ExtractorId.basics: ("business_description", "business_model"),
        ExtractorId.customer: ("primary_problem", "buying_motivation"),
    },
)

MAX_OFFERINGS_IN_PROMPT = 5


class GoldenCircleSection(BaseModel):
    headline: str = Field(..., description="One sentence capturing the core idea")
    explanation: str = Field(..., description="2-3 sentences expanding on the headline")


class GoldenCircleContent(BaseModel):
    """Parsed Golden Circle document."""

    why: GoldenCircleSection = Field(
        ..., description="The brand's purpose, cause, or belief (Why they exist)"
    )
    how: GoldenCircleSection = Field(
        ..., description="The brand's differentiating approach (How they deliver value)"
    )
    what: GoldenCircleSection = Field(
        ..., description="The brand's products or services (What they offer)"
    )
    summary: str = Field(
        ...,
        description="One paragraph (3-4 sentences) tying why, how, and what together "
        "into a cohesive brand story",
    )


def _context_sections(inputs: AggregatedInputs) -> list[str]:
    sections: list[str] = []

    if inputs.basics:
        b = inputs.basics
        lines = [
            "BUSINESS OVERVIEW:",
            f"- Name: {b.business_name}",
            f"- Industry: {b.industry}",
            f"- Description: {b.business_description}",
            f"- Business Model: {b.business_model}",
        ]
        if b.founded_year:
            lines.append(f"- Founded: {b.founded_year}")
        if b.founder_name:
            lines.append(f"- Founder: {b.founder_name}")
        sections.append("\n".join(lines))

    if inputs.customer:
        c = inputs.customer
        lines = [
            "CUSTOMER INSIGHTS:",
            f"- Primary Problem: {c.primary_problem}",
            f"- Buying Motivation: {c.buying_motivation}",
            f"- Customer Sophistication: {c.customer_sophistication}",
            f"- Subcultures: {', '.join(c.subcultures)}",
        ]
        if c.secondary_problems:
            lines.append(f"- Secondary Problems: {'; '.join(c.secondary_problems)}")
        sections.append("\n".join(lines))

    if inputs.products:
        p = inputs.products
        offerings = "\n".join(
            f"  - {o.name}: {o.description}" for o in p.offerings[:MAX_OFFERINGS_IN_PROMPT]
        )
        sections.append(
            "OFFERINGS:\n"
            f"- Type: {p.offering_type}\n"
            f"- Primary Offer: {p.primary_offer}\n"
            f"- Price Positioning: {p.price_positioning}\n"
            f"- Key Offerings:\n{offerings}"
        )

    return sections


def build_prompt(inputs: AggregatedInputs) -> str:
    """Build the free-text Golden Circle analysis prompt from aggregated intelligence."""
    brand_context = "\n\n".join(_context_sections(inputs))

    return f"""You are a senior brand strategist applying Simon Sinek's Golden Circle framework.

Review the following brand intelligence about "{inputs.subject_name}" and write a compelling Golden Circle analysis.

FRAMEWORK REMINDER:
- WHY: The purpose, cause, or belief. Why does this company exist beyond making money? What do they fundamentally believe about the world or their industry?
- HOW: The differentiating value proposition. How do they bring their why to life? What's their approach, process, or secret sauce?
- WHAT: The products or services. What tangible things do they offer? This is the easiest to identify.

{brand_context}

---

INSTRUCTIONS:

Write a thoughtful Golden Circle analysis for this brand. For each section:

1. **WHY**: Look at the customer's primary problem and buying motivation to infer the deeper purpose. What change does this brand believe in? What would the world look like if they succeeded at scale?

2. **HOW**: Look at their business model and approach. What makes their method distinctive? How do they deliver on their purpose differently than alternatives?

3. **WHAT**: Summarize their offerings clearly. What can customers actually buy or engage with?

Then write a brief summary paragraph that ties all three together into a cohesive brand story.

Write conversationally, as if explaining this brand to a colleague. Be insightful and specific; avoid generic statements that could apply to any company. Draw directly from the data provided.

Don't use bullet points or headers in your response. Write naturally, clearly separating the Why, How, What, and Summary sections."""


def _section(raw: object, default_headline: str) -> dict[str, str]:
    section = raw if isinstance(raw, dict) else {}
    return {
        "headline": clean_text(section.get("headline")) or default_headline,
        "explanation": clean_text(section.get("explanation")),
    }


def normalize(raw: dict[str, Any]) -> dict[str, Any]:
    return {
        "why": _section(raw.get("why"), "Purpose to be defined"),
        "how": _section(raw.get("how"), "Approach to be defined"),
        "what": _section(raw.get("what"), "Offerings to be defined"),
        "summary": clean_text(raw.get("summary")),
    }


PARSER = ParserDefinition(
    system_prompt="""You are a precise content extraction assistant.
Read the Golden Circle analysis below and extract each section into the function call.
For each section (why, how, what), create:
- headline: A single, punchy sentence capturing the core idea
- explanation: 2-3 sentences expanding on the headline with supporting detail

The summary should be one cohesive paragraph (3-4 sentences) that ties why, how, and what together.

Preserve the writer's voice and specific insights. Don't genericize the content.""",
    function_name="extract_golden_circle",
    function_description=(
        "Extract the Why, How, What, and Summary sections from a Golden Circle analysis"
    ),
    output_model=GoldenCircleContent,
    normalize=normalize,
)


def format_long_date(day: date) -> str:
    return f"{day:%B} {day.day}, {day.year}"


def render_markdown(
    content: BaseModel, subject_name: str, generated_on: date | None = None
) -> str:
    """Render parsed content as a markdown document."""
    gc = GoldenCircleContent.model_validate(content.model_dump())
    generated_on = generated_on or date.today()

    lines = [f"# Golden Circle: {subject_name}", ""]
    for heading, section in (("Why", gc.why), ("How", gc.how), ("What", gc.what)):
        lines += [f"## {heading}", f"**{section.headline}**", "", section.explanation, ""]
    lines += [
        "---",
        "",
        f"*{gc.summary}*",
        "",
        "---",
        "",
        f"*Generated with brandkit on {format_long_date(generated_on)}*",
    ]
    return "\n".join(lines)


def generate_title(inputs: AggregatedInputs) -> str:
    return f"Golden Circle: {inputs.subject_name}"


TEMPLATE = TemplateDefinition(
    config=CONFIG,
    build_prompt=build_prompt,
    parser=PARSER,
    render_markdown=render_markdown,
    generate_title=generate_title,
)
