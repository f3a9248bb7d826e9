"""Products extractor - offerings, pricing and market positioning."""

from typing import Any

from brandkit.extractors.base import ExtractorConfig, ExtractorDefinition, ParserDefinition
from brandkit.models.common import ExtractorId
from brandkit.models.extractors import ParsedProducts, PriorOutputs
from brandkit.utils.text import clean_optional, clean_text

CONFIG = ExtractorConfig(
    id=ExtractorId.products,
    name="Products & Pricing",
    description="What they sell, pricing models, and market positioning",
)

PLACEHOLDER_OFFERING: dict[str, Any] = {
    "name": "Primary offering",
    "description": "Details not found on website",
    "price": None,
    "pricing_model": "Unknown",
}


def build_prompt(content: str, prior: PriorOutputs) -> str:
    return f"""You are a competitive analyst examining a business's product and pricing strategy based on their website.

Analyze the website content below and write observations about:

1. **What they offer**: Do they sell products, services, or both?
   List out the specific offerings you can identify (courses, consulting, software, physical products, etc.)

2. **Pricing**: What prices can you see on the website?
   What pricing model do they use? (one-time, subscription, retainer, project-based, etc.)
   If pricing isn't shown, note that.

3. **Primary offer**: What's their main thing they want you to buy?
   This is usually the most prominently featured product/service.

4. **Price positioning**: Based on the language, design, and any visible prices,
   where do they position themselves in the market?
   - Budget: Emphasizes affordability, discounts, value
   - Mid-market: Balanced value proposition
   - Premium: Higher prices, emphasizes quality and exclusivity
   - Luxury: Top-tier pricing, aspirational positioning

Write conversationally. Include specific product names and prices if you find them.
Note when information is unclear or not shown on the website.

---
WEBSITE CONTENT:
{content}"""


def _normalize_offering(offering: dict[str, Any]) -> dict[str, Any]:
    return {
        **offering,
        "name": clean_text(offering.get("name")) or "Unknown offering",
        "description": clean_text(offering.get("description")),
        "price": clean_optional(offering.get("price")),
    }


def normalize(raw: dict[str, Any]) -> dict[str, Any]:
    """Clean each offering; an empty list gets one placeholder offering."""
    offerings = [o for o in raw.get("offerings") or [] if isinstance(o, dict)]
    return {
        **raw,
        "offerings": [_normalize_offering(o) for o in offerings]
        if offerings
        else [dict(PLACEHOLDER_OFFERING)],
        "primary_offer": clean_text(raw.get("primary_offer")) or "Not clearly defined",
    }


PARSER = ParserDefinition(
    system_prompt="""You are a precise data extraction assistant.
Read the products analysis below and extract the requested fields.
Be specific about product names and prices when they're mentioned.
If prices aren't shown, use null for the price field.""",
    function_name="extract_products",
    function_description="Extract product and pricing information from the analysis",
    output_model=ParsedProducts,
    normalize=normalize,
)

EXTRACTOR = ExtractorDefinition(config=CONFIG, build_prompt=build_prompt, parser=PARSER)
