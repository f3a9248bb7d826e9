"""Customer extractor - audience, problems and buying motivation."""

from typing import Any

from brandkit.extractors.base import ExtractorConfig, ExtractorDefinition, ParserDefinition
from brandkit.models.common import ExtractorId
from brandkit.models.extractors import ParsedCustomer, PriorOutputs
from brandkit.utils.text import clean_list, clean_text

CONFIG = ExtractorConfig(
    id=ExtractorId.customer,
    name="Customer Profile",
    description="Who they serve, their problems, and buying motivations",
)


def build_prompt(content: str, prior: PriorOutputs) -> str:
    return f"""You are a customer research specialist analyzing a business's website to understand their target audience.

Based on the website content below, write natural observations about:

1. **Who they're talking to**: What type of person or business are they trying to reach?
   What subcultures, communities, or identities might their customers belong to?
   (e.g., "startup founders", "busy moms", "fitness enthusiasts", "SaaS companies")

2. **The core problem**: What's the main problem or pain point they're solving for customers?
   What frustrations or challenges is their customer facing?

3. **Secondary problems**: What other related problems might their customer be dealing with?

4. **Customer sophistication**: How knowledgeable does their ideal customer seem to be?
   Are they beginners who need hand-holding, informed buyers who know what they want,
   or experts who need advanced solutions?

5. **Why they buy**: What's driving the purchase decision?
   - Pain relief (solving an urgent problem)
   - Aspiration (achieving a goal or dream)
   - Necessity (required for work/life)
   - Curiosity (exploring something new)
   - Status (appearing successful or sophisticated)

Write conversationally, like you're explaining your observations to a colleague.
Read between the lines: what the website says and how it says it reveals a lot
about who they're targeting.

---
WEBSITE CONTENT:
{content}"""


def normalize(raw: dict[str, Any]) -> dict[str, Any]:
    """Guarantee non-empty lists and a primary problem."""
    return {
        **raw,
        "subcultures": clean_list(raw.get("subcultures")) or ["General consumers"],
        "secondary_problems": clean_list(raw.get("secondary_problems"))
        or ["Other related challenges"],
        "primary_problem": clean_text(raw.get("primary_problem")) or "Not clearly defined",
    }


PARSER = ParserDefinition(
    system_prompt="""You are a precise data extraction assistant.
Read the customer analysis below and extract the requested fields.
Be specific and concrete with your extractions.
For arrays, include 2-5 relevant items.""",
    function_name="extract_customer_profile",
    function_description="Extract customer profile information from the analysis",
    output_model=ParsedCustomer,
    normalize=normalize,
)

EXTRACTOR = ExtractorDefinition(config=CONFIG, build_prompt=build_prompt, parser=PARSER)
