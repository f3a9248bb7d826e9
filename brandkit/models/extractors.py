"""Structured outputs of each extractor and the typed record passed between waves."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from brandkit.models.common import ExtractorId

BusinessModel = Literal[
    "B2B Services",
    "B2C Services",
    "B2B Products",
    "B2C Products",
    "B2B SaaS",
    "B2C SaaS",
    "Marketplace",
    "Agency",
    "Consultancy",
    "Other",
]
CustomerSophistication = Literal["Beginner", "Informed", "Expert"]
BuyingMotivation = Literal["Pain relief", "Aspiration", "Necessity", "Curiosity", "Status"]
OfferingType = Literal["Products", "Services", "Both", "Unclear"]
PricingModel = Literal[
    "One-time",
    "Subscription",
    "Retainer",
    "Project-based",
    "Custom/Contact",
    "Free",
    "Freemium",
    "Unknown",
]
PricePositioning = Literal["Budget", "Mid-market", "Premium", "Luxury", "Unclear"]


class ParsedBasics(BaseModel):
    """Core business identity."""

    business_name: str = Field(..., description="The name of the business")
    founder_name: str | None = Field(
        None, description="Name of founder if mentioned, null if not found"
    )
    founded_year: str | None = Field(
        None, description='Year founded, or approximate like "circa 2021", null if not found'
    )
    industry: str = Field(
        ...,
        description='The industry or space they operate in (e.g., "Marketing Technology", '
        '"Health & Wellness", "E-commerce")',
    )
    business_description: str = Field(
        ..., description="A 1-2 sentence description of what the business does"
    )
    business_model: BusinessModel = Field(..., description="The primary business model")


class ParsedCustomer(BaseModel):
    """Who the business serves and why they buy."""

    subcultures: list[str] = Field(
        ...,
        description="List of 2-5 subcultures, communities, or identities the target customers "
        'belong to (e.g., "startup founders", "remote workers")',
    )
    primary_problem: str = Field(
        ...,
        description="The main problem or pain point the business solves for customers "
        "(1-2 sentences)",
    )
    secondary_problems: list[str] = Field(
        ..., description="List of 2-4 related secondary problems customers face"
    )
    customer_sophistication: CustomerSophistication = Field(
        ...,
        description="How knowledgeable the target customer is about the problem/solution space",
    )
    buying_motivation: BuyingMotivation = Field(
        ..., description="The primary motivation driving purchase decisions"
    )


class ProductOffering(BaseModel):
    """One product or service."""

    name: str = Field(..., description="Name of the product or service")
    description: str = Field(..., description="Brief description of what it is")
    price: str | None = Field(
        None, description='Price if shown (e.g., "$99", "$49/mo"), null if not visible'
    )
    pricing_model: PricingModel = Field(..., description="How the product/service is priced")


class ParsedProducts(BaseModel):
    """What the business sells and how it is priced."""

    offering_type: OfferingType = Field(
        ..., description="Whether the business primarily sells products, services, or both"
    )
    offerings: list[ProductOffering] = Field(
        ..., description="List of specific products or services offered"
    )
    primary_offer: str = Field(
        ..., description="The main product or service they want customers to buy"
    )
    price_positioning: PricePositioning = Field(
        ..., description="Where they position themselves in the market price-wise"
    )


ExtractorOutput = ParsedBasics | ParsedCustomer | ParsedProducts


class PriorOutputs(BaseModel):
    """Outputs of extractors that completed in earlier waves.

    Absent entries mean the extractor has not run, failed, or is not a
    prerequisite of the consumer.
    """

    model_config = ConfigDict(frozen=True)

    basics: ParsedBasics | None = None
    customer: ParsedCustomer | None = None
    products: ParsedProducts | None = None

    def get(self, extractor_id: ExtractorId) -> ExtractorOutput | None:
        """Return the output recorded for an extractor, if any."""
        value: ExtractorOutput | None = getattr(self, extractor_id.value)
        return value

    def with_output(self, extractor_id: ExtractorId, output: ExtractorOutput) -> "PriorOutputs":
        """Return a copy that also carries ``output``."""
        return self.model_copy(update={extractor_id.value: output})

    def completed(self) -> list[ExtractorId]:
        """Extractor ids that have an output, in enum order."""
        return [eid for eid in ExtractorId if self.get(eid) is not None]


class AggregatedInputs(PriorOutputs):
    """Everything a template prompt may draw on."""

    subject_name: str
    source_url: str | None = None
