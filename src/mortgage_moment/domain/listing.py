from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake-case in Python, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Address(CamelModel):
    lat: float = 0.0
    lon: float = 0.0
    street: str = ""
    postcode: str = ""
    city: str = ""


class Listing(CamelModel):
    id: str
    title: str = ""
    address: Address = Field(default_factory=Address)

    buying_price: float = 0.0
    price_per_sqm: float = 0.0
    rooms: float = 0.0
    square_meter: float = 0.0
    images: list[str] = Field(default_factory=list)
    floor: float = 0.0

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class AffordabilityVerdict(CamelModel):
    is_affordable: bool
    max_affordable_price: float
    gap: float


class ListingWithAffordability(Listing):
    # None when the caller sent no income/equity signal
    affordability: AffordabilityVerdict | None = None


# --------------------------------------------
# Buying-power scoring (Interhyp)
# --------------------------------------------

class CostBreakdown(CamelModel):
    model_config = ConfigDict(extra="allow")

    notary: float = 0.0
    tax: float = 0.0
    broker: float = 0.0


class AdditionalCosts(CamelModel):
    additional_costs_percentage: CostBreakdown = Field(default_factory=CostBreakdown)
    additional_costs_value: CostBreakdown = Field(default_factory=CostBreakdown)


class ScoringResult(CamelModel):
    """
    Authoritative buying-power estimate from the scoring service.
    `price_building` is the maximum purchase price.
    """
    model_config = ConfigDict(extra="allow")

    price_building: float
    loan_amount: float = 0.0
    equity_cash: float = 0.0
    monthly_payment: float = 0.0
    effective_interest: float = 0.0

    additional_costs: AdditionalCosts | None = None
