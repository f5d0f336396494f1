# src/mortgage_moment/services/coaching.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

from mortgage_moment.domain.affordability import DEFAULT_POLICY, AffordabilityPolicy, required_income
from mortgage_moment.domain.listing import Listing
from mortgage_moment.domain.profile import BuyerProfile

# Used when the current result set is empty
DEFAULT_CHEAPEST_PRICE = 400_000.0

# Long-horizon ETF plan ("help your children buy here")
SAVINGS_TARGET_DOWN_PAYMENT = 150_000.0
SAVINGS_YEARS = 18
SAVINGS_ANNUAL_RETURN = 0.07
SAVINGS_MONTHLY_CAP = 500.0


@dataclass(frozen=True)
class AlternativeLocation:
    name: str
    lat: float
    lon: float
    avg_price: float
    description: str

    def to_wire(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "lat": self.lat,
            "lon": self.lon,
            "avgPrice": self.avg_price,
            "description": self.description,
        }


# Commuter towns around Munich; static, not derived from live listings
ALTERNATIVE_LOCATIONS: tuple[AlternativeLocation, ...] = (
    AlternativeLocation(
        name="Landshut",
        lat=48.5372,
        lon=12.1522,
        avg_price=320_000.0,
        description="Historic old town, regional train to Munich in about 45 minutes.",
    ),
    AlternativeLocation(
        name="Ingolstadt",
        lat=48.7665,
        lon=11.4258,
        avg_price=340_000.0,
        description="Strong local job market and fast ICE connection to Munich.",
    ),
    AlternativeLocation(
        name="Augsburg",
        lat=48.3705,
        lon=10.8978,
        avg_price=360_000.0,
        description="University city with lower prices and a 30 minute train ride to Munich.",
    ),
    AlternativeLocation(
        name="Rosenheim",
        lat=47.8571,
        lon=12.1181,
        avg_price=390_000.0,
        description="Close to the Alps, good rail links and a growing family market.",
    ),
)


@dataclass(frozen=True)
class IncomeGapPlan:
    required_income: int
    income_gap: float


@dataclass(frozen=True)
class SavingsPlan:
    years: int
    monthly_savings_required: float
    projected_value: float
    target_down_payment: float
    reaches_target: bool


@dataclass(frozen=True)
class CoachingPlan:
    cheapest_price: float
    gap: float
    income_gap_plan: IncomeGapPlan
    savings_plan: SavingsPlan
    alternative_locations: list[AlternativeLocation] = field(default_factory=list)

    def to_wire(self) -> dict[str, Any]:
        return {
            "cheapestPrice": self.cheapest_price,
            "gap": self.gap,
            "incomeGapPlan": {
                "requiredIncome": self.income_gap_plan.required_income,
                "incomeGap": self.income_gap_plan.income_gap,
            },
            "savingsPlan": {
                "years": self.savings_plan.years,
                "monthlySavingsRequired": self.savings_plan.monthly_savings_required,
                "projectedValue": self.savings_plan.projected_value,
                "targetDownPayment": self.savings_plan.target_down_payment,
                "reachesTarget": self.savings_plan.reaches_target,
            },
            "alternativeLocations": [loc.to_wire() for loc in self.alternative_locations],
        }


def future_value(monthly_payment: float, monthly_rate: float, months: int) -> float:
    if monthly_rate == 0:
        return monthly_payment * months
    return monthly_payment * ((1 + monthly_rate) ** months - 1) / monthly_rate


def savings_plan(
    target: float = SAVINGS_TARGET_DOWN_PAYMENT,
    years: int = SAVINGS_YEARS,
    annual_return: float = SAVINGS_ANNUAL_RETURN,
    monthly_cap: float = SAVINGS_MONTHLY_CAP,
) -> SavingsPlan:
    """
    Monthly contribution that grows to `target` (annuity FV inverted).
    Above `monthly_cap` the contribution is capped and we report what the
    capped amount actually reaches instead.
    """
    months = years * 12
    r = annual_return / 12
    if r == 0:
        required = target / months
    else:
        required = target * r / ((1 + r) ** months - 1)

    if required > monthly_cap:
        return SavingsPlan(
            years=years,
            monthly_savings_required=monthly_cap,
            projected_value=round(future_value(monthly_cap, r, months), 2),
            target_down_payment=target,
            reaches_target=False,
        )

    return SavingsPlan(
        years=years,
        monthly_savings_required=round(required, 2),
        projected_value=target,
        target_down_payment=target,
        reaches_target=True,
    )


def build_plan(
    listings: Sequence[Listing],
    profile: BuyerProfile,
    ceiling_price: float,
    policy: AffordabilityPolicy = DEFAULT_POLICY,
) -> CoachingPlan:
    """Guidance for a buyer who cannot afford anything in the current result set."""
    prices = [item.buying_price for item in listings if item.buying_price > 0]
    cheapest = min(prices) if prices else DEFAULT_CHEAPEST_PRICE

    needed = required_income(cheapest, profile.equity, profile.monthly_debts, policy)

    return CoachingPlan(
        cheapest_price=cheapest,
        gap=max(0.0, cheapest - ceiling_price),
        income_gap_plan=IncomeGapPlan(
            required_income=needed,
            income_gap=max(0.0, needed - profile.monthly_income),
        ),
        savings_plan=savings_plan(),
        alternative_locations=list(ALTERNATIVE_LOCATIONS),
    )
