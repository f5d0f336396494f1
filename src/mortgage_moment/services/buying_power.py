# src/mortgage_moment/services/buying_power.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from mortgage_moment.adapters.logging_utils import get_logger
from mortgage_moment.domain.affordability import (
    DEFAULT_POLICY,
    AffordabilityPolicy,
    AffordabilityResult,
    assess,
    compute_affordability,
)
from mortgage_moment.domain.listing import ScoringResult
from mortgage_moment.domain.ports import BuyingPowerGateway
from mortgage_moment.domain.profile import BuyerProfile

logger = get_logger(__name__)

CeilingSource = Literal["scoring", "formula"]


@dataclass(frozen=True)
class PriceCeiling:
    price: float
    max_monthly_payment: float
    max_loan: float
    source: CeilingSource
    scoring: ScoringResult | None = None

    def budget_details(self) -> dict[str, Any]:
        details: dict[str, Any] = {
            "source": self.source,
            "maxAffordablePrice": self.price,
            "maxMonthlyPayment": self.max_monthly_payment,
            "maxLoan": self.max_loan,
        }
        if self.scoring is not None:
            details["scoringResult"] = self.scoring.model_dump(by_alias=True, exclude={"additional_costs"})
            if self.scoring.additional_costs is not None:
                details["additionalCosts"] = self.scoring.additional_costs.model_dump(by_alias=True)
        return details


class BuyingPowerService:
    """
    Price ceiling for a buyer: the scoring service when it answers,
    the local formula engine otherwise.
    """

    def __init__(
        self,
        gateway: BuyingPowerGateway | None = None,
        policy: AffordabilityPolicy = DEFAULT_POLICY,
    ) -> None:
        self.gateway = gateway
        self.policy = policy

    def _score(self, profile: BuyerProfile) -> ScoringResult | None:
        if self.gateway is None:
            return None
        try:
            return self.gateway.fetch_max_buying_power(
                profile.monthly_income, profile.equity, profile.monthly_debts
            )
        except Exception as e:
            # the gateway contract is "None on failure"; enforce it for any implementation
            logger.error("buying_power_gateway_raised", extra={"context": {"error": repr(e)}})
            return None

    def resolve(self, profile: BuyerProfile) -> PriceCeiling:
        estimate = compute_affordability(profile, policy=self.policy)
        scoring = self._score(profile)

        if scoring is not None:
            return PriceCeiling(
                price=scoring.price_building,
                max_monthly_payment=scoring.monthly_payment or estimate.max_monthly_payment,
                max_loan=scoring.loan_amount or estimate.max_loan,
                source="scoring",
                scoring=scoring,
            )

        return PriceCeiling(
            price=estimate.max_affordable_price,
            max_monthly_payment=estimate.max_monthly_payment,
            max_loan=estimate.max_loan,
            source="formula",
        )

    def check(self, profile: BuyerProfile, property_price: Any) -> tuple[AffordabilityResult, PriceCeiling]:
        ceiling = self.resolve(profile)
        result = assess(property_price, ceiling.price, ceiling.max_monthly_payment)
        return result, ceiling


def affordability_message(result: AffordabilityResult) -> str:
    if result.is_affordable:
        return (
            f"Great news! This property is within your budget of "
            f"€{result.max_affordable_price:,.0f}."
        )
    return (
        f"This property is €{result.gap:,.0f} above your estimated budget of "
        f"€{result.max_affordable_price:,.0f}."
    )
