import math
from dataclasses import dataclass
from typing import Any

from mortgage_moment.domain.profile import BuyerProfile, to_number

# Used whenever interest + repayment are not both known
BLENDED_ANNUAL_RATE = 0.055

# Notary, transfer tax and broker on top of the purchase price
PURCHASING_COST_FACTOR = 0.10

INCOME_CAP_FRACTION = 0.35


@dataclass(frozen=True)
class AffordabilityPolicy:
    income_cap_fraction: float = INCOME_CAP_FRACTION   # share of free income for the mortgage rate
    purchasing_cost_factor: float = PURCHASING_COST_FACTOR
    use_blended_rate: bool = False                      # always use BLENDED_ANNUAL_RATE
    include_purchasing_costs: bool = False              # divide price by (1 + purchasing costs)

    @classmethod
    def from_config(cls, cfg: Any) -> "AffordabilityPolicy":
        return cls(
            income_cap_fraction=float(cfg.INCOME_CAP_FRACTION),
            purchasing_cost_factor=float(cfg.PURCHASING_COST_FACTOR),
            use_blended_rate=bool(cfg.USE_BLENDED_RATE),
            include_purchasing_costs=bool(cfg.INCLUDE_PURCHASING_COSTS),
        )


DEFAULT_POLICY = AffordabilityPolicy()


@dataclass(frozen=True)
class MortgageEstimate:
    max_monthly_payment: float
    max_loan: float
    max_affordable_price: float
    annual_rate: float              # interest + repayment, as a fraction


@dataclass(frozen=True)
class AffordabilityResult:
    max_affordable_price: float
    max_monthly_payment: float
    is_affordable: bool
    gap: float

    def verdict(self) -> dict[str, Any]:
        return {
            "isAffordable": self.is_affordable,
            "maxAffordablePrice": self.max_affordable_price,
            "gap": self.gap,
        }


def resolve_annual_rate(
    annual_interest_pct: Any,
    annual_repayment_pct: Any,
    policy: AffordabilityPolicy = DEFAULT_POLICY,
) -> float:
    if policy.use_blended_rate:
        return BLENDED_ANNUAL_RATE
    interest = to_number(annual_interest_pct)
    repayment = to_number(annual_repayment_pct)
    if interest <= 0 or repayment <= 0:
        return BLENDED_ANNUAL_RATE
    return (interest + repayment) / 100.0


def compute_affordability(
    profile: BuyerProfile,
    annual_interest_pct: Any = None,
    annual_repayment_pct: Any = None,
    policy: AffordabilityPolicy = DEFAULT_POLICY,
) -> MortgageEstimate:
    """
    Maximum purchase price the buyer can finance.

    Explicit rate arguments win over the rates stored on the profile. With
    the default policy the price is loan + equity; the purchasing-cost
    variant divides that by (1 + purchasing_cost_factor).
    """
    income = max(0.0, to_number(profile.monthly_income))
    debts = max(0.0, to_number(profile.monthly_debts))
    equity = max(0.0, to_number(profile.equity))

    interest = annual_interest_pct if annual_interest_pct is not None else profile.interest_rate_pct
    repayment = annual_repayment_pct if annual_repayment_pct is not None else profile.repayment_rate_pct
    annual_rate = resolve_annual_rate(interest, repayment, policy)

    max_monthly_payment = max(0.0, income - debts) * policy.income_cap_fraction
    max_loan = (max_monthly_payment * 12) / annual_rate

    if policy.include_purchasing_costs:
        max_price = (max_loan + equity) / (1 + policy.purchasing_cost_factor)
    else:
        max_price = max_loan + equity

    return MortgageEstimate(
        max_monthly_payment=max_monthly_payment,
        max_loan=max_loan,
        max_affordable_price=max(0.0, max_price),
        annual_rate=annual_rate,
    )


def assess(
    target_price: Any,
    max_affordable_price: float,
    max_monthly_payment: float = 0.0,
) -> AffordabilityResult:
    price = max(0.0, to_number(target_price))
    ceiling = max(0.0, to_number(max_affordable_price))
    gap = max(0.0, price - ceiling)
    return AffordabilityResult(
        max_affordable_price=ceiling,
        max_monthly_payment=max_monthly_payment,
        is_affordable=gap == 0,
        gap=gap,
    )


def required_income(
    target_price: float,
    equity: float,
    monthly_debts: float,
    policy: AffordabilityPolicy = DEFAULT_POLICY,
) -> int:
    """Net monthly income needed to finance `target_price` (inverse of the engine)."""
    target_loan = max(0.0, target_price * (1 + policy.purchasing_cost_factor) - equity)
    target_monthly_payment = target_loan * BLENDED_ANNUAL_RATE / 12
    cap = policy.income_cap_fraction if policy.income_cap_fraction > 0 else INCOME_CAP_FRACTION
    return math.ceil(target_monthly_payment / cap + monthly_debts)
