# src/mortgage_moment/domain/profile.py
from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Any, Mapping


def to_number(val: Any, default: float = 0.0) -> float:
    """
    Lenient numeric coercion for user-entered and upstream values.

    Accepts 4000, "4000", " 4,000 ", "3.5%", "€ 450000".
    Returns `default` when missing/blank/garbage/NaN.
    """
    if val is None or isinstance(val, bool):
        return default
    if isinstance(val, (int, float)):
        try:
            f = float(val)
        except OverflowError:
            return default
    elif isinstance(val, str):
        s = val.strip().replace("€", "").replace(",", "").replace(" ", "")
        if s.endswith("%"):
            s = s[:-1]
        if not s:
            return default
        try:
            f = float(s)
        except ValueError:
            return default
    else:
        return default
    if math.isnan(f) or math.isinf(f):
        return default
    return f


def _non_negative(val: Any) -> float:
    return max(0.0, to_number(val))


def _positive_or_none(val: Any) -> float | None:
    f = to_number(val)
    return f if f > 0 else None


# Wire names (form fields, voice tool arguments) -> attribute names
PROFILE_FIELD_ALIASES: dict[str, str] = {
    "income": "monthly_income",
    "monthlyIncome": "monthly_income",
    "monthly_income": "monthly_income",
    "debts": "monthly_debts",
    "monthlyDebts": "monthly_debts",
    "monthly_debts": "monthly_debts",
    "equity": "equity",
    "interestRate": "interest_rate_pct",
    "interestRatePct": "interest_rate_pct",
    "interest_rate_pct": "interest_rate_pct",
    "repaymentRate": "repayment_rate_pct",
    "repaymentRatePct": "repayment_rate_pct",
    "repayment_rate_pct": "repayment_rate_pct",
    "name": "name",
    "userName": "name",
    "email": "email",
    "userEmail": "email",
}

_TEXT_FIELDS = {"name", "email"}
_RATE_FIELDS = {"interest_rate_pct", "repayment_rate_pct"}


@dataclass(frozen=True)
class BuyerProfile:
    monthly_income: float = 0.0
    monthly_debts: float = 0.0
    equity: float = 0.0
    interest_rate_pct: float | None = None    # annual, e.g. 3.5
    repayment_rate_pct: float | None = None   # annual amortisation, e.g. 2.0
    name: str = ""
    email: str = ""

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any] | None) -> BuyerProfile:
        """
        Build a profile from form/query data. Unknown keys are ignored and
        every numeric field is coerced, so this never raises on bad input.
        """
        values: dict[str, Any] = {}
        for key, val in (raw or {}).items():
            attr = PROFILE_FIELD_ALIASES.get(key)
            if attr is None or val is None:
                continue
            values[attr] = _coerce_field(attr, val)
        return cls(**values)

    @property
    def has_signal(self) -> bool:
        """True when the buyer told us anything about income or equity."""
        return self.monthly_income > 0 or self.equity > 0

    def with_field(self, field: str, value: Any) -> BuyerProfile:
        attr = PROFILE_FIELD_ALIASES.get(field)
        if attr is None:
            raise ValueError(f"Unknown profile field: {field}")
        return replace(self, **{attr: _coerce_field(attr, value)})

    def to_public(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "email": self.email,
            "monthlyIncome": self.monthly_income,
            "monthlyDebts": self.monthly_debts,
            "equity": self.equity,
            "interestRatePct": self.interest_rate_pct,
            "repaymentRatePct": self.repayment_rate_pct,
        }


def _coerce_field(attr: str, val: Any) -> Any:
    if attr in _TEXT_FIELDS:
        return str(val).strip()
    if attr in _RATE_FIELDS:
        return _positive_or_none(val)
    return _non_negative(val)
