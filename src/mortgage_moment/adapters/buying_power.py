# src/mortgage_moment/adapters/buying_power.py
from __future__ import annotations

from typing import Any

import requests
from pydantic import ValidationError

from mortgage_moment.adapters.config import config
from mortgage_moment.adapters.logging_utils import get_logger
from mortgage_moment.domain.affordability import INCOME_CAP_FRACTION
from mortgage_moment.domain.listing import ScoringResult
from mortgage_moment.domain.profile import to_number

logger = get_logger(__name__)

# Fixed request parameters the scoring service expects
AMORTISATION_PCT = 2.0
FIXED_PERIOD_YEARS = 10


class InterhypBuyingPowerClient:
    """
    Wrapper around Interhyp's max-buying-power calculator.

    Single attempt, explicit timeout. Every failure (network, non-2xx,
    unexpected JSON) is logged and returned as None so callers can fall
    back to the local formula engine.
    """

    def __init__(
        self,
        url: str | None = None,
        federal_state: str | None = None,
        timeout_s: float | None = None,
        session: requests.Session | None = None,
    ):
        self.url = url or config.INTERHYP_URL
        self.federal_state = federal_state or config.FEDERAL_STATE
        self.timeout_s = timeout_s or config.BUYING_POWER_TIMEOUT_S
        self.s = session or requests.Session()

    def build_payload(self, income: float, equity: float, debts: float) -> dict[str, Any]:
        monthly_rate = max(0.0, (income - debts) * INCOME_CAP_FRACTION)
        return {
            "monthlyRate": monthly_rate,
            "equityCash": equity,
            "federalState": self.federal_state,
            "amortisation": AMORTISATION_PCT,
            "fixedPeriod": FIXED_PERIOD_YEARS,
            "salary": income,
            "additionalLoan": 0,
            "calculationMode": "AMORTIZATION",
        }

    def fetch_max_buying_power(self, income: Any, equity: Any, debts: Any) -> ScoringResult | None:
        monthly_income = max(0.0, to_number(income))
        monthly_debts = max(0.0, to_number(debts))
        equity_cash = max(0.0, to_number(equity))

        payload = self.build_payload(monthly_income, equity_cash, monthly_debts)
        if payload["monthlyRate"] <= 0:
            logger.info(
                "buying_power_skipped_no_rate",
                extra={"context": {"income": monthly_income, "debts": monthly_debts}},
            )
            return None

        try:
            resp = self.s.post(
                self.url,
                json=payload,
                headers={"Content-Type": "application/json", "Accept": "application/json"},
                timeout=self.timeout_s,
            )
        except requests.RequestException as e:
            logger.error("buying_power_request_failed", extra={"context": {"error": repr(e)}})
            return None

        if resp.status_code >= 400:
            logger.error(
                "buying_power_http_error",
                extra={"context": {"status": resp.status_code, "body": resp.text[:500]}},
            )
            return None

        try:
            data = resp.json()
        except ValueError:
            logger.error("buying_power_invalid_json", extra={"context": {"body": resp.text[:500]}})
            return None

        return parse_scoring_payload(data)


def parse_scoring_payload(data: Any) -> ScoringResult | None:
    """
    The service answers {"scoringResult": {...}, "additionalCosts": {...}}.
    Some deployments return the scoring fields at the top level; accept both.
    """
    if not isinstance(data, dict):
        logger.error("buying_power_unexpected_shape", extra={"context": {"snippet": str(data)[:400]}})
        return None

    scoring = data.get("scoringResult")
    if not isinstance(scoring, dict):
        scoring = data

    merged = dict(scoring)
    if isinstance(data.get("additionalCosts"), dict):
        merged["additionalCosts"] = data["additionalCosts"]

    try:
        result = ScoringResult.model_validate(merged)
    except ValidationError as e:
        logger.error("buying_power_malformed_payload", extra={"context": {"error": str(e)[:500]}})
        return None

    if result.price_building <= 0:
        logger.warning("buying_power_zero_price", extra={"context": {"price": result.price_building}})
        return None
    return result
