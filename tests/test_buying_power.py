# tests/test_buying_power.py
import pytest
import requests

from mortgage_moment.adapters.buying_power import InterhypBuyingPowerClient, parse_scoring_payload
from mortgage_moment.domain.listing import ScoringResult
from mortgage_moment.domain.profile import BuyerProfile
from mortgage_moment.services.buying_power import BuyingPowerService, affordability_message

from fakes import FakeGateway, FakeResponse, FakeSession


SCORING_PAYLOAD = {
    "scoringResult": {
        "priceBuilding": 420_000,
        "loanAmount": 380_000,
        "equityCash": 50_000,
        "monthlyPayment": 1_400,
        "effectiveInterest": 3.61,
    },
    "additionalCosts": {
        "additionalCostsPercentage": {"notary": 2.0, "tax": 3.5, "broker": 3.57},
        "additionalCostsValue": {"notary": 8_400, "tax": 14_700, "broker": 14_994},
    },
}


def _client(session):
    return InterhypBuyingPowerClient(
        url="https://scoring.example/calculateMaxBuyingPower",
        federal_state="DE-BY",
        timeout_s=5,
        session=session,
    )


def test_payload_uses_capped_free_income():
    payload = _client(FakeSession()).build_payload(4000, 50_000, 500)

    assert payload["monthlyRate"] == pytest.approx(3500 * 0.35)
    assert payload["equityCash"] == 50_000
    assert payload["salary"] == 4000
    assert payload["federalState"] == "DE-BY"
    assert payload["amortisation"] == 2.0
    assert payload["fixedPeriod"] == 10
    assert payload["calculationMode"] == "AMORTIZATION"


@pytest.mark.parametrize("income, debts", [(0, 0), (1000, 1000), (800, 2000), ("", None)])
def test_no_monthly_rate_means_no_request(income, debts):
    session = FakeSession()
    assert _client(session).fetch_max_buying_power(income, 10_000, debts) is None
    assert session.posts == []


def test_successful_scoring_is_parsed():
    session = FakeSession(FakeResponse(200, SCORING_PAYLOAD))
    result = _client(session).fetch_max_buying_power("4000", "50000", "0")

    assert isinstance(result, ScoringResult)
    assert result.price_building == 420_000
    assert result.loan_amount == 380_000
    assert result.additional_costs.additional_costs_value.tax == 14_700

    [post] = session.posts
    assert post["timeout"] == 5
    assert post["json"]["monthlyRate"] == pytest.approx(1400)


@pytest.mark.parametrize(
    "session",
    [
        FakeSession(error=requests.ConnectionError("down")),
        FakeSession(error=requests.Timeout("slow")),
        FakeSession(FakeResponse(503, text="unavailable")),
        FakeSession(FakeResponse(200, None, text="<html>")),
        FakeSession(FakeResponse(200, {"scoringResult": {"loanAmount": 1}})),
        FakeSession(FakeResponse(200, {"scoringResult": {"priceBuilding": 0}})),
    ],
)
def test_any_failure_returns_none(session):
    assert _client(session).fetch_max_buying_power(4000, 50_000, 0) is None


def test_flat_payload_is_accepted():
    result = parse_scoring_payload({"priceBuilding": 300_000, "monthlyPayment": 1200})
    assert result.price_building == 300_000
    assert result.additional_costs is None


def test_non_dict_payload_is_rejected():
    assert parse_scoring_payload(["not", "a", "dict"]) is None


def test_service_prefers_scoring_result():
    gateway = FakeGateway(result=parse_scoring_payload(SCORING_PAYLOAD))
    service = BuyingPowerService(gateway=gateway)

    result, ceiling = service.check(BuyerProfile(monthly_income=4000, equity=50_000), 450_000)

    assert ceiling.source == "scoring"
    assert ceiling.price == 420_000
    assert result.gap == 30_000
    assert result.is_affordable is False

    details = ceiling.budget_details()
    assert details["scoringResult"]["priceBuilding"] == 420_000
    assert "additionalCosts" not in details["scoringResult"]
    assert details["additionalCosts"]["additionalCostsPercentage"]["tax"] == 3.5


def test_service_falls_back_to_formula():
    service = BuyingPowerService(gateway=FakeGateway(result=None))
    result, ceiling = service.check(BuyerProfile(monthly_income=4000, equity=50_000), 450_000)

    assert ceiling.source == "formula"
    assert ceiling.price == pytest.approx(355_454.545, abs=0.01)
    assert result.gap == pytest.approx(94_545.45, abs=0.01)
    assert "scoringResult" not in ceiling.budget_details()


def test_service_survives_a_raising_gateway():
    service = BuyingPowerService(gateway=FakeGateway(error=RuntimeError("bug")))
    ceiling = service.resolve(BuyerProfile(monthly_income=4000, equity=50_000))
    assert ceiling.source == "formula"


def test_messages():
    service = BuyingPowerService()
    ok, _ = service.check(BuyerProfile(monthly_income=4000, equity=50_000), 300_000)
    over, _ = service.check(BuyerProfile(monthly_income=4000, equity=50_000), 450_000)

    assert affordability_message(ok).startswith("Great news!")
    assert "€94,545 above" in affordability_message(over)
