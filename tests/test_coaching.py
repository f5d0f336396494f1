# tests/test_coaching.py
import pytest

from mortgage_moment.adapters.local_listings import LocalListingStore
from mortgage_moment.domain.listing import Listing
from mortgage_moment.domain.ports import ListingQuery
from mortgage_moment.domain.profile import BuyerProfile
from mortgage_moment.services.buying_power import BuyingPowerService
from mortgage_moment.services.coaching import (
    ALTERNATIVE_LOCATIONS,
    DEFAULT_CHEAPEST_PRICE,
    SAVINGS_MONTHLY_CAP,
    build_plan,
    future_value,
    savings_plan,
)
from mortgage_moment.services.property_chain import PropertySourceChain
from mortgage_moment.services.property_search import PropertySearchService

from fakes import COMPACT_RECORDS


def _search(records=COMPACT_RECORDS):
    chain = PropertySourceChain(client=None, store=LocalListingStore(records))
    return PropertySearchService(chain, BuyingPowerService())


def test_default_savings_plan_reaches_target_under_cap():
    plan = savings_plan()
    r = 0.07 / 12

    assert plan.years == 18
    assert plan.reaches_target is True
    assert 340 < plan.monthly_savings_required < 360
    assert plan.monthly_savings_required < SAVINGS_MONTHLY_CAP
    assert future_value(plan.monthly_savings_required, r, 18 * 12) == pytest.approx(150_000, rel=1e-3)


def test_savings_plan_caps_contribution_and_reports_shortfall():
    plan = savings_plan(target=1_000_000)

    assert plan.monthly_savings_required == SAVINGS_MONTHLY_CAP
    assert plan.reaches_target is False
    assert plan.projected_value == round(future_value(SAVINGS_MONTHLY_CAP, 0.07 / 12, 18 * 12), 2)
    assert plan.projected_value < 1_000_000


def test_future_value_without_return_is_plain_sum():
    assert future_value(100, 0.0, 12) == 1200


def test_build_plan_uses_cheapest_positive_price():
    listings = [
        Listing(id="z", buying_price=0),
        Listing(id="a", buying_price=510_000),
        Listing(id="b", buying_price=450_000),
    ]
    profile = BuyerProfile(monthly_income=2000, equity=10_000)
    plan = build_plan(listings, profile, ceiling_price=150_000)

    assert plan.cheapest_price == 450_000
    assert plan.gap == 300_000
    assert plan.income_gap_plan.required_income > profile.monthly_income
    assert plan.income_gap_plan.income_gap == plan.income_gap_plan.required_income - 2000
    assert [loc.name for loc in plan.alternative_locations] == ["Landshut", "Ingolstadt", "Augsburg", "Rosenheim"]


def test_build_plan_without_listings_uses_default_price():
    plan = build_plan([], BuyerProfile(monthly_income=1000), ceiling_price=0)
    assert plan.cheapest_price == DEFAULT_CHEAPEST_PRICE


def test_plan_wire_format():
    wire = build_plan([], BuyerProfile(monthly_income=1000), ceiling_price=0).to_wire()

    assert set(wire) == {"cheapestPrice", "gap", "incomeGapPlan", "savingsPlan", "alternativeLocations"}
    assert set(wire["incomeGapPlan"]) == {"requiredIncome", "incomeGap"}
    assert wire["alternativeLocations"][0]["avgPrice"] == ALTERNATIVE_LOCATIONS[0].avg_price


def test_coaching_fires_when_nothing_is_affordable():
    # 1000 * 0.35 * 12 / 0.055 ~= 76k ceiling, cheapest flat is 320k
    result = _search().search(ListingQuery(), BuyerProfile(monthly_income=1000))
    options = result.affordability_options

    assert options is not None
    assert options["cheapestPrice"] == 320_000
    assert options["incomeGapPlan"]["requiredIncome"] > 1000
    assert options["budgetDetails"]["source"] == "formula"
    assert len(options["alternativeLocations"]) == 4


def test_coaching_is_skipped_when_something_is_affordable():
    result = _search().search(ListingQuery(), BuyerProfile(monthly_income=4000, equity=50_000))
    options = result.affordability_options

    assert set(options) == {"budgetDetails"}
    assert options["budgetDetails"]["maxAffordablePrice"] == pytest.approx(355_454.545, abs=0.01)


def test_no_signal_means_no_options():
    result = _search().search(ListingQuery(), BuyerProfile())

    assert result.affordability_options is None
    assert all(getattr(item, "affordability", None) is None for item in result.data)


def test_empty_result_with_signal_coaches_from_default_price():
    result = _search(records=[]).search(ListingQuery(), BuyerProfile(monthly_income=1000))
    assert result.affordability_options["cheapestPrice"] == DEFAULT_CHEAPEST_PRICE
