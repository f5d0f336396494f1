# tests/conftest.py
import pytest
from fastapi.testclient import TestClient

from mortgage_moment.adapters.local_listings import LocalListingStore
from mortgage_moment.api.http import AppServices, create_app
from mortgage_moment.services.buying_power import BuyingPowerService
from mortgage_moment.services.property_chain import PropertySourceChain
from mortgage_moment.services.property_search import PropertySearchService

from fakes import COMPACT_RECORDS, FakeGateway, FakeListingClient, FakeMinter, FakeSender


@pytest.fixture
def store():
    return LocalListingStore(COMPACT_RECORDS)


@pytest.fixture
def listing_client():
    return FakeListingClient()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def sender():
    return FakeSender()


@pytest.fixture
def minter():
    return FakeMinter()


@pytest.fixture
def services(store, listing_client, gateway, sender, minter):
    buying_power = BuyingPowerService(gateway=gateway)
    chain = PropertySourceChain(client=listing_client, store=store, default_location="München")
    return AppServices(
        store=store,
        search=PropertySearchService(chain, buying_power),
        buying_power=buying_power,
        email_sender_factory=lambda: sender,
        realtime_factory=lambda: minter,
    )


@pytest.fixture
def client(services):
    return TestClient(create_app(services))
