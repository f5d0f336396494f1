# src/mortgage_moment/domain/ports.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol, TypedDict, Union

from mortgage_moment.domain.listing import ScoringResult


class SourceKind(str, Enum):
    EXTERNAL_API = "ExternalApi"
    LOCAL = "Local"


# ----------------------------
# Listing records
# ----------------------------

class CompactListing(TypedDict, total=False):
    """One record of the pre-processed local dataset (abbreviated keys)."""
    id: str | int
    t: str            # title
    lat: float
    lng: float
    l: str            # street line
    pc: str           # postcode
    c: str            # city
    p: float          # price
    s: float          # size in sqm
    r: float          # rooms
    imgs: list[str]


RawListing = dict[str, Any]


@dataclass(frozen=True)
class ListingQuery:
    location: str | None = None
    min_price: float | None = None
    max_price: float | None = None
    rooms: float | None = None
    size: float | None = None
    limit: int = 50
    offset: int = 0

    def matches(self, *, price: float, rooms: float, size: float) -> bool:
        if self.max_price is not None and price > self.max_price:
            return False
        if self.min_price is not None and price < self.min_price:
            return False
        if self.rooms is not None and rooms < self.rooms:
            return False
        if self.size is not None and size < self.size:
            return False
        return True


# ----------------------------
# Source chain results
# ----------------------------

@dataclass(frozen=True)
class ListingPage:
    items: list[RawListing]
    total: int
    source: SourceKind


@dataclass(frozen=True)
class Unavailable:
    provider: str
    reason: str


SourceResult = Union[ListingPage, Unavailable]


@dataclass(frozen=True)
class ChainOutcome:
    page: ListingPage
    attempts: list[Unavailable] = field(default_factory=list)


class ListingProvider(Protocol):
    name: str

    def fetch(self, query: ListingQuery) -> SourceResult:
        ...


class ListingSearchClient(Protocol):
    def search(self, *, location: str, query: ListingQuery) -> tuple[list[RawListing], int]:
        ...


# ----------------------------
# Third-party gateways
# ----------------------------

class BuyingPowerGateway(Protocol):
    def fetch_max_buying_power(
        self,
        income: Any,
        equity: Any,
        debts: Any,
    ) -> ScoringResult | None:
        ...


class EmailSender(Protocol):
    def send(
        self,
        *,
        to_email: str,
        to_name: str,
        subject: str,
        html: str,
    ) -> dict[str, Any]:
        ...


class RealtimeSessionMinter(Protocol):
    def create_session(
        self,
        *,
        instructions: str | None = None,
        tools: list[dict[str, Any]] | None = None,
    ) -> str:
        ...
