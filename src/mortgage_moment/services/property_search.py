# src/mortgage_moment/services/property_search.py
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Sequence

from mortgage_moment.adapters.logging_utils import get_logger
from mortgage_moment.domain.listing import Listing
from mortgage_moment.domain.ports import ListingQuery, SourceKind
from mortgage_moment.domain.profile import BuyerProfile
from mortgage_moment.services.annotator import affordable_count, annotate, sort_by_affordability
from mortgage_moment.services.buying_power import BuyingPowerService, PriceCeiling
from mortgage_moment.services.coaching import build_plan
from mortgage_moment.services.normalizer import normalize_many
from mortgage_moment.services.property_chain import PropertySourceChain

logger = get_logger(__name__)


@dataclass(frozen=True)
class PropertySearchResult:
    total: int
    offset: int
    limit: int
    source: SourceKind
    data: Sequence[Listing]
    affordability_options: dict[str, Any] | None = None

    def to_wire(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "count": len(self.data),
            "offset": self.offset,
            "limit": self.limit,
            "source": self.source.value,
            "data": [item.to_wire() for item in self.data],
            "affordabilityOptions": self.affordability_options,
        }


class PropertySearchService:
    """
    Listings + price ceiling for one request.

    The two upstream lookups are independent, so they run side by side;
    annotation waits for both.
    """

    def __init__(self, chain: PropertySourceChain, buying_power: BuyingPowerService) -> None:
        self.chain = chain
        self.buying_power = buying_power

    def search(self, query: ListingQuery, profile: BuyerProfile | None = None) -> PropertySearchResult:
        wants_affordability = profile is not None and profile.has_signal

        with ThreadPoolExecutor(max_workers=2) as ex:
            listings_future = ex.submit(self.chain.fetch_listings, query)
            ceiling_future = ex.submit(self.buying_power.resolve, profile) if wants_affordability else None

            outcome = listings_future.result()
            ceiling: PriceCeiling | None = ceiling_future.result() if ceiling_future else None

        page = outcome.page
        normalized = normalize_many(page.items, page.source)

        # upstream filters are best effort; enforce ours on every source
        listings = [
            item
            for item in normalized
            if query.matches(price=item.buying_price, rooms=item.rooms, size=item.square_meter)
        ]
        dropped = len(normalized) - len(listings)
        if dropped:
            logger.info(
                "listings_dropped_by_filter",
                extra={"context": {"source": page.source.value, "dropped": dropped}},
            )
        total = max(len(listings), page.total - dropped)

        if ceiling is None or profile is None:
            return PropertySearchResult(
                total=total,
                offset=query.offset,
                limit=query.limit,
                source=page.source,
                data=listings,
            )

        annotated = sort_by_affordability(annotate(listings, ceiling.price))
        options: dict[str, Any] = {"budgetDetails": ceiling.budget_details()}

        if affordable_count(annotated) == 0:
            plan = build_plan(annotated, profile, ceiling.price, self.buying_power.policy)
            options = {**plan.to_wire(), **options}

        return PropertySearchResult(
            total=total,
            offset=query.offset,
            limit=query.limit,
            source=page.source,
            data=annotated,
            affordability_options=options,
        )
