from __future__ import annotations

from typing import Sequence

from mortgage_moment.domain.affordability import assess
from mortgage_moment.domain.listing import AffordabilityVerdict, Listing, ListingWithAffordability


def annotate(listings: Sequence[Listing], ceiling_price: float) -> list[ListingWithAffordability]:
    out: list[ListingWithAffordability] = []
    for listing in listings:
        result = assess(listing.buying_price, ceiling_price)
        out.append(
            ListingWithAffordability(
                **listing.model_dump(),
                affordability=AffordabilityVerdict(
                    is_affordable=result.is_affordable,
                    max_affordable_price=result.max_affordable_price,
                    gap=result.gap,
                ),
            )
        )
    return out


def sort_by_affordability(listings: Sequence[ListingWithAffordability]) -> list[ListingWithAffordability]:
    """Affordable first, then ascending price. sorted() is stable for equal keys."""
    def _key(item: ListingWithAffordability) -> tuple[int, float]:
        affordable = bool(item.affordability and item.affordability.is_affordable)
        return (0 if affordable else 1, item.buying_price)

    return sorted(listings, key=_key)


def affordable_count(listings: Sequence[ListingWithAffordability]) -> int:
    return sum(1 for item in listings if item.affordability and item.affordability.is_affordable)
