# src/mortgage_moment/adapters/thinkimmo_listings.py
from __future__ import annotations

from typing import Any

import requests

from mortgage_moment.adapters.config import config
from mortgage_moment.adapters.logging_utils import get_logger
from mortgage_moment.domain.ports import ListingQuery, RawListing

logger = get_logger(__name__)


class ListingSourceError(RuntimeError):
    pass


class ThinkImmoListingClient:
    """
    Wrapper around the ThinkImmo property search (POST /immo).

    Uses:
      - geoSearches.geoSearchQuery: town name ("München", "Garching")
      - from / size for pagination
      - buyingPrice / rooms / squareMeter range filters

    Raises ListingSourceError on any transport or HTTP failure; the source
    chain decides what to do with it.
    """

    source_name = "thinkimmo"

    def __init__(
        self,
        url: str | None = None,
        timeout_s: float | None = None,
        session: requests.Session | None = None,
        region: str = "Bayern",
        listing_type: str = "APARTMENTBUY",
    ):
        self.url = url or config.THINKIMMO_URL
        self.timeout_s = timeout_s or config.LISTINGS_TIMEOUT_S
        self.s = session or requests.Session()
        self.region = region
        self.listing_type = listing_type

    def build_body(self, location: str, query: ListingQuery) -> dict[str, Any]:
        body: dict[str, Any] = {
            "active": True,
            "type": self.listing_type,
            "sortBy": "asc",
            "sortKey": "buyingPrice",
            "from": int(query.offset),
            "size": int(query.limit),
            "geoSearches": {
                "geoSearchQuery": location,
                "geoSearchType": "town",
                "region": self.region,
            },
        }

        price: dict[str, float] = {}
        if query.min_price is not None:
            price["min"] = query.min_price
        if query.max_price is not None:
            price["max"] = query.max_price
        if price:
            body["buyingPrice"] = price
        if query.rooms is not None:
            body["rooms"] = {"min": query.rooms}
        if query.size is not None:
            body["squareMeter"] = {"min": query.size}
        return body

    def search(self, *, location: str, query: ListingQuery) -> tuple[list[RawListing], int]:
        body = self.build_body(location, query)

        try:
            resp = self.s.post(
                self.url,
                json=body,
                headers={"Content-Type": "application/json", "Accept": "application/json"},
                timeout=self.timeout_s,
            )
        except requests.RequestException as e:
            raise ListingSourceError(f"ThinkImmo request failed: {e!r}") from e

        if resp.status_code >= 400:
            raise ListingSourceError(f"ThinkImmo HTTP {resp.status_code}: {resp.text[:300]}")

        try:
            data = resp.json() or {}
        except ValueError as e:
            raise ListingSourceError("ThinkImmo returned invalid JSON") from e

        # Try the common containers
        if isinstance(data, dict):
            raw_items = data.get("results") or data.get("items") or data.get("data") or []
        else:
            raw_items = data

        if not isinstance(raw_items, list):
            logger.error("thinkimmo_unexpected_shape", extra={"context": {"snippet": str(raw_items)[:400]}})
            return [], 0

        items = [item for item in raw_items if isinstance(item, dict)]

        total = len(items)
        if isinstance(data, dict):
            try:
                total = int(data.get("total") or total)
            except (TypeError, ValueError):
                pass

        logger.info(
            "thinkimmo_search",
            extra={"context": {"location": location, "count": len(items), "total": total}},
        )
        return items, total
