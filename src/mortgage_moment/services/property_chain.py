# src/mortgage_moment/services/property_chain.py
from __future__ import annotations

from typing import Sequence

from mortgage_moment.adapters.local_listings import LocalListingStore
from mortgage_moment.adapters.logging_utils import get_logger
from mortgage_moment.domain.ports import (
    ChainOutcome,
    ListingPage,
    ListingProvider,
    ListingQuery,
    ListingSearchClient,
    SourceKind,
    SourceResult,
    Unavailable,
)

logger = get_logger(__name__)


class ExternalLocationProvider:
    """Aggregator search pinned to one location (requested or default)."""

    def __init__(self, client: ListingSearchClient, location: str, name: str) -> None:
        self.client = client
        self.location = location
        self.name = name

    def fetch(self, query: ListingQuery) -> SourceResult:
        try:
            items, total = self.client.search(location=self.location, query=query)
        except Exception as e:
            # transport errors count as "no data" and move the chain along
            logger.warning(
                "listing_provider_failed",
                extra={"context": {"provider": self.name, "location": self.location, "error": repr(e)}},
            )
            return Unavailable(provider=self.name, reason=f"error: {e}")

        if not items:
            return Unavailable(provider=self.name, reason="empty")
        return ListingPage(items=items, total=max(int(total), len(items)), source=SourceKind.EXTERNAL_API)


class LocalDatasetProvider:
    name = "local"

    def __init__(self, store: LocalListingStore) -> None:
        self.store = store

    def fetch(self, query: ListingQuery) -> SourceResult:
        items, total = self.store.query(query)
        return ListingPage(items=list(items), total=total, source=SourceKind.LOCAL)


def first_available(providers: Sequence[ListingProvider], query: ListingQuery) -> ChainOutcome:
    """
    Try providers in order and stop at the first one that yields items.
    If none does, the last provider's (empty) page is returned, or an empty
    local page when every provider was unavailable.
    """
    attempts: list[Unavailable] = []
    last_page: ListingPage | None = None

    for provider in providers:
        result = provider.fetch(query)
        if isinstance(result, Unavailable):
            attempts.append(result)
            continue
        if result.items:
            return ChainOutcome(page=result, attempts=attempts)
        last_page = result
        attempts.append(Unavailable(provider=provider.name, reason="empty"))

    page = last_page or ListingPage(items=[], total=0, source=SourceKind.LOCAL)
    return ChainOutcome(page=page, attempts=attempts)


class PropertySourceChain:
    """
    RequestedLocation -> DefaultLocationFallback -> LocalFallback.

    The provider list is built per query: the requested-location step only
    exists when a location was given, the default-location step only when it
    differs from what was already asked for.
    """

    def __init__(
        self,
        client: ListingSearchClient | None,
        store: LocalListingStore,
        default_location: str = "München",
    ) -> None:
        self.client = client
        self.store = store
        self.default_location = default_location

    def providers_for(self, query: ListingQuery) -> list[ListingProvider]:
        providers: list[ListingProvider] = []
        requested = (query.location or "").strip()

        if self.client is not None:
            if requested:
                providers.append(ExternalLocationProvider(self.client, requested, name="requested_location"))
            if requested.casefold() != self.default_location.casefold():
                providers.append(
                    ExternalLocationProvider(self.client, self.default_location, name="default_location")
                )

        providers.append(LocalDatasetProvider(self.store))
        return providers

    def fetch_listings(self, query: ListingQuery) -> ChainOutcome:
        outcome = first_available(self.providers_for(query), query)
        logger.info(
            "listing_chain_resolved",
            extra={
                "context": {
                    "location": query.location,
                    "source": outcome.page.source.value,
                    "count": len(outcome.page.items),
                    "total": outcome.page.total,
                    "skipped": [f"{a.provider}:{a.reason}" for a in outcome.attempts],
                }
            },
        )
        return outcome
