# src/mortgage_moment/adapters/local_listings.py
from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, Sequence

from mortgage_moment.adapters.logging_utils import get_logger
from mortgage_moment.domain.ports import CompactListing, ListingQuery
from mortgage_moment.domain.profile import to_number

logger = get_logger(__name__)


class LocalListingStore:
    """
    Read-only, in-memory copy of the pre-processed listings dataset.

    Loaded once at startup and handed to request handlers; nothing writes
    to it afterwards, so concurrent readers need no locking.
    """

    def __init__(self, records: Iterable[CompactListing] = ()) -> None:
        self._records: tuple[CompactListing, ...] = tuple(r for r in records if isinstance(r, dict))

    def __len__(self) -> int:
        return len(self._records)

    @classmethod
    def load(cls, *paths: str | Path) -> LocalListingStore:
        """
        Load from the first existing path. A missing or unreadable file yields
        an empty store (logged) so the API still starts.
        """
        for p in paths:
            path = Path(p)
            if not path.exists():
                continue
            logger.info("local_listings_loading", extra={"context": {"path": str(path)}})
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as e:
                logger.error(
                    "local_listings_load_failed",
                    extra={"context": {"path": str(path), "error": repr(e)}},
                )
                return cls()
            if not isinstance(data, list):
                logger.error("local_listings_not_a_list", extra={"context": {"path": str(path)}})
                return cls()
            store = cls(data)
            logger.info("local_listings_loaded", extra={"context": {"path": str(path), "count": len(store)}})
            return store

        logger.warning(
            "local_listings_missing",
            extra={"context": {"paths": [str(p) for p in paths], "hint": "run `pipeline preprocess` first"}},
        )
        return cls()

    def query(self, query: ListingQuery) -> tuple[list[CompactListing], int]:
        """Filter by price/rooms/size, then slice [offset, offset + limit)."""
        matches: Sequence[CompactListing] = [
            rec
            for rec in self._records
            if query.matches(
                price=to_number(rec.get("p")),
                rooms=to_number(rec.get("r")),
                size=to_number(rec.get("s")),
            )
        ]
        total = len(matches)
        start = max(0, int(query.offset))
        end = start + max(0, int(query.limit))
        return list(matches[start:end]), total


def default_data_paths(data_file: str) -> list[Path]:
    """Configured file first, then the production build folder."""
    primary = Path(data_file)
    return [primary, Path("dist") / primary.name]
