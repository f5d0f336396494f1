# src/mortgage_moment/services/validation.py

from typing import Any

from mortgage_moment.domain.ports import ListingQuery
from mortgage_moment.domain.profile import BuyerProfile, to_number

DEFAULT_LIMIT = 50
MAX_LIMIT = 500


def _to_num_optional(val: Any) -> float | None:
    """
    Lenient converter for optional numeric filters.
    Returns None when missing/blank/garbage so the filter is simply not applied.
    """
    if val is None:
        return None
    if isinstance(val, str) and not val.strip():
        return None
    f = to_number(val, default=float("nan"))
    if f != f:  # NaN -> garbage
        return None
    return f


def _to_int(val: Any, default: int) -> int:
    f = _to_num_optional(val)
    if f is None:
        return default
    return int(f)


def listing_query_from_params(params: dict[str, Any]) -> ListingQuery:
    """
    Normalize /api/properties query params.

      - price/rooms/size filters: optional, ignored when unparsable
      - limit: default 50, clamped to [1, 500]
      - offset: default 0, never negative
      - location: stripped, empty -> None
    """
    limit = _to_int(params.get("limit"), DEFAULT_LIMIT)
    if limit <= 0:
        limit = DEFAULT_LIMIT
    limit = min(limit, MAX_LIMIT)

    offset = max(0, _to_int(params.get("offset"), 0))

    location = params.get("location")
    location = str(location).strip() if location is not None else ""

    return ListingQuery(
        location=location or None,
        min_price=_to_num_optional(params.get("minPrice")),
        max_price=_to_num_optional(params.get("maxPrice")),
        rooms=_to_num_optional(params.get("rooms")),
        size=_to_num_optional(params.get("size")),
        limit=limit,
        offset=offset,
    )


def profile_from_params(params: dict[str, Any]) -> BuyerProfile:
    """income/equity/debts from the query string. Rent is deliberately not a debt."""
    return BuyerProfile.from_raw(
        {
            "income": params.get("income"),
            "equity": params.get("equity"),
            "debts": params.get("debts"),
            "interestRate": params.get("interestRate"),
            "repaymentRate": params.get("repaymentRate"),
        }
    )
