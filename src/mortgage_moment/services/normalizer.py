# src/mortgage_moment/services/normalizer.py
from __future__ import annotations

import hashlib
import math
from typing import Any

from mortgage_moment.domain.listing import Address, Listing
from mortgage_moment.domain.ports import SourceKind
from mortgage_moment.domain.profile import to_number


def _stable_id(*parts: str) -> str:
    s = "|".join([p.strip().lower() for p in parts if p])
    return hashlib.sha1(s.encode("utf-8")).hexdigest()[:20]


def _dict(v: Any) -> dict[str, Any]:
    return v if isinstance(v, dict) else {}


def _text(v: Any) -> str:
    if v is None or isinstance(v, (dict, list)):
        return ""
    return str(v).strip()


def _first(*values: Any) -> Any:
    for v in values:
        if v not in (None, "", [], {}):
            return v
    return None


def _image_urls(raw_images: Any) -> list[str]:
    """Accept ["url", ...], [{"originalUrl": ...}], [{"url": ...}]."""
    if not isinstance(raw_images, list):
        return []
    urls: list[str] = []
    for img in raw_images:
        if isinstance(img, str) and img.strip():
            urls.append(img.strip())
        elif isinstance(img, dict):
            url = _first(img.get("originalUrl"), img.get("url"), img.get("src"))
            if isinstance(url, str) and url.strip():
                urls.append(url.strip())
    return urls


def _price_per_sqm(price: float, sqm: float) -> float:
    if sqm <= 0:
        return 0.0
    ratio = price / sqm
    return float(round(ratio)) if math.isfinite(ratio) else 0.0


def _listing_id(raw_id: Any, title: str, street: str, price: float) -> str:
    ext = _text(raw_id)
    return ext or _stable_id(title, street, str(price))


def _from_compact(raw: dict[str, Any]) -> Listing:
    price = max(0.0, to_number(raw.get("p")))
    sqm = max(0.0, to_number(raw.get("s")))
    title = _text(raw.get("t"))
    street = _text(raw.get("l"))

    return Listing(
        id=_listing_id(raw.get("id"), title, street, price),
        title=title,
        address=Address(
            lat=to_number(raw.get("lat")),
            lon=to_number(raw.get("lng")),
            street=street,
            postcode=_text(raw.get("pc")),
            city=_text(raw.get("c")),
        ),
        buying_price=price,
        price_per_sqm=_price_per_sqm(price, sqm),
        rooms=max(0.0, to_number(raw.get("r"))),
        square_meter=sqm,
        images=_image_urls(raw.get("imgs")),
        floor=0.0,
    )


def _from_external(raw: dict[str, Any]) -> Listing:
    """
    Aggregator records float between the flat search-result shape
    (buyingPrice, squareMeter, address.lat/lon) and the raw portal export
    (price.amount, size.area, address.latitude/longitude/line).
    """
    addr = _dict(raw.get("address"))

    price = max(0.0, to_number(_first(raw.get("buyingPrice"), _dict(raw.get("price")).get("amount"), raw.get("price"))))
    sqm = max(0.0, to_number(_first(raw.get("squareMeter"), _dict(raw.get("size")).get("area"), raw.get("livingSpace"))))
    rooms = max(0.0, to_number(_first(_dict(raw.get("rooms")).get("count"), raw.get("rooms"))))
    title = _text(raw.get("title"))
    street = _text(_first(addr.get("street"), addr.get("line"), addr.get("streetName")))

    images = _image_urls(raw.get("images"))
    if not images:
        images = _image_urls(_dict(raw.get("pictures")).get("pictures"))

    return Listing(
        id=_listing_id(_first(raw.get("id"), raw.get("_id")), title, street, price),
        title=title,
        address=Address(
            lat=to_number(_first(addr.get("lat"), addr.get("latitude"))),
            lon=to_number(_first(addr.get("lon"), addr.get("lng"), addr.get("longitude"))),
            street=street,
            postcode=_text(_first(addr.get("postcode"), addr.get("zip"), addr.get("zipCode"))),
            city=_text(_first(addr.get("city"), addr.get("town"))),
        ),
        buying_price=price,
        price_per_sqm=_price_per_sqm(price, sqm),
        rooms=rooms,
        square_meter=sqm,
        images=images,
        floor=to_number(raw.get("floor")),
    )


def normalize(raw: Any, source_kind: SourceKind) -> Listing:
    """
    Map one upstream record to the canonical Listing.
    Total: partial or malformed input yields zeros/empty strings, never an error.
    """
    rec = _dict(raw)
    if source_kind == SourceKind.LOCAL:
        return _from_compact(rec)
    return _from_external(rec)


def normalize_many(raws: list[Any], source_kind: SourceKind) -> list[Listing]:
    return [normalize(r, source_kind) for r in raws]
