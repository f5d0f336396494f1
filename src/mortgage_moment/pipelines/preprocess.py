# src/mortgage_moment/pipelines/preprocess.py

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List

from loguru import logger

from mortgage_moment.domain.ports import CompactListing
from mortgage_moment.domain.profile import to_number


RAW_INPUT = Path("src/data/properties.json")
COMPACT_OUTPUT = Path("public/properties.min.json")
DEFAULT_CITY = "München"


@dataclass
class PreprocessReport:
    input_path: str
    output_path: str
    skipped_up_to_date: bool = False
    total: int = 0
    written: int = 0
    skipped_no_price: int = 0
    skipped_no_coords: int = 0
    input_bytes: int = 0
    output_bytes: int = 0

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class DatasetAudit:
    total: int = 0
    missing_coords: int = 0
    # only counted when coordinates are present, so the three buckets don't overlap
    missing_price: int = 0
    valid: int = 0
    sample_missing_coords: List[Any] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ---------------------------
# Raw record helpers
# ---------------------------

def _address(item: Dict[str, Any]) -> Dict[str, Any]:
    addr = item.get("address")
    return addr if isinstance(addr, dict) else {}


def _price(item: Dict[str, Any]) -> float:
    price = item.get("price")
    if isinstance(price, dict):
        return to_number(price.get("amount"))
    return 0.0


def _has_coords(item: Dict[str, Any]) -> bool:
    addr = _address(item)
    return bool(to_number(addr.get("latitude"))) and bool(to_number(addr.get("longitude")))


def _picture_urls(item: Dict[str, Any]) -> List[str]:
    pictures = item.get("pictures")
    if isinstance(pictures, dict):
        pictures = pictures.get("pictures")
    if not isinstance(pictures, list):
        return []
    return [p["url"] for p in pictures if isinstance(p, dict) and p.get("url")]


def compact_record(item: Dict[str, Any]) -> CompactListing | None:
    """
    Raw aggregator export item -> compact record, or None when the item has
    no positive price or no coordinates.
    """
    if _price(item) <= 0 or not _has_coords(item):
        return None

    addr = _address(item)
    size = item.get("size") if isinstance(item.get("size"), dict) else {}
    rooms = item.get("rooms") if isinstance(item.get("rooms"), dict) else {}

    return {
        "id": item.get("id"),
        "t": item.get("title") or "",
        "lat": to_number(addr.get("latitude")),
        "lng": to_number(addr.get("longitude")),
        "l": addr.get("line") or "",
        "pc": addr.get("postcode") or "",
        "c": addr.get("city") or DEFAULT_CITY,
        "p": _price(item),
        "s": to_number(size.get("area")),
        "r": to_number(rooms.get("count")),
        "imgs": _picture_urls(item),
    }


def _read_items(path: Path) -> List[Dict[str, Any]]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a JSON list, got {type(data).__name__}")
    return [item for item in data if isinstance(item, dict)]


# ---------------------------
# Preprocess
# ---------------------------

def preprocess(
    input_path: Path = RAW_INPUT,
    output_path: Path = COMPACT_OUTPUT,
    force: bool = False,
) -> PreprocessReport:
    """
    Compact the raw listings export into the dataset the API serves from.

    Skipped entirely when the output is newer than the input, unless `force`.
    """
    input_path = Path(input_path)
    output_path = Path(output_path)
    report = PreprocessReport(input_path=str(input_path), output_path=str(output_path))

    if not input_path.exists():
        raise FileNotFoundError(f"{input_path} not found. Export the raw listings there first.")

    if not force and output_path.exists():
        if output_path.stat().st_mtime > input_path.stat().st_mtime:
            logger.info(
                "Dataset is up to date, skipping preprocessing (use --force to override)",
                input=str(input_path),
                output=str(output_path),
            )
            report.skipped_up_to_date = True
            return report

    logger.info("Reading raw listings", input=str(input_path))
    items = _read_items(input_path)
    report.total = len(items)

    compact: List[CompactListing] = []
    for item in items:
        if _price(item) <= 0:
            report.skipped_no_price += 1
            continue
        record = compact_record(item)
        if record is None:
            report.skipped_no_coords += 1
            continue
        compact.append(record)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(compact, ensure_ascii=False, separators=(",", ":")), encoding="utf-8")

    report.written = len(compact)
    report.input_bytes = input_path.stat().st_size
    report.output_bytes = output_path.stat().st_size

    logger.info(
        "Preprocessing complete",
        total=report.total,
        written=report.written,
        skipped_no_price=report.skipped_no_price,
        skipped_no_coords=report.skipped_no_coords,
        input_mb=round(report.input_bytes / 1024 / 1024, 2),
        output_mb=round(report.output_bytes / 1024 / 1024, 2),
    )
    return report


# ---------------------------
# Audit
# ---------------------------

def audit(input_path: Path = RAW_INPUT, sample_size: int = 5) -> DatasetAudit:
    """Count how many raw items are usable and why the rest are not."""
    items = _read_items(Path(input_path))
    result = DatasetAudit(total=len(items))

    for item in items:
        has_coords = _has_coords(item)
        has_price = _price(item) > 0

        if not has_coords:
            result.missing_coords += 1
            if len(result.sample_missing_coords) < sample_size:
                result.sample_missing_coords.append(item.get("address") or "No address object")
        elif not has_price:
            result.missing_price += 1
        else:
            result.valid += 1

    logger.info(
        "Dataset audit",
        total=result.total,
        missing_coords=result.missing_coords,
        missing_price=result.missing_price,
        valid=result.valid,
    )
    return result
