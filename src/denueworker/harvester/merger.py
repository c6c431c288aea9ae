"""
Merge accumulated rows into the final record set.

Dedup -> optional sector filter -> optional limit, then the point
FeatureCollection built from the result.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from .records import BusinessRecord, RecordScore, count_filled_fields, feature_properties
from .sectors import NO_SECTOR, matches_sector

logger = logging.getLogger(__name__)


def dedupe(
    records: Iterable[BusinessRecord],
    score: RecordScore = count_filled_fields,
) -> list[BusinessRecord]:
    """Collapse records that share a dedup key.

    Records without finite coordinates are skipped. On a key collision
    the record with a strictly higher ``score`` replaces the stored one
    in place; ties keep the first seen. Output follows first-seen key
    order, so the function is idempotent.
    """
    seen: dict[str, BusinessRecord] = {}
    skipped = 0
    for record in records:
        if not record.has_coordinates:
            skipped += 1
            continue
        key = record.dedup_key
        existing = seen.get(key)
        if existing is None or score(record) > score(existing):
            seen[key] = record

    if skipped:
        logger.debug(f"Skipped {skipped} rows without usable coordinates")
    return list(seen.values())


def merge_records(
    records: Iterable[BusinessRecord],
    sector: str = NO_SECTOR,
    limit: Optional[int] = None,
    score: RecordScore = count_filled_fields,
) -> list[BusinessRecord]:
    """Dedupe, filter by sector and truncate to ``limit``."""
    merged = dedupe(records, score=score)
    if sector and sector != NO_SECTOR:
        merged = [record for record in merged if matches_sector(record, sector)]
    if limit:
        merged = merged[:limit]
    return merged


def to_feature(record: BusinessRecord) -> dict[str, Any]:
    return {
        "type": "Feature",
        "geometry": {"type": "Point", "coordinates": [record.lon, record.lat]},
        "properties": feature_properties(record),
    }


def to_feature_collection(records: Iterable[BusinessRecord]) -> dict[str, Any]:
    """GeoJSON points for every record with finite coordinates."""
    return {
        "type": "FeatureCollection",
        "features": [to_feature(record) for record in records if record.has_coordinates],
    }


def raw_rows(records: Iterable[BusinessRecord]) -> list[Any]:
    """Rows in the shape the API returned them."""
    return [record.raw for record in records]
