"""SCIAN sector filter over the activity-class text of a record."""

from __future__ import annotations

from .records import BusinessRecord

NO_SECTOR = "0"

SECTOR_PHRASES: dict[str, str] = {
    "46": "comercio al por menor",
    "43": "comercio al por mayor",
    "72": "servicios de alojamiento temporal y de preparación de alimentos y bebidas",
    "62": "servicios de salud y de asistencia social",
    "61": "servicios educativos",
    "31": "industrias manufactureras",
}

MANUFACTURING = "31"


def matches_sector(record: BusinessRecord, sector: str) -> bool:
    """True when the record belongs to ``sector`` (or no filter applies).

    Unknown sector codes let every record through.
    """
    if not sector or sector == NO_SECTOR:
        return True
    phrase = SECTOR_PHRASES.get(sector)
    if phrase is None:
        return True

    activity = record.activity.strip().lower()
    if activity.startswith(phrase) or phrase in activity:
        return True
    # DENUE class names rarely repeat the sector title for manufacturing
    if sector == MANUFACTURING:
        return "manufactur" in activity or activity.startswith("fabricación")
    return False
