"""
Statistics over a point FeatureCollection.

Counts by activity class and colony, plus the headline KPIs: total
businesses, unique sectors, unique colonies and average density.
"""

from __future__ import annotations

import math
from collections import Counter
from typing import Any, Mapping

from denueworker.harvester.records import KEYED_SYNONYMS

from .region import point_coords

NO_CLASS = "(sin clase)"
UNCLASSIFIED = "(sin clasificar)"
NO_COLONY = "(sin especificar)"

DENSITY_CELL_DEG = 0.01  # ~1 km


def _first(props: Mapping[str, Any], names: tuple[str, ...]) -> str:
    for name in names:
        value = props.get(name)
        if value is not None:
            return str(value).strip()
    return ""


def feature_props(feature: Mapping[str, Any]) -> dict[str, str]:
    """Activity class, colony and name of a feature, whatever its key spelling."""
    props = feature.get("properties") or {}
    return {
        "name": _first(props, KEYED_SYNONYMS["name"]),
        "activity": _first(props, KEYED_SYNONYMS["activity"]),
        "colony": _first(props, KEYED_SYNONYMS["colony"]),
    }


def _features(collection: Mapping[str, Any]) -> list[Mapping[str, Any]]:
    return list(collection.get("features") or [])


def class_stats(collection: Mapping[str, Any]) -> dict[str, Any]:
    """Counts per activity class, most frequent first."""
    features = _features(collection)
    counts = Counter(feature_props(f)["activity"] or NO_CLASS for f in features)
    return {
        "total": len(features),
        "classes": [{"k": k, "v": v} for k, v in counts.most_common()],
    }


def colony_stats(collection: Mapping[str, Any], top: int = 10) -> list[tuple[str, int]]:
    counts = Counter(
        feature_props(f)["colony"] or NO_COLONY for f in _features(collection)
    )
    return counts.most_common(top)


def average_density(collection: Mapping[str, Any], cell_deg: float = DENSITY_CELL_DEG) -> int:
    """Mean number of points per occupied grid cell, rounded."""
    cells: Counter[tuple[int, int]] = Counter()
    for feature in _features(collection):
        coords = point_coords(feature)
        if coords is None:
            continue
        lon, lat = coords
        cells[(math.floor(lon / cell_deg), math.floor(lat / cell_deg))] += 1
    if not cells:
        return 0
    return round(sum(cells.values()) / len(cells))


def basic_stats(collection: Mapping[str, Any]) -> dict[str, Any]:
    """Headline KPIs for a collection."""
    features = _features(collection)
    sectors: set[str] = set()
    colonies: set[str] = set()
    types: Counter[str] = Counter()

    for feature in features:
        props = feature_props(feature)
        if props["activity"]:
            sectors.add(props["activity"])
        if props["colony"]:
            colonies.add(props["colony"])
        types[props["activity"] or UNCLASSIFIED] += 1

    return {
        "total_businesses": len(features),
        "unique_sectors": len(sectors),
        "unique_colonies": len(colonies),
        "business_types": types.most_common(10),
        "average_density": average_density(collection),
    }
