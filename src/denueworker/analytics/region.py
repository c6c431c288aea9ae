"""
Clip point features to a drawn region.

Geometries follow GeoJSON: a Polygon is a list of rings (outer ring
first, then holes), a MultiPolygon a list of Polygons. Rings may be open
or closed.
"""

from __future__ import annotations

import math
from typing import Any, Mapping, Sequence

Ring = Sequence[Sequence[float]]


def point_in_ring(lon: float, lat: float, ring: Ring) -> bool:
    """Ray casting test against a single ring."""
    inside = False
    n = len(ring)
    if n < 3:
        return False
    j = n - 1
    for i in range(n):
        xi, yi = ring[i][0], ring[i][1]
        xj, yj = ring[j][0], ring[j][1]
        if (yi > lat) != (yj > lat):
            x_cross = (xj - xi) * (lat - yi) / (yj - yi) + xi
            if lon < x_cross:
                inside = not inside
        j = i
    return inside


def _in_polygon_rings(lon: float, lat: float, rings: Sequence[Ring]) -> bool:
    if not rings or not point_in_ring(lon, lat, rings[0]):
        return False
    return not any(point_in_ring(lon, lat, hole) for hole in rings[1:])


def point_in_polygon(lon: float, lat: float, geometry: Mapping[str, Any]) -> bool:
    """True if the point lies inside a Polygon or MultiPolygon geometry."""
    gtype = geometry.get("type")
    coords = geometry.get("coordinates") or []
    if gtype == "Polygon":
        return _in_polygon_rings(lon, lat, coords)
    if gtype == "MultiPolygon":
        return any(_in_polygon_rings(lon, lat, polygon) for polygon in coords)
    raise ValueError(f"Unsupported region geometry: {gtype}")


def region_geometry(obj: Mapping[str, Any]) -> Mapping[str, Any]:
    """Accept a geometry, a Feature or a FeatureCollection with one polygon."""
    otype = obj.get("type")
    if otype == "Feature":
        return region_geometry(obj.get("geometry") or {})
    if otype == "FeatureCollection":
        features = obj.get("features") or []
        if not features:
            raise ValueError("Region FeatureCollection is empty")
        return region_geometry(features[0])
    if otype in ("Polygon", "MultiPolygon"):
        return obj
    raise ValueError(f"Unsupported region object: {otype}")


def point_coords(feature: Mapping[str, Any]) -> tuple[float, float] | None:
    """Finite (lon, lat) of a Point feature, or None."""
    geometry = feature.get("geometry") or {}
    if geometry.get("type") != "Point":
        return None
    coords = geometry.get("coordinates") or []
    if len(coords) < 2:
        return None
    try:
        lon, lat = float(coords[0]), float(coords[1])
    except (TypeError, ValueError):
        return None
    if not (math.isfinite(lon) and math.isfinite(lat)):
        return None
    return lon, lat


def clip_features(
    collection: Mapping[str, Any], region: Mapping[str, Any]
) -> dict[str, Any]:
    """New FeatureCollection with the point features inside ``region``."""
    geometry = region_geometry(region)
    kept = []
    for feature in collection.get("features") or []:
        coords = point_coords(feature)
        if coords and point_in_polygon(coords[0], coords[1], geometry):
            kept.append(feature)
    return {"type": "FeatureCollection", "features": kept}
