"""
Tiling of circular DENUE queries over the city.

Offsets are laid out in km on a square lattice around the origin and
converted to degrees with a latitude-corrected scale.
"""

from __future__ import annotations

import math
import random
from typing import List, Optional

from .config import HarvestConfig
from .types import QueryCenter

KM_PER_DEG_LAT = 111.0


def km_per_deg_lon(origin_lat: float) -> float:
    return KM_PER_DEG_LAT * math.cos(math.radians(origin_lat))


def lattice_half_width(city_km: float, step_km: float) -> int:
    """Lattice steps on each side of the origin for full mode."""
    return math.ceil(city_km / step_km)


def build_centers(config: HarvestConfig) -> List[QueryCenter]:
    """Build the lattice of query centres, in row-major order.

    Fast mode is always a 3x3 lattice; full mode spans
    ``(2 * ceil(city_km / step_km) + 1) ** 2`` centres.
    """
    if config.step_km <= 0:
        raise ValueError("step_km must be positive")

    half = 1 if config.mode == "fast" else lattice_half_width(config.city_km, config.step_km)
    d_lat = config.step_km / KM_PER_DEG_LAT
    d_lon = config.step_km / km_per_deg_lon(config.origin_lat)

    return [
        QueryCenter(
            lat=config.origin_lat + i * d_lat,
            lon=config.origin_lon + j * d_lon,
        )
        for i in range(-half, half + 1)
        for j in range(-half, half + 1)
    ]


def shuffled_centers(
    config: HarvestConfig, rng: Optional[random.Random] = None
) -> List[QueryCenter]:
    """Lattice centres in random order.

    Consecutive calls land in different parts of the city.
    """
    centers = build_centers(config)
    (rng or random).shuffle(centers)
    return centers


def distance_km(a: QueryCenter, b: QueryCenter) -> float:
    """Planar distance using the same local scale as the lattice."""
    mean_lat = (a.lat + b.lat) / 2
    dy = (a.lat - b.lat) * KM_PER_DEG_LAT
    dx = (a.lon - b.lon) * km_per_deg_lon(mean_lat)
    return math.hypot(dx, dy)
