"""Tests for the query-centre lattice."""

from __future__ import annotations

import math
import random

import pytest

from denueworker.harvester.config import HarvestConfig
from denueworker.harvester.grid import (
    KM_PER_DEG_LAT,
    build_centers,
    distance_km,
    km_per_deg_lon,
    shuffled_centers,
)
from denueworker.harvester.types import QueryCenter


class TestBuildCenters:
    def test_fast_mode_is_three_by_three(self):
        centers = build_centers(HarvestConfig(mode="fast"))
        assert len(centers) == 9
        assert len(set(centers)) == 9

    def test_fast_mode_ignores_city_km(self):
        assert len(build_centers(HarvestConfig(mode="fast", city_km=40))) == 9

    def test_fast_mode_contains_origin(self):
        config = HarvestConfig(mode="fast")
        origin = QueryCenter(lat=config.origin_lat, lon=config.origin_lon)
        assert origin in build_centers(config)

    @pytest.mark.parametrize(
        "city_km,step_km",
        [(18, 5), (8, 5), (10, 5), (3, 7), (12.5, 2.5)],
    )
    def test_full_mode_count(self, city_km, step_km):
        config = HarvestConfig(mode="full", city_km=city_km, step_km=step_km)
        centers = build_centers(config)

        side = 2 * math.ceil(city_km / step_km) + 1
        assert len(centers) == side**2
        assert len(set(centers)) == side**2

    def test_full_mode_lattice_spacing(self):
        config = HarvestConfig(mode="full", city_km=18, step_km=5)
        centers = build_centers(config)

        lats = sorted({c.lat for c in centers})
        lons = sorted({c.lon for c in centers})
        d_lat = 5 / KM_PER_DEG_LAT
        d_lon = 5 / km_per_deg_lon(config.origin_lat)

        assert all(b - a == pytest.approx(d_lat) for a, b in zip(lats, lats[1:]))
        assert all(b - a == pytest.approx(d_lon) for a, b in zip(lons, lons[1:]))

    def test_full_mode_stays_near_origin(self):
        config = HarvestConfig(mode="full", city_km=18, step_km=5)
        origin = QueryCenter(lat=config.origin_lat, lon=config.origin_lon)
        bound = (config.city_km + config.step_km) * math.sqrt(2) * 1.01

        assert all(distance_km(origin, c) <= bound for c in build_centers(config))

    def test_lon_scale_is_latitude_corrected(self):
        assert km_per_deg_lon(0) == pytest.approx(111.0)
        assert km_per_deg_lon(60) == pytest.approx(55.5)


class TestShuffledCenters:
    def test_is_permutation_of_lattice(self):
        config = HarvestConfig(mode="full", city_km=10, step_km=5)
        shuffled = shuffled_centers(config, random.Random(7))

        assert sorted(shuffled, key=lambda c: (c.lat, c.lon)) == sorted(
            build_centers(config), key=lambda c: (c.lat, c.lon)
        )

    def test_seeded_rng_is_reproducible(self):
        config = HarvestConfig(mode="full", city_km=10, step_km=5)
        assert shuffled_centers(config, random.Random(3)) == shuffled_centers(
            config, random.Random(3)
        )

    def test_order_changes(self):
        config = HarvestConfig(mode="full", city_km=18, step_km=5)
        assert shuffled_centers(config, random.Random(1)) != build_centers(config)
