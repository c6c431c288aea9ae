"""Tests for dedup, filtering and GeoJSON conversion."""

from __future__ import annotations

import math

from conftest import positional_row

from denueworker.harvester.merger import (
    dedupe,
    merge_records,
    raw_rows,
    to_feature_collection,
)
from denueworker.harvester.records import from_row

CLEE = "11020461110000112000000000U6"


def records(*rows):
    return [from_row(row) for row in rows]


class TestDedupe:
    def test_distinct_rows_kept_in_order(self):
        rows = [positional_row(name=f"N{i}", lon=-101.0 - i / 100) for i in range(5)]
        merged = dedupe(records(*rows))
        assert raw_rows(merged) == rows

    def test_more_filled_fields_wins(self):
        sparse = positional_row(clee=CLEE, name="A")
        rich = positional_row(clee=CLEE, name="A", colony="CENTRO", fields={13: "4771234567"})

        merged = dedupe(records(sparse, rich))

        assert raw_rows(merged) == [rich]

    def test_tie_keeps_first_seen(self):
        first = positional_row(clee=CLEE, name="First")
        second = positional_row(clee=CLEE, name="Second")

        assert raw_rows(dedupe(records(first, second))) == [first]

    def test_winner_keeps_first_position(self):
        a_sparse = positional_row(clee=CLEE, name="A")
        b = positional_row(name="B", lon=-101.5)
        a_rich = positional_row(clee=CLEE, name="A", colony="X")

        assert raw_rows(dedupe(records(a_sparse, b, a_rich))) == [a_rich, b]

    def test_coordinate_duplicates_collapse(self):
        a = positional_row(name="Tienda", lon=-101.6737401, lat=21.1290801)
        b = positional_row(name="TIENDA", lon=-101.6737399, lat=21.1290799)
        assert len(dedupe(records(a, b))) == 1

    def test_rows_without_coordinates_skipped(self):
        rows = [
            positional_row(name="ok"),
            positional_row(name="nan", lon="NaN"),
            positional_row(name="blank", lat=""),
            {"Nombre": "no coords"},
        ]
        assert raw_rows(dedupe(records(*rows))) == [rows[0]]

    def test_idempotent(self):
        rows = [
            positional_row(clee=CLEE, name="A"),
            positional_row(clee=CLEE, name="A", colony="X"),
            positional_row(name="B", lon=-101.2),
            positional_row(name="b", lon=-101.2),
            positional_row(name="C", lon="bad"),
        ]
        once = dedupe(records(*rows))
        twice = dedupe(once)
        assert raw_rows(twice) == raw_rows(once)

    def test_custom_score(self):
        first = positional_row(clee=CLEE, name="short")
        second = positional_row(clee=CLEE, name="a much longer name")

        merged = dedupe(records(first, second), score=lambda r: len(r.name))

        assert raw_rows(merged) == [second]


class TestMergeRecords:
    def test_sector_filter(self):
        rows = [
            positional_row(name="a", activity="Comercio al por menor en tiendas", lon=-101.1),
            positional_row(name="b", activity="Industrias manufactureras de plástico", lon=-101.2),
        ]
        merged = merge_records(records(*rows), sector="46")
        assert raw_rows(merged) == [rows[0]]

    def test_no_sector_passthrough(self):
        rows = [positional_row(name=str(i), lon=-101 - i / 10) for i in range(3)]
        assert raw_rows(merge_records(records(*rows), sector="0")) == rows

    def test_limit_keeps_first_rows(self):
        rows = [positional_row(name=str(i), lon=-101 - i / 10) for i in range(8)]
        assert raw_rows(merge_records(records(*rows), limit=5)) == rows[:5]

    def test_limit_applies_after_filter(self):
        rows = [
            positional_row(name="x", activity="Servicios educativos", lon=-101.1),
            positional_row(name="y", activity="Comercio al por menor", lon=-101.2),
            positional_row(name="z", activity="Comercio al por menor", lon=-101.3),
        ]
        merged = merge_records(records(*rows), sector="46", limit=1)
        assert raw_rows(merged) == [rows[1]]


class TestFeatureCollection:
    def test_point_features(self):
        row = positional_row(name="Tienda", activity="Abarrotes", lon=-101.5, lat=21.1)
        collection = to_feature_collection(records(row))

        assert collection == {
            "type": "FeatureCollection",
            "features": [
                {
                    "type": "Feature",
                    "geometry": {"type": "Point", "coordinates": [-101.5, 21.1]},
                    "properties": {"nombre": "Tienda", "clase": "Abarrotes", "colonia": ""},
                }
            ],
        }

    def test_non_finite_never_emitted(self):
        rows = [
            positional_row(name="ok"),
            positional_row(name="inf", lon="Infinity"),
            positional_row(name="nan", lat=float("nan")),
        ]
        features = to_feature_collection(records(*rows))["features"]

        assert [f["properties"]["nombre"] for f in features] == ["ok"]
        for feature in features:
            assert all(math.isfinite(c) for c in feature["geometry"]["coordinates"])
