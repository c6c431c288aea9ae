"""Summarise a dumped DENUE GeoJSON file.

Usage:
    python -m denueworker.analytics.report data/denue_leon_full_....geojson
    python -m denueworker.analytics.report points.geojson --region zone.geojson
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any

from .region import clip_features
from .stats import basic_stats, class_stats, colony_stats

logger = logging.getLogger(__name__)


def _load_json(path: Path) -> Any:
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def build_report(
    collection: dict[str, Any], region: dict[str, Any] | None = None
) -> dict[str, Any]:
    """KPIs, class and colony counts, optionally clipped to a region."""
    total = len(collection.get("features") or [])
    if region is not None:
        collection = clip_features(collection, region)

    report = {
        "kpis": basic_stats(collection),
        "classes": class_stats(collection)["classes"][:15],
        "colonies": colony_stats(collection),
    }
    if region is not None:
        report["region"] = {
            "inside": len(collection["features"]),
            "total": total,
        }
    return report


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="DENUE point statistics")
    parser.add_argument("geojson", type=Path, help="FeatureCollection to summarise")
    parser.add_argument("--region", type=Path, help="Polygon GeoJSON to clip to")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        collection = _load_json(args.geojson)
        region = _load_json(args.region) if args.region else None
        report = build_report(collection, region)
    except (OSError, ValueError) as e:
        logger.error(f"Cannot build report: {e}")
        return 1

    print(json.dumps(report, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
