"""Artifact naming and writing."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Sequence

from .config import HarvestConfig
from .merger import raw_rows, to_feature_collection
from .records import BusinessRecord

logger = logging.getLogger(__name__)

FILE_PREFIX = "denue_leon"


@dataclass(frozen=True)
class Artifacts:
    raw_path: Path
    geojson_path: Path


def timestamp(now: Optional[datetime] = None) -> str:
    """Filesystem-safe UTC ISO timestamp, e.g. 2026-10-17T21-56-00-123Z."""
    now = now or datetime.now(timezone.utc)
    iso = now.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return iso.replace("+00:00", "Z").replace(":", "-").replace(".", "-")


def artifact_basename(config: HarvestConfig, now: Optional[datetime] = None) -> str:
    return f"{FILE_PREFIX}_{config.tag}_{timestamp(now)}"


def write_artifacts(
    records: Sequence[BusinessRecord],
    config: HarvestConfig,
    output_dir: Path | str,
    now: Optional[datetime] = None,
) -> Artifacts:
    """Write the raw rows (.json) and the point collection (.geojson).

    Filesystem errors propagate; nothing is cleaned up on failure.
    """
    out_dir = Path(output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    base = artifact_basename(config, now)
    raw_path = out_dir / f"{base}.json"
    geojson_path = out_dir / f"{base}.geojson"

    raw_path.write_text(
        json.dumps(raw_rows(records), ensure_ascii=False, indent=2), encoding="utf-8"
    )
    geojson_path.write_text(
        json.dumps(to_feature_collection(records), ensure_ascii=False),
        encoding="utf-8",
    )

    logger.debug(f"Wrote {len(records)} records to {raw_path} and {geojson_path}")
    return Artifacts(raw_path=raw_path, geojson_path=geojson_path)
