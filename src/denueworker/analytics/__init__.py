"""Region clipping and statistics over dumped DENUE points."""

from .region import clip_features, point_in_polygon
from .stats import basic_stats, class_stats, colony_stats

__all__ = [
    "basic_stats",
    "class_stats",
    "clip_features",
    "colony_stats",
    "point_in_polygon",
]
