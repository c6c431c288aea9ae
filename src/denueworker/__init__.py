"""
DenueWorker - DENUE business directory tooling for León, Guanajuato.

Provides:
- harvester: Offline dump of DENUE establishments into JSON + GeoJSON
- analytics: Region clipping and statistics over the dumped points

Usage:
    from denueworker import HarvestConfig, run_harvest

    result = await run_harvest(
        HarvestConfig(mode="fast"),
        token=get_config().inegi_token,
        base_url=get_config().denue_api_url,
    )
"""

__version__ = "0.1.0"

from .config import WorkerConfig, get_config
from .harvester import HarvestConfig, HarvestOrchestrator, run_harvest

__all__ = [
    "__version__",
    # Config
    "WorkerConfig",
    "get_config",
    # Harvester
    "HarvestConfig",
    "HarvestOrchestrator",
    "run_harvest",
]
