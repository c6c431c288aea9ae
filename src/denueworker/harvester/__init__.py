"""
Harvester module for the DENUE León dump.

Components:
- grid: Lattice of query centres
- client: DENUE API calls with timeout, retries and non-JSON tolerance
- breaker: Failure-streak circuit breaker and pacing
- merger: Dedup, sector filter, limit, GeoJSON
- orchestrator: Sweep -> Retry -> Merge -> Write flow
"""

from .config import BreakerConfig, HarvestConfig
from .orchestrator import HarvestOrchestrator, run_harvest

__all__ = [
    "BreakerConfig",
    "HarvestConfig",
    "HarvestOrchestrator",
    "run_harvest",
]
