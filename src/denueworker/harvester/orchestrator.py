"""
Harvest Orchestrator.

Runs one DENUE dump from start to finish:
Init -> CenterSweep -> RetrySweep -> Merge -> Write -> Done.

Calls are strictly sequential. The retry sweep only runs when some
centres came back with unexplained non-JSON bodies.
"""

import asyncio
import logging
import random
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol

from .breaker import CircuitBreaker
from .config import HarvestConfig
from .grid import shuffled_centers
from .merger import merge_records
from .output import Artifacts, write_artifacts
from .records import BusinessRecord, RecordScore, count_filled_fields, from_row
from .types import FetchOutcome, OutcomeKind, QueryCenter, RunPhase, RunState

logger = logging.getLogger(__name__)


class Fetcher(Protocol):
    async def call(
        self, center: QueryCenter, radius_m: int = ..., tries: int = ...
    ) -> FetchOutcome: ...


class HarvestOrchestrator:
    """
    Orchestrates the Sweep -> Retry -> Merge -> Write flow.

    - One RunState per instance, never reused across runs
    - The circuit breaker owns pacing for the first sweep
    - The retry sweep runs at half speed with a larger attempt budget
    """

    def __init__(
        self,
        config: HarvestConfig,
        client: Fetcher,
        output_dir: Path | str = "data",
        base_delay_ms: int = 500,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        rng: Optional[random.Random] = None,
        score: RecordScore = count_filled_fields,
    ):
        self.config = config
        self.client = client
        self.output_dir = Path(output_dir)
        self.rng = rng
        self.score = score
        self.state = RunState()
        self.breaker = CircuitBreaker(base_delay_ms, config.breaker, sleep)

    async def run(self) -> Dict[str, Any]:
        """Run the whole job.

        Returns:
            Dict with call counters, record counts and artifact paths.
        """
        cfg = self.config
        logger.info(
            f"DENUE dump mode={cfg.mode} cityKm={cfg.city_km} stepKm={cfg.step_km} "
            f"sector={cfg.sector} limit={cfg.limit or '∞'} delay={self.breaker.delay_ms}ms"
        )

        self.state.advance(RunPhase.CENTER_SWEEP)
        if cfg.seed_center:
            await self._seed_center()
        centers = shuffled_centers(cfg, self.rng)
        await self._center_sweep(centers)

        if self.state.retry_queue:
            self.state.advance(RunPhase.RETRY_SWEEP)
            await self._retry_sweep()

        self.state.advance(RunPhase.MERGE)
        merged = merge_records(
            self.state.records, sector=cfg.sector, limit=cfg.limit, score=self.score
        )

        self.state.advance(RunPhase.WRITE)
        artifacts = write_artifacts(merged, cfg, self.output_dir)

        self.state.advance(RunPhase.DONE)
        return self._report(centers, merged, artifacts)

    def _ingest(self, rows: List[Any]) -> None:
        self.state.records.extend(from_row(row) for row in rows)

    async def _seed_center(self) -> None:
        """Query the origin once so the city centre is always covered."""
        cfg = self.config
        origin = QueryCenter(lat=cfg.origin_lat, lon=cfg.origin_lon)
        out = await self.client.call(origin, cfg.radius_m, cfg.first_tries)
        if out.is_success:
            self._ingest(out.rows)
            logger.info(f"Centre {origin}: +{len(out.rows)} rows in {out.elapsed_ms}ms")
        elif out.is_non_json:
            logger.warning(f"Centre {origin}: 0 rows ({out.note}) in {out.elapsed_ms}ms")
        else:
            logger.error(f"Centre {origin}: ERROR {out.error}")

    async def _center_sweep(self, centers: List[QueryCenter]) -> None:
        cfg = self.config
        stats = self.state.stats
        total = len(centers)

        for k, center in enumerate(centers, start=1):
            out = await self.client.call(center, cfg.radius_m, cfg.first_tries)
            prefix = f"[{k}/{total}] {center}"

            if out.is_success:
                stats.ok_calls += 1
                if out.rows:
                    self._ingest(out.rows)
                    logger.info(
                        f"{prefix}  +{len(out.rows)} rows  {out.elapsed_ms}ms  "
                        f"(total {len(self.state.records)})"
                    )
                else:
                    stats.empty_calls += 1
                    logger.info(f"{prefix}  +0 rows  {out.elapsed_ms}ms")
            elif out.is_non_json:
                stats.ok_calls += 1
                stats.empty_calls += 1
                stats.non_json_calls += 1
                self.state.retry_queue.append(center)
                logger.info(f"{prefix}  (non-JSON -> empty)  {out.elapsed_ms}ms")
            else:
                stats.error_calls += 1
                logger.info(f"{prefix}  ERROR: {out.error}")

            if await self.breaker.settle(out):
                stats.breaker_trips += 1

    async def _retry_sweep(self) -> None:
        cfg = self.config
        stats = self.state.stats
        queue = self.state.retry_queue
        logger.info(f"Second pass over {len(queue)} non-JSON cells")

        for i, center in enumerate(queue, start=1):
            out = await self.client.call(center, cfg.radius_m, cfg.retry_tries)
            prefix = f"[retry {i}/{len(queue)}] {center}"
            stats.retried += 1

            if out.is_success and out.rows:
                stats.recovered += 1
                self._ingest(out.rows)
                logger.info(
                    f"{prefix}  +{len(out.rows)} rows  {out.elapsed_ms}ms  "
                    f"(total {len(self.state.records)})"
                )
            elif out.kind == OutcomeKind.FAILURE:
                logger.info(f"{prefix}  ERROR: {out.error or 'no details'}")
            else:
                logger.info(f"{prefix}  0 rows (still empty)")

            await self.breaker.pace(factor=2)

    def _report(
        self,
        centers: List[QueryCenter],
        merged: List[BusinessRecord],
        artifacts: Artifacts,
    ) -> Dict[str, Any]:
        stats = self.state.stats
        result = {
            "mode": self.config.mode,
            "sector": self.config.sector,
            "limit": self.config.limit,
            "centers": len(centers),
            "calls": stats.to_dict(),
            "collected": len(self.state.records),
            "records": len(merged),
            "delay_ms": self.breaker.delay_ms,
            "raw_path": str(artifacts.raw_path),
            "geojson_path": str(artifacts.geojson_path),
            "elapsed_s": round(self.state.elapsed_s),
        }

        logger.info("-" * 60)
        logger.info(
            f"Done. OK:{stats.ok_calls} empty:{stats.empty_calls} "
            f"non-JSON:{stats.non_json_calls} errors:{stats.error_calls}"
        )
        logger.info(f"Records after merge: {len(merged)}")
        logger.info(f"RAW:     {artifacts.raw_path}")
        logger.info(f"GeoJSON: {artifacts.geojson_path}")
        logger.info(f"Total time: {result['elapsed_s']}s")
        return result


async def run_harvest(
    config: HarvestConfig,
    token: str,
    base_url: str,
    output_dir: Path | str = "data",
    timeout_s: float = 30.0,
    base_delay_ms: int = 500,
    user_agent: str = "leon-dump/1.2",
) -> Dict[str, Any]:
    """Run one harvest against the live API.

    CLI entry point.
    """
    from .client import DenueClient

    async with DenueClient(
        token=token,
        base_url=base_url,
        timeout_s=timeout_s,
        user_agent=user_agent,
    ) as client:
        orchestrator = HarvestOrchestrator(
            config,
            client,
            output_dir=output_dir,
            base_delay_ms=base_delay_ms,
        )
        return await orchestrator.run()
