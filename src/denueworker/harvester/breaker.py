"""
Circuit breaker and pacing for the sweep.

A streak of bad calls is read as the whole upstream service degrading,
not as one bad tile: the pipeline pauses for a cooldown and the delay
between calls is doubled for the rest of the run.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from .config import BreakerConfig
from .types import FetchOutcome

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]


class CircuitBreaker:
    """Tracks consecutive bad outcomes and owns the inter-call delay."""

    def __init__(
        self,
        base_delay_ms: int,
        config: Optional[BreakerConfig] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.config = config or BreakerConfig()
        self.delay_ms = base_delay_ms
        self.consecutive_bad = 0
        self.trips = 0
        self._sleep = sleep

    def record(self, outcome: FetchOutcome) -> bool:
        """Update the streak. Returns True when the breaker should trip."""
        if outcome.is_bad:
            self.consecutive_bad += 1
        else:
            self.consecutive_bad = 0
        return self.consecutive_bad >= self.config.threshold

    def _slow_down(self) -> None:
        # Never lowers an already larger delay
        doubled = min(self.delay_ms * 2, self.config.max_delay_ms)
        self.delay_ms = max(self.delay_ms, doubled)

    async def trip(self) -> None:
        """Pause the pipeline, then pace every later call more slowly."""
        self.trips += 1
        logger.warning(
            f"Too many failures in a row ({self.consecutive_bad}). "
            f"Pausing {self.config.cooldown_ms / 1000:.0f}s and slowing down"
        )
        await self._sleep(self.config.cooldown_ms / 1000)
        self._slow_down()
        self.consecutive_bad = 0
        logger.info(f"Inter-call delay is now {self.delay_ms}ms")

    async def pace(self, factor: float = 1.0) -> None:
        await self._sleep(self.delay_ms * factor / 1000)

    async def settle(self, outcome: FetchOutcome) -> bool:
        """Record one sweep call, trip if needed, then wait the delay.

        Returns True if the breaker tripped on this call.
        """
        tripped = self.record(outcome)
        if tripped:
            await self.trip()
        await self.pace()
        return tripped
