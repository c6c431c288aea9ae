"""
Harvester configuration.

Contains settings for:
- Tiling (mode, city radius, step)
- Attempt budgets for the first and second pass
- Circuit breaker thresholds
- Post-merge filters (sector, limit)
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator

# León, Guanajuato
ORIGIN_LAT = 21.12908
ORIGIN_LON = -101.67374

MAX_RADIUS_M = 5000  # Largest radius the DENUE API accepts

FAST_CITY_KM = 8.0
FULL_CITY_KM = 18.0


class BreakerConfig(BaseModel):
    """Configuration for the failure-streak circuit breaker."""

    threshold: int = Field(default=3, ge=1, description="Bad calls in a row to trip")
    cooldown_ms: int = Field(
        default=90_000, ge=0, description="Pipeline pause when tripped (90s)"
    )
    max_delay_ms: int = Field(
        default=2000, ge=0, description="Ceiling for the doubled inter-call delay"
    )


class HarvestConfig(BaseModel):
    """Configuration for a single harvest run."""

    mode: Literal["fast", "full"] = Field(default="fast")
    limit: Optional[int] = Field(default=None, gt=0, description="Cap on output rows")
    sector: str = Field(default="0", description="Sector code, '0' = no filter")
    city_km: Optional[float] = Field(
        default=None, gt=0, description="Half-width of the tiled area (km)"
    )
    step_km: float = Field(default=5.0, gt=0, description="Lattice spacing (km)")

    origin_lat: float = Field(default=ORIGIN_LAT, ge=-90, le=90)
    origin_lon: float = Field(default=ORIGIN_LON, ge=-180, le=180)
    radius_m: int = Field(default=MAX_RADIUS_M, gt=0)

    first_tries: int = Field(default=4, ge=1, description="Attempts per call, pass 1")
    retry_tries: int = Field(default=6, ge=1, description="Attempts per call, pass 2")
    seed_center: bool = Field(
        default=False, description="Query the origin once before the sweep"
    )

    breaker: BreakerConfig = Field(default_factory=BreakerConfig)

    @model_validator(mode="after")
    def _apply_mode_defaults(self) -> "HarvestConfig":
        if self.city_km is None:
            self.city_km = FULL_CITY_KM if self.mode == "full" else FAST_CITY_KM
        self.radius_m = min(self.radius_m, MAX_RADIUS_M)
        self.sector = str(self.sector).strip() or "0"
        return self

    @property
    def tag(self) -> str:
        """Filename fragment encoding mode, sector and limit."""
        tag = self.mode
        if self.sector != "0":
            tag += f"_sc{self.sector}"
        if self.limit:
            tag += f"_lim{self.limit}"
        return tag
