"""
Configuration for DenueWorker.

Uses Pydantic for validation and environment loading.
Per-run harvest options live in denueworker.harvester.config.
"""

import logging
import os
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_API_URL = "https://www.inegi.org.mx/app/api/denue/v1/consulta/Buscar/todos"


class WorkerConfig(BaseSettings):
    """Process-level configuration for DenueWorker.

    Loads from environment variables (and .env) using exact names.
    """

    model_config = SettingsConfigDict(
        env_prefix="",  # No prefix, use exact names
        env_file=".env",
        extra="ignore",
    )

    log_level: str = Field(default="INFO", description="Root logging level")

    # DENUE API
    inegi_token: str = Field(default="", description="INEGI DENUE API token")
    denue_api_url: str = Field(
        default=DEFAULT_API_URL, description="DENUE Buscar/todos endpoint"
    )
    denue_user_agent: str = Field(default="leon-dump/1.2")

    # Pacing
    fetch_timeout_ms: int = Field(
        default=30000, gt=0, description="Absolute timeout per request (ms)"
    )
    throttle_ms: int = Field(
        default=500, ge=0, description="Base pause between requests (ms)"
    )

    # Artifacts
    denue_output_dir: str = Field(default="data", description="Output directory")

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"unknown log level: {value}")
        return level

    @property
    def fetch_timeout_s(self) -> float:
        return self.fetch_timeout_ms / 1000.0

    @classmethod
    def from_env(cls) -> "WorkerConfig":
        """Load configuration from environment variables."""
        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            inegi_token=os.getenv("INEGI_TOKEN", "").strip(),
            denue_api_url=os.getenv("DENUE_API_URL", DEFAULT_API_URL),
            denue_user_agent=os.getenv("DENUE_USER_AGENT", "leon-dump/1.2"),
            fetch_timeout_ms=int(os.getenv("FETCH_TIMEOUT_MS", "30000")),
            throttle_ms=int(os.getenv("THROTTLE_MS", "500")),
            denue_output_dir=os.getenv("DENUE_OUTPUT_DIR", "data"),
        )


@lru_cache(maxsize=1)
def get_config() -> WorkerConfig:
    """Return the cached process configuration."""
    return WorkerConfig.from_env()
