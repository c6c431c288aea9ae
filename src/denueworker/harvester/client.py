"""
DENUE API client.

One GET per query centre with an absolute timeout, linear backoff between
attempts and tolerance for non-JSON bodies. Errors never escape
``DenueClient.call``; they are folded into a ``FetchOutcome``.
"""

import asyncio
import json
import logging
import re
import time
from typing import Any, Awaitable, Callable, List, Optional
from urllib.parse import quote

import httpx

from .config import MAX_RADIUS_M
from .types import (
    NON_JSON_EMPTY,
    NON_JSON_GAVE_UP,
    FetchOutcome,
    QueryCenter,
)

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]

BACKOFF_STEP_S = 0.4  # 400 ms * attempt number
PREVIEW_CHARS = 120

_HTML_RE = re.compile(r"^<|<!doctype html", re.IGNORECASE)
_BENIGN_RE = re.compile(
    r"no hay resultados|no results|servicio no disponible|service unavailable"
    r"|tempor|error",
    re.IGNORECASE,
)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Invalid JSON constant: {name}")


def parse_rows(text: str) -> Optional[List[Any]]:
    """Strictly parse a JSON array. Returns None for anything else."""
    try:
        parsed = json.loads(text, parse_constant=_reject_constant)
    except ValueError:
        return None
    if isinstance(parsed, list):
        return parsed
    return None


def is_benign_empty(text: str) -> bool:
    """Non-JSON bodies that the API sends instead of an empty array."""
    stripped = (text or "").strip()
    if not stripped:
        return True
    return bool(_HTML_RE.search(stripped) or _BENIGN_RE.search(stripped))


class DenueClient:
    """Async DENUE Buscar client. One request in flight at a time."""

    def __init__(
        self,
        token: str,
        base_url: str,
        timeout_s: float = 30.0,
        user_agent: str = "leon-dump/1.2",
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        if not token:
            raise ValueError("DENUE token is required")
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self._sleep = sleep
        self._client = httpx.AsyncClient(
            headers={"User-Agent": user_agent},
            timeout=httpx.Timeout(timeout_s),
            transport=transport,
            follow_redirects=True,
        )

    async def __aenter__(self) -> "DenueClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def url_for(self, center: QueryCenter, radius_m: int) -> str:
        radius_m = min(int(radius_m), MAX_RADIUS_M)
        return (
            f"{self.base_url}/{center.lat},{center.lon}/{radius_m}/"
            f"{quote(self.token, safe='')}"
        )

    def masked(self, url: str) -> str:
        """URL safe for logs."""
        return url.replace(quote(self.token, safe=""), "***")

    async def _get_text(self, url: str) -> str:
        response = await self._client.get(url)
        logger.debug(f"HTTP {response.status_code} ({len(response.content)} bytes)")
        return response.text

    async def fetch_text(self, url: str) -> str:
        """GET with an absolute deadline covering connect, headers and body."""
        return await asyncio.wait_for(self._get_text(url), timeout=self.timeout_s)

    async def call(
        self,
        center: QueryCenter,
        radius_m: int = MAX_RADIUS_M,
        tries: int = 4,
    ) -> FetchOutcome:
        """Query one centre.

        Args:
            center: Tile centre.
            radius_m: Search radius, capped at the API maximum.
            tries: Attempt budget for this call.

        Returns:
            SUCCESS with the parsed rows (possibly none), EMPTY with a
            non-JSON note, or FAILURE when every attempt hit a timeout or
            a network error.
        """
        url = self.url_for(center, radius_m)
        logger.debug(f"DENUE {self.masked(url)} tries={tries}")
        last_error = ""
        started = time.monotonic()

        for attempt in range(1, tries + 1):
            try:
                text = await self.fetch_text(url)
            except asyncio.TimeoutError:
                last_error = f"timeout after {self.timeout_s:.0f}s"
                logger.debug(f"{center} attempt {attempt}/{tries}: {last_error}")
            except httpx.HTTPError as e:
                last_error = f"{type(e).__name__}: {e}"
                logger.debug(f"{center} attempt {attempt}/{tries}: {last_error}")
            else:
                rows = parse_rows(text)
                if rows is not None:
                    return FetchOutcome.success(
                        rows, elapsed_ms=_ms_since(started), attempts=attempt
                    )

                preview = text.strip()[:PREVIEW_CHARS]
                if is_benign_empty(text):
                    return FetchOutcome.empty(
                        NON_JSON_EMPTY,
                        preview=preview,
                        elapsed_ms=_ms_since(started),
                        attempts=attempt,
                    )

                if attempt == tries:
                    return FetchOutcome.empty(
                        NON_JSON_GAVE_UP,
                        preview=preview,
                        elapsed_ms=_ms_since(started),
                        attempts=attempt,
                    )
                logger.debug(f"{center} attempt {attempt}/{tries}: unexpected body {preview!r}")

            if attempt < tries:
                await self._sleep(BACKOFF_STEP_S * attempt)

        return FetchOutcome.failure(
            last_error or "unknown error",
            elapsed_ms=_ms_since(started),
            attempts=tries,
        )


def _ms_since(started: float) -> int:
    return int((time.monotonic() - started) * 1000)
