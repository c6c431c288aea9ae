"""Data types shared by the harvest pipeline."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

# Notes attached to EMPTY outcomes
NON_JSON_EMPTY = "non_json_empty"  # Recognised "no data" text (HTML, messages)
NON_JSON_GAVE_UP = "non_json_last_try_empty"  # Unexplained text, attempts exhausted
TIMEOUT_OR_NETWORK = "timeout_or_network"


@dataclass(frozen=True)
class QueryCenter:
    """One tile centre of the sweep."""

    lat: float
    lon: float

    def __str__(self) -> str:
        return f"{self.lat:.5f},{self.lon:.5f}"


class OutcomeKind(str, Enum):
    """Variants of a single upstream call result."""

    SUCCESS = "success"  # JSON array, possibly with zero rows
    EMPTY = "empty"  # Non-JSON text accepted as "no data"
    FAILURE = "failure"  # Timeout / network error after every attempt


@dataclass
class FetchOutcome:
    """Result of one DENUE call. Never mixes rows with a failure."""

    kind: OutcomeKind
    rows: List[Any] = field(default_factory=list)
    note: Optional[str] = None
    error: Optional[str] = None
    preview: str = ""
    elapsed_ms: int = 0
    attempts: int = 0

    @classmethod
    def success(cls, rows: List[Any], **kwargs: Any) -> "FetchOutcome":
        return cls(kind=OutcomeKind.SUCCESS, rows=list(rows), **kwargs)

    @classmethod
    def empty(cls, note: str, **kwargs: Any) -> "FetchOutcome":
        return cls(kind=OutcomeKind.EMPTY, note=note, **kwargs)

    @classmethod
    def failure(cls, error: str, **kwargs: Any) -> "FetchOutcome":
        kwargs.setdefault("note", TIMEOUT_OR_NETWORK)
        return cls(kind=OutcomeKind.FAILURE, error=error, **kwargs)

    @property
    def is_success(self) -> bool:
        return self.kind == OutcomeKind.SUCCESS

    @property
    def is_non_json(self) -> bool:
        """True for EMPTY outcomes caused by a non-JSON body."""
        return (
            self.kind == OutcomeKind.EMPTY
            and self.note is not None
            and self.note.startswith("non_json")
        )

    @property
    def is_bad(self) -> bool:
        """Counts towards the circuit breaker streak."""
        return self.kind == OutcomeKind.FAILURE or self.is_non_json


class RunPhase(str, Enum):
    """Stages of a harvest run, entered strictly in this order."""

    INIT = "init"
    CENTER_SWEEP = "center_sweep"
    RETRY_SWEEP = "retry_sweep"
    MERGE = "merge"
    WRITE = "write"
    DONE = "done"


PHASE_ORDER = list(RunPhase)


@dataclass
class RunStats:
    """Call counters reported at the end of a run."""

    ok_calls: int = 0
    empty_calls: int = 0
    non_json_calls: int = 0
    error_calls: int = 0
    retried: int = 0
    recovered: int = 0
    breaker_trips: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "ok": self.ok_calls,
            "empty": self.empty_calls,
            "non_json": self.non_json_calls,
            "errors": self.error_calls,
            "retried": self.retried,
            "recovered": self.recovered,
            "breaker_trips": self.breaker_trips,
        }


@dataclass
class RunState:
    """Everything one invocation accumulates. Not persisted."""

    phase: RunPhase = RunPhase.INIT
    records: List[Any] = field(default_factory=list)
    retry_queue: List[QueryCenter] = field(default_factory=list)
    stats: RunStats = field(default_factory=RunStats)
    started_at: float = field(default_factory=time.monotonic)

    def advance(self, phase: RunPhase) -> None:
        """Move to a later phase. Phases are never re-entered."""
        if PHASE_ORDER.index(phase) <= PHASE_ORDER.index(self.phase):
            raise RuntimeError(f"Cannot move from {self.phase.value} to {phase.value}")
        self.phase = phase

    @property
    def elapsed_s(self) -> float:
        return time.monotonic() - self.started_at
