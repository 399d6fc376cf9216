"""Core data models for the streaming pipeline."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union


class CircuitState(Enum):
    """Circuit breaker states."""
    CLOSED = "closed"
    OPEN = "open"


@dataclass(frozen=True)
class Closed:
    """Circuit allows operations."""

    @property
    def kind(self) -> CircuitState:
        return CircuitState.CLOSED


@dataclass(frozen=True)
class Open:
    """Circuit blocks operations until ``timeout`` seconds pass after ``opened_at``."""
    opened_at: int  # milliseconds
    timeout: float  # seconds

    @property
    def kind(self) -> CircuitState:
        return CircuitState.OPEN

    def expired(self, now: int) -> bool:
        return (now - self.opened_at) / 1000 >= self.timeout


BreakerState = Union[Closed, Open]


@dataclass(frozen=True)
class Idle:
    """Source is not polling."""


@dataclass(frozen=True)
class Polling:
    """Source is polling; ``timer`` drives the ticks."""
    timer: Any


SourceState = Union[Idle, Polling]


@dataclass(frozen=True)
class TimeWindow:
    """Half-open ``[since, until)`` window in milliseconds covered by one poll."""
    since: int
    until: int

    @property
    def duration_ms(self) -> int:
        return self.until - self.since


@dataclass
class RunSummary:
    """Result of one orchestrated pipeline run."""
    records_fetched: int
    records_written: int
    batches_written: int
    failed_writes: int
    fetch_errors: int
    records_discarded: int
    circuit_state: CircuitState
    elapsed_seconds: float
    output_path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "records_fetched": self.records_fetched,
            "records_written": self.records_written,
            "batches_written": self.batches_written,
            "failed_writes": self.failed_writes,
            "fetch_errors": self.fetch_errors,
            "records_discarded": self.records_discarded,
            "circuit_state": self.circuit_state.value,
            "elapsed_seconds": round(self.elapsed_seconds, 2),
            "output_path": self.output_path,
        }
