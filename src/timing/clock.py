"""Clock capability used for circuit timeouts and polling windows."""

import time
from typing import Any, Protocol

from src.models.errors import ConfigurationError


class Clock(Protocol):
    """Clock interface for testable time management."""

    def millis(self) -> int:
        """Return current time in milliseconds."""
        ...


class SystemClock:
    """Default clock implementation using wall-clock time."""

    def millis(self) -> int:
        """Return milliseconds since the epoch."""
        return time.time_ns() // 1_000_000


def require_clock(clock: Any) -> Clock:
    """Reject objects without a callable ``millis()``."""
    if clock is None or not callable(getattr(clock, "millis", None)):
        raise ConfigurationError("Clock must have a millis() method")
    return clock
