"""Structured logging for pipeline monitoring."""

import json
import logging
from typing import Optional


class StructuredLogger:
    """Structured logger with uniform schema."""

    def __init__(self, name: str = "pipeline", level: str = "INFO"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper()))

        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter('%(message)s'))
            self.logger.addHandler(handler)

    def log(self, event: str, level: int = logging.INFO, **kwargs) -> None:
        """
        Log structured event.

        Standard keys: event, batch_size, pending, cb_state, failures,
                      since, until, records, interval, error
        """
        log_data = {"event": event, **kwargs}
        self.logger.log(level, json.dumps(log_data, default=str))

    def batch_flush(self, batch_size: int) -> None:
        self.log("batch_flush", batch_size=batch_size)

    def batch_flush_failed(self, batch_size: int, error: str) -> None:
        self.log("batch_flush_failed", level=logging.ERROR, batch_size=batch_size, error=error)

    def batch_flush_denied(self, pending: int) -> None:
        self.log("batch_flush_denied", level=logging.WARNING, pending=pending)

    def circuit_breaker_state(self, state: str, failures: int) -> None:
        self.log("circuit_breaker", level=logging.WARNING, cb_state=state, failures=failures)

    def timer_flush(self, interval: float) -> None:
        self.log("timer_flush", level=logging.DEBUG, interval=interval)

    def poll_tick(self, since: int, until: int, records: int) -> None:
        self.log("poll_tick", level=logging.DEBUG, since=since, until=until, records=records)

    def poll_error(self, since: int, until: int, error: Optional[str]) -> None:
        self.log("poll_error", level=logging.ERROR, since=since, until=until, error=error)
