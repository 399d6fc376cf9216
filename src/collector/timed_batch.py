"""Decorator adding an idle-timeout flush to any collector."""

import asyncio
from typing import Any, Awaitable, Callable, Optional

from src.collector.capabilities import (
    Collector,
    require_method,
    require_positive_number,
    resolve,
)
from src.timing.timer import Timer


class TimedBatch:
    """
    Wraps a collector and flushes it ``interval`` seconds after the first
    record accepted since the last flush.

    The timer is armed once and never extended: later accepts inside the same
    window do not push the deadline back. A manual ``flush()`` or ``stop()``
    cancels the pending timer, so a batch is never flushed twice.
    """

    def __init__(
        self,
        origin: Collector,
        interval: float,
        logger=None,
        sleeper: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Initialize timed decorator.

        Args:
            origin: Wrapped collector with accept(), flush() and stop()
            interval: Seconds between the first accept and the automatic flush
            logger: Optional structured logger
            sleeper: Async sleep function (default: asyncio.sleep)

        Raises:
            ConfigurationError: If origin lacks a method or interval is not positive
        """
        require_method(origin, "accept", "Origin must have an accept() method")
        require_method(origin, "flush", "Origin must have a flush() method")
        require_method(origin, "stop", "Origin must have a stop() method")
        self.interval = require_positive_number(interval, "Interval")
        self.origin = origin
        self.logger = logger
        self._sleep = sleeper
        self._timer: Optional[Timer] = None

    @property
    def scheduled(self) -> bool:
        return self._timer is not None

    async def accept(self, record: Any) -> None:
        """Delegate the record, then arm the flush timer if it is idle."""
        await resolve(self.origin.accept(record))
        self._schedule()

    async def flush(self) -> None:
        """Cancel the pending timer and flush the wrapped collector."""
        self._cancel()
        await resolve(self.origin.flush())

    def stop(self) -> None:
        """Cancel the pending timer and stop the wrapped collector."""
        self._cancel()
        self.origin.stop()

    def _schedule(self) -> None:
        if self._timer is not None:
            return
        timer = Timer(self.interval, self._fire, sleeper=self._sleep, name="timed-batch-flush")
        self._timer = timer
        timer.start()

    def _cancel(self) -> None:
        timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()

    async def _fire(self) -> None:
        # Clear scheduled state before flushing so accepts made during the
        # flush arm a new timer.
        self._timer = None
        if self.logger:
            self.logger.timer_flush(interval=self.interval)
        try:
            await resolve(self.origin.flush())
        except Exception as exc:
            if self.logger:
                self.logger.log("timer_flush_failed", error=str(exc))
            raise
