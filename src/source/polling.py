"""Time-windowed polling driver forwarding fetched records to a collector."""

import asyncio
from typing import Awaitable, Callable, Optional

from src.collector.capabilities import (
    Collector,
    Fetch,
    require_method,
    require_positive_number,
    resolve,
)
from src.models.data_models import Idle, Polling, SourceState, TimeWindow
from src.models.errors import ConfigurationError
from src.timing.clock import Clock, require_clock
from src.timing.timer import Timer


class PollingSource:
    """
    Polls a fetch function on a fixed interval and forwards the results.

    Each tick asks for the records in ``[since, until)``, where ``since`` is
    the previous tick's ``until`` (or the clock reading at ``start()``), so
    consecutive windows neither overlap nor leave gaps. The window advances
    even when the fetch fails: a failed window is skipped, not re-fetched,
    and the next tick runs on schedule.

    Ticks are sequential. The next interval is measured from the end of the
    previous tick, so a slow fetch or a suspended ``accept()`` pushes later
    ticks back rather than starting a second fetch alongside it. Windows stay
    contiguous either way; they just grow by the time the tick took.

    Example:
        async def fetch(since, until):
            return await api.query(since, until)

        source = PollingSource(fetch, 10, collector, SystemClock())
        source.start()
        ...
        source.stop()
    """

    def __init__(
        self,
        fetch: Fetch,
        interval: float,
        collector: Collector,
        clock: Clock,
        logger=None,
        sleeper: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Initialize polling source.

        Args:
            fetch: Async function(since_ms, until_ms) returning a sequence of records
            interval: Seconds between polls
            collector: Downstream collector with accept()
            clock: Clock with millis() used to build time windows
            logger: Optional structured logger
            sleeper: Async sleep function (default: asyncio.sleep)

        Raises:
            ConfigurationError: If fetch is not callable, interval is not
                positive, or a capability is missing
        """
        if not callable(fetch):
            raise ConfigurationError("Fetch must be a function")
        self.interval = require_positive_number(interval, "Interval")
        require_method(collector, "accept", "Collector must have an accept() method")
        self.clock = require_clock(clock)
        self.fetch = fetch
        self.collector = collector
        self.logger = logger
        self._sleep = sleeper
        self._state: SourceState = Idle()
        self._since = self.clock.millis()
        self._window: Optional[TimeWindow] = None

    @property
    def polling(self) -> bool:
        return isinstance(self._state, Polling)

    @property
    def window(self) -> Optional[TimeWindow]:
        """Window requested by the most recent tick, if any."""
        return self._window

    def start(self) -> None:
        """Begin polling; the first fetch happens one interval from now."""
        if isinstance(self._state, Polling):
            return
        self._since = self.clock.millis()
        timer = Timer(
            self.interval,
            self._poll,
            repeat=True,
            sleeper=self._sleep,
            name="polling-source-tick",
        )
        self._state = Polling(timer=timer)
        timer.start()
        if self.logger:
            self.logger.log("poll_start", interval=self.interval, since=self._since)

    def stop(self) -> None:
        """Stop polling. Safe to call when never started or already stopped."""
        if not isinstance(self._state, Polling):
            return
        self._state.timer.cancel()
        self._state = Idle()
        if self.logger:
            self.logger.log("poll_stop")

    async def _poll(self) -> None:
        state = self._state
        if not isinstance(state, Polling):
            return

        window = TimeWindow(since=self._since, until=self.clock.millis())
        self._since = window.until
        self._window = window

        try:
            records = await resolve(self.fetch(window.since, window.until))
        except Exception as exc:
            if self.logger:
                self.logger.poll_error(
                    since=window.since, until=window.until, error=str(exc)
                )
            raise

        # Stopped (or restarted) while the fetch was in flight.
        if self._state is not state:
            return

        if self.logger:
            self.logger.poll_tick(
                since=window.since, until=window.until, records=len(records)
            )
        for record in records:
            # accept() may suspend (e.g. on a size-triggered write); stop()
            # during that suspension drops the rest of the window.
            if self._state is not state:
                return
            await resolve(self.collector.accept(record))
