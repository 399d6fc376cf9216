"""Cancellable delayed and recurring callbacks on the asyncio event loop."""

import asyncio
from typing import Awaitable, Callable, Optional

from src.models.errors import ConfigurationError


class Timer:
    """
    One-shot or recurring timer backed by an asyncio task.

    Each arm gets a generation number. ``cancel()`` bumps the generation, so a
    wake-up that was already queued when the timer was cancelled sees a stale
    generation and does nothing. Cancellation is idempotent and safe before
    ``start()`` or after the timer has fired.

    A callback that raises has no caller to report to; the exception is handed
    to the event loop exception handler and a recurring timer keeps ticking.

    Recurring ticks never overlap: the next sleep starts only after the
    callback returns, so the effective period is ``interval`` plus the time
    the callback took.
    """

    def __init__(
        self,
        interval: float,
        callback: Callable[[], Awaitable[None]],
        repeat: bool = False,
        sleeper: Callable[[float], Awaitable[None]] = asyncio.sleep,
        name: Optional[str] = None,
    ):
        """
        Initialize timer.

        Args:
            interval: Seconds between arming and firing (and between ticks)
            callback: Coroutine function invoked on each fire
            repeat: Keep firing every ``interval`` until cancelled
            sleeper: Async sleep function (default: asyncio.sleep)
            name: Task name, used in error reports
        """
        if isinstance(interval, bool) or not isinstance(interval, (int, float)) or interval <= 0:
            raise ConfigurationError(f"Interval must be a positive number, got: {interval}")
        self.interval = interval
        self.repeat = repeat
        self.name = name or "timer"
        self._callback = callback
        self._sleep = sleeper
        self._generation = 0
        self._task: Optional[asyncio.Task] = None
        self._firing = False

    @property
    def active(self) -> bool:
        """True while armed and not yet fired (or, for recurring timers, until cancelled)."""
        return self._task is not None

    def start(self) -> None:
        """Arm the timer. No-op when already armed; needs a running event loop."""
        if self._task is not None:
            return
        self._generation += 1
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run(self._generation), name=self.name)

    def cancel(self) -> None:
        """Disarm the timer. Safe to call any number of times."""
        self._generation += 1
        task, self._task = self._task, None
        if task is None or task.done():
            return
        # A callback in progress is allowed to finish; the stale generation
        # stops a recurring timer once it returns.
        if self._firing or task is asyncio.current_task():
            return
        task.cancel()

    async def _run(self, generation: int) -> None:
        while True:
            await self._sleep(self.interval)
            if generation != self._generation:
                return
            if not self.repeat:
                self._task = None

            self._firing = True
            try:
                await self._callback()
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                self._report(exc)
            finally:
                self._firing = False

            if not self.repeat or generation != self._generation:
                return

    def _report(self, exc: Exception) -> None:
        loop = asyncio.get_running_loop()
        loop.call_exception_handler({
            "message": f"Unhandled exception in {self.name} callback",
            "exception": exc,
            "task": asyncio.current_task(),
        })
