"""Time sources and timers."""

from .clock import Clock, SystemClock, require_clock
from .timer import Timer

__all__ = ["Clock", "SystemClock", "Timer", "require_clock"]
