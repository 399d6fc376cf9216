"""Record sources."""

from .polling import PollingSource
from .synthetic import SyntheticFetch

__all__ = ["PollingSource", "SyntheticFetch"]
