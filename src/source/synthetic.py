"""Synthetic fetch function producing fake records for demo runs."""

import random
from typing import Any, Dict, List, Optional

from src.models.errors import ConfigurationError, FetchError


class SyntheticFetch:
    """
    Fetch capability that fabricates records inside the requested window.

    Mirrors a flaky upstream: with probability ``error_rate`` a call raises
    FetchError instead of returning records. Seeded for reproducible runs.
    """

    def __init__(
        self,
        records_per_poll: int = 10,
        error_rate: float = 0.0,
        random_seed: Optional[int] = None,
    ):
        if isinstance(records_per_poll, bool) or not isinstance(records_per_poll, int) or records_per_poll < 0:
            raise ConfigurationError(
                f"records_per_poll must be a non-negative integer, got: {records_per_poll!r}"
            )
        if not 0.0 <= error_rate <= 1.0:
            raise ConfigurationError(f"error_rate must be between 0 and 1, got: {error_rate}")
        self.records_per_poll = records_per_poll
        self.error_rate = error_rate
        self._rng = random.Random(random_seed)
        self._sequence = 0
        self.calls = 0
        self.errors = 0

    async def __call__(self, since: int, until: int) -> List[Dict[str, Any]]:
        self.calls += 1
        if self.error_rate > 0 and self._rng.random() < self.error_rate:
            self.errors += 1
            raise FetchError(f"Simulated upstream failure for window [{since}, {until})")

        span = max(until - since, 1)
        records = []
        for _ in range(self.records_per_poll):
            self._sequence += 1
            records.append({
                "seq": self._sequence,
                "ts": since + self._rng.randrange(span),
                "value": round(self._rng.uniform(0, 100), 3),
            })
        # Upstream query APIs return entries in time order.
        records.sort(key=lambda r: (r["ts"], r["seq"]))
        return records
