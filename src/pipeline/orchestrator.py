"""Pipeline orchestrator wiring a polling source to a batched sink."""

import asyncio
import time
from typing import Any, List, Optional, Sequence

from src.collector.batch import BatchCollector
from src.collector.capabilities import Fetch, Sink, resolve
from src.collector.timed_batch import TimedBatch
from src.models.config import StreamConfig
from src.models.data_models import RunSummary
from src.monitoring.logger import StructuredLogger
from src.pipeline.output import JsonLinesSink
from src.resilience.circuit_breaker import CircuitBreaker
from src.source.polling import PollingSource
from src.source.synthetic import SyntheticFetch
from src.timing.clock import Clock, SystemClock


class _CountingFetch:
    """Fetch wrapper recording how many records and errors went through."""

    def __init__(self, fetch: Fetch):
        self._fetch = fetch
        self.records = 0
        self.errors = 0

    async def __call__(self, since: int, until: int) -> Sequence[Any]:
        try:
            result = await resolve(self._fetch(since, until))
        except Exception:
            self.errors += 1
            raise
        self.records += len(result)
        return result


class _CountingSink:
    """Sink wrapper recording successful and failed writes."""

    def __init__(self, sink: Sink):
        self._sink = sink
        self.records = 0
        self.batches = 0
        self.failures = 0

    async def write(self, records: List[Any]) -> None:
        try:
            await resolve(self._sink.write(records))
        except Exception:
            self.failures += 1
            raise
        self.batches += 1
        self.records += len(records)


class PipelineOrchestrator:
    """Orchestrates source → timed batch → batch → sink for one run."""

    def __init__(
        self,
        config: StreamConfig,
        clock: Optional[Clock] = None,
        fetch: Optional[Fetch] = None,
        sink: Optional[Sink] = None,
    ):
        """
        Initialize orchestrator with pipeline configuration.

        Args:
            config: Pipeline configuration object
            clock: Clock for windows and circuit timeouts (default: SystemClock)
            fetch: Fetch capability (default: SyntheticFetch from config)
            sink: Sink capability (default: JsonLinesSink at config.output_path)
        """
        self.config = config
        self.clock = clock or SystemClock()
        self.logger = StructuredLogger(level=config.log_level)
        self.fetch = _CountingFetch(fetch or SyntheticFetch(
            records_per_poll=config.records_per_poll,
            error_rate=config.fetch_error_rate,
            random_seed=config.random_seed,
        ))
        self.sink = _CountingSink(sink or JsonLinesSink(str(config.output_path)))

        self.circuit_breaker = CircuitBreaker(
            failure_threshold=config.circuit_failure_threshold,
            timeout_seconds=config.circuit_timeout,
            clock=self.clock,
            logger=self.logger,
        )
        self.batch = BatchCollector(
            self.sink, config.batch_size, self.circuit_breaker, logger=self.logger
        )
        self.collector = TimedBatch(self.batch, config.flush_interval, logger=self.logger)
        self.source = PollingSource(
            self.fetch,
            config.poll_interval,
            self.collector,
            self.clock,
            logger=self.logger,
        )

    async def run(self) -> RunSummary:
        """
        Run the pipeline for ``config.run_duration`` seconds.

        The source is stopped first, then pending records get one final
        flush. A failed final flush is logged rather than raised; whatever
        is still pending afterwards is discarded and reported.

        Returns:
            RunSummary with throughput and failure counts
        """
        started = time.monotonic()
        self.logger.log(
            "pipeline_start",
            duration=self.config.run_duration,
            batch_size=self.config.batch_size,
        )

        self.source.start()
        try:
            await asyncio.sleep(self.config.run_duration)
        finally:
            self.source.stop()

        try:
            await self.collector.flush()
        except Exception as exc:
            self.logger.log("final_flush_failed", error=str(exc))

        discarded = len(self.batch.pending)
        self.collector.stop()

        summary = RunSummary(
            records_fetched=self.fetch.records,
            records_written=self.sink.records,
            batches_written=self.sink.batches,
            failed_writes=self.sink.failures,
            fetch_errors=self.fetch.errors,
            records_discarded=discarded,
            circuit_state=self.circuit_breaker.state,
            elapsed_seconds=time.monotonic() - started,
            output_path=str(self.config.output_path),
        )
        self.logger.log("pipeline_complete", **summary.to_dict())
        return summary
