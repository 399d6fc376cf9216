"""Size-triggered batch collector writing to a sink through a circuit breaker."""

from typing import Any, List, Optional

from src.collector.capabilities import (
    Sink,
    require_method,
    require_positive_int,
    resolve,
)


class BatchCollector:
    """
    Accumulates records and flushes them to a sink in batches.

    A flush happens when ``size`` records are pending or when ``flush()`` is
    called. Every flush asks the circuit breaker first; while it refuses,
    records stay pending and a later flush retries them.

    The pending buffer is swapped out and reset *before* the sink write is
    awaited. Records accepted during the write go into the fresh buffer, and
    a failed batch is not put back: the error is re-raised to the caller,
    which must keep its own copy if it wants to resend.

    Example:
        clock = SystemClock()
        breaker = CircuitBreaker(5, 60, clock)
        collector = BatchCollector(sink, 100, breaker)
        await collector.accept({"value": 42})
        await collector.flush()
        collector.stop()
    """

    def __init__(self, sink: Sink, size: int, circuit, logger=None):
        """
        Initialize collector.

        Args:
            sink: Object with write(records), sync or async
            size: Pending record count that triggers an automatic flush
            circuit: Circuit breaker with allowing(), succeed() and fail()
            logger: Optional structured logger

        Raises:
            ConfigurationError: If a capability is missing or size is not a positive integer
        """
        require_method(sink, "write", "Sink must have a write(records) method")
        self.size = require_positive_int(size, "Size")
        require_method(circuit, "allowing", "Circuit must have an allowing() method")
        require_method(circuit, "succeed", "Circuit must have a succeed() method")
        require_method(circuit, "fail", "Circuit must have a fail() method")
        self.sink = sink
        self.circuit = circuit
        self.logger = logger
        self._records: List[Any] = []

    @property
    def pending(self) -> List[Any]:
        """Copy of the records waiting for the next flush."""
        return list(self._records)

    async def accept(self, record: Any) -> None:
        """
        Add a record, flushing before returning if the batch is full.

        Raises:
            Exception: Whatever the sink raised if the triggered write failed
        """
        self._records.append(record)
        if len(self._records) >= self.size:
            await self._perform()

    async def flush(self) -> None:
        """Flush pending records now, regardless of batch size."""
        await self._perform()

    def stop(self) -> None:
        """Discard pending records without writing them."""
        if self.logger and self._records:
            self.logger.log("batch_discarded", batch_size=len(self._records))
        self._records = []

    async def _perform(self) -> None:
        if not self._records:
            return
        if not self.circuit.allowing():
            if self.logger:
                self.logger.batch_flush_denied(pending=len(self._records))
            return

        batch, self._records = self._records, []
        try:
            await resolve(self.sink.write(batch))
        except Exception as exc:
            self.circuit.fail()
            if self.logger:
                self.logger.batch_flush_failed(batch_size=len(batch), error=str(exc))
            raise

        self.circuit.succeed()
        if self.logger:
            self.logger.batch_flush(batch_size=len(batch))
