"""End-to-end tests composing source → timed batch → batch → sink."""

import asyncio

import pytest

from src.collector.batch import BatchCollector
from src.collector.timed_batch import TimedBatch
from src.models.data_models import CircuitState
from src.resilience.circuit_breaker import CircuitBreaker
from src.source.polling import PollingSource
from tests.fixtures.fakes import (
    AsyncRecordingSink,
    FakeClock,
    ManualSleeper,
    RecordingSink,
    capture_loop_errors,
)


@pytest.mark.asyncio
async def test_size_and_timer_flushes_deliver_everything_in_order(fake_clock):
    sink = AsyncRecordingSink()
    batch = BatchCollector(sink, 4, CircuitBreaker(5, 60, fake_clock))
    collector = TimedBatch(batch, 0.05)
    produced = [{"n": i} for i in range(10)]

    for record in produced:
        await collector.accept(record)
    await asyncio.sleep(0.15)

    assert [len(b) for b in sink.batches] == [4, 4, 2]
    assert sink.records == produced
    collector.stop()


@pytest.mark.asyncio
async def test_polling_source_feeds_batches():
    clock = FakeClock(0)
    sink = RecordingSink()
    poll_sleeper = ManualSleeper()
    flush_sleeper = ManualSleeper()
    collector = TimedBatch(
        BatchCollector(sink, 3, CircuitBreaker(2, 30, clock)), 5, sleeper=flush_sleeper
    )

    async def fetch(since, until):
        return [{"window": (since, until), "i": i} for i in range(2)]

    source = PollingSource(fetch, 1, collector, clock, sleeper=poll_sleeper)
    source.start()
    for _ in range(3):
        clock.advance(1_000)
        await poll_sleeper.tick()

    # 6 records, size 3: two full batches, nothing left for the timer.
    assert [len(b) for b in sink.batches] == [3, 3]
    assert [r["window"] for r in sink.records] == [
        (0, 1_000), (0, 1_000), (1_000, 2_000), (1_000, 2_000), (2_000, 3_000), (2_000, 3_000)
    ]

    source.stop()
    collector.stop()


@pytest.mark.asyncio
async def test_circuit_isolates_failing_sink_then_recovers():
    errors = capture_loop_errors()
    clock = FakeClock(0)

    class OutageSink(RecordingSink):
        down = True

        def write(self, records):
            if self.down:
                raise ConnectionError("sink unavailable")
            super().write(records)

    sink = OutageSink()
    circuit = CircuitBreaker(2, 30, clock)
    batch = BatchCollector(sink, 1, circuit)
    poll_sleeper = ManualSleeper()

    async def fetch(since, until):
        return [until]

    source = PollingSource(fetch, 1, batch, clock, sleeper=poll_sleeper)
    source.start()
    for _ in range(4):
        clock.advance(1_000)
        await poll_sleeper.tick()

    # Two failed writes open the circuit; later records wait in the buffer.
    assert len(errors) == 2
    assert circuit.state == CircuitState.OPEN
    assert batch.pending == [3_000, 4_000]

    sink.down = False
    clock.advance(30_000)
    await batch.flush()

    assert sink.batches == [[3_000, 4_000]]
    assert circuit.state == CircuitState.CLOSED
    source.stop()


@pytest.mark.asyncio
async def test_stop_everything_is_safe_and_quiet():
    clock = FakeClock(0)
    sink = RecordingSink()
    collector = TimedBatch(BatchCollector(sink, 10, CircuitBreaker(1, 1, clock)), 0.02)
    source = PollingSource(lambda s, u: [s], 0.02, collector, clock)

    source.stop()
    collector.stop()
    source.start()
    await asyncio.sleep(0.05)
    source.stop()
    collector.stop()
    collector.stop()
    await asyncio.sleep(0.06)

    # Stop discards whatever the timer had not flushed yet; nothing arrives afterwards.
    written = len(sink.records)
    await asyncio.sleep(0.05)
    assert len(sink.records) == written
