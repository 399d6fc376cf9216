"""Unit tests for the size-triggered batch collector."""

import asyncio

import pytest

from src.collector.batch import BatchCollector
from src.models.errors import ConfigurationError
from src.resilience.circuit_breaker import CircuitBreaker
from tests.fixtures.fakes import AsyncRecordingSink, FailingSink, RecordingSink, StubCircuit


class TestBatchFlushing:

    @pytest.mark.asyncio
    async def test_flushes_when_size_reached(self, sink, fake_clock):
        batch = BatchCollector(sink, 2, CircuitBreaker(5, 60, fake_clock))

        await batch.accept("A")
        assert sink.batches == []

        await batch.accept("B")

        assert sink.batches == [["A", "B"]]
        assert batch.pending == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("size", [1, 3, 7])
    async def test_one_flush_per_size_records(self, sink, fake_clock, size):
        batch = BatchCollector(sink, size, CircuitBreaker(5, 60, fake_clock))

        for i in range(size * 4):
            await batch.accept({"value": f"éñü{i}"})

        assert len(sink.batches) == 4
        assert all(len(b) == size for b in sink.batches)
        assert sink.records == [{"value": f"éñü{i}"} for i in range(size * 4)]

    @pytest.mark.asyncio
    async def test_manual_flush_sends_partial_batch(self, sink, fake_clock):
        batch = BatchCollector(sink, 100, CircuitBreaker(5, 60, fake_clock))
        for i in range(3):
            await batch.accept({"id": f"中文{i}"})

        await batch.flush()

        assert sink.batches == [[{"id": "中文0"}, {"id": "中文1"}, {"id": "中文2"}]]

    @pytest.mark.asyncio
    async def test_empty_flush_does_not_write(self, sink):
        circuit = StubCircuit()
        batch = BatchCollector(sink, 10, circuit)

        await batch.flush()

        assert sink.batches == []
        assert circuit.successes == 0

    @pytest.mark.asyncio
    async def test_stop_discards_pending_records(self, sink, fake_clock):
        batch = BatchCollector(sink, 100, CircuitBreaker(5, 60, fake_clock))
        await batch.accept({"x": 1})
        await batch.accept({"x": 2})

        batch.stop()
        await batch.flush()

        assert sink.batches == []
        assert batch.pending == []

    def test_stop_is_idempotent(self, sink):
        batch = BatchCollector(sink, 10, StubCircuit())
        batch.stop()
        batch.stop()

    @pytest.mark.asyncio
    async def test_awaits_async_sink(self, fake_clock):
        sink = AsyncRecordingSink()
        batch = BatchCollector(sink, 2, CircuitBreaker(5, 60, fake_clock))

        await batch.accept(1)
        await batch.accept(2)

        assert sink.batches == [[1, 2]]


class TestBatchCircuitInteraction:

    @pytest.mark.asyncio
    async def test_calls_succeed_after_write(self, sink):
        circuit = StubCircuit()
        batch = BatchCollector(sink, 1, circuit)

        await batch.accept({"data": "ß"})

        assert circuit.successes == 1
        assert circuit.failures == 0

    @pytest.mark.asyncio
    async def test_open_circuit_keeps_records_pending(self, sink, fake_clock):
        circuit = CircuitBreaker(1, 60, fake_clock)
        circuit.fail()
        batch = BatchCollector(sink, 2, circuit)

        await batch.accept("A")
        await batch.accept("B")

        assert sink.batches == []
        assert batch.pending == ["A", "B"]

    @pytest.mark.asyncio
    async def test_denied_records_sent_once_circuit_recovers(self, sink, fake_clock):
        circuit = CircuitBreaker(1, 60, fake_clock)
        circuit.fail()
        batch = BatchCollector(sink, 2, circuit)
        await batch.accept("A")
        await batch.accept("B")

        fake_clock.advance(60_000)
        await batch.flush()

        assert sink.batches == [["A", "B"]]
        assert batch.pending == []

    @pytest.mark.asyncio
    async def test_calls_fail_and_reraises_when_sink_throws(self):
        circuit = StubCircuit()
        batch = BatchCollector(FailingSink(failures=1), 1, circuit)

        with pytest.raises(RuntimeError, match="Sink failure"):
            await batch.accept({"v": 1})

        assert circuit.failures == 1
        assert circuit.successes == 0

    @pytest.mark.asyncio
    async def test_failed_batch_is_not_restored(self):
        sink = FailingSink(failures=1)
        batch = BatchCollector(sink, 100, StubCircuit())
        await batch.accept("lost")

        with pytest.raises(RuntimeError):
            await batch.flush()

        assert batch.pending == []
        await batch.flush()
        assert sink.attempts == 1
        assert sink.batches == []

    @pytest.mark.asyncio
    async def test_retry_after_failure_sends_only_new_records(self):
        sink = FailingSink(failures=1)
        batch = BatchCollector(sink, 100, StubCircuit())
        await batch.accept("first")
        with pytest.raises(RuntimeError):
            await batch.flush()

        await batch.accept("second")
        await batch.flush()

        assert sink.batches == [["second"]]

    @pytest.mark.asyncio
    async def test_repeated_sink_failures_open_circuit(self, fake_clock):
        circuit = CircuitBreaker(2, 60, fake_clock)
        sink = FailingSink(failures=10)
        batch = BatchCollector(sink, 1, circuit)

        for record in ("a", "b"):
            with pytest.raises(RuntimeError):
                await batch.accept(record)

        await batch.accept("c")

        assert sink.attempts == 2
        assert batch.pending == ["c"]


class TestBatchConcurrency:

    @pytest.mark.asyncio
    async def test_accept_during_write_fills_fresh_buffer(self):
        release = asyncio.Event()
        written = []

        class SlowSink:
            async def write(self, records):
                written.append(list(records))
                await release.wait()

        batch = BatchCollector(SlowSink(), 2, StubCircuit())
        await batch.accept("A")
        flushing = asyncio.create_task(batch.accept("B"))
        await asyncio.sleep(0)

        await batch.accept("C")
        assert batch.pending == ["C"]

        release.set()
        await flushing
        assert written == [["A", "B"]]
        assert batch.pending == ["C"]


class TestBatchConfiguration:

    def test_rejects_missing_sink(self):
        with pytest.raises(ConfigurationError, match="Sink must have a write"):
            BatchCollector(None, 10, StubCircuit())

    def test_rejects_sink_with_non_callable_write(self):
        class Broken:
            write = "nope"

        with pytest.raises(ConfigurationError, match="Sink must have a write"):
            BatchCollector(Broken(), 10, StubCircuit())

    @pytest.mark.parametrize("size", [0, -3, 2.5, "10", True, None])
    def test_rejects_invalid_size(self, size):
        with pytest.raises(ConfigurationError, match="Size must be a positive integer"):
            BatchCollector(RecordingSink(), size, StubCircuit())

    def test_rejects_missing_circuit(self):
        with pytest.raises(ConfigurationError, match=r"Circuit must have an allowing\(\) method"):
            BatchCollector(RecordingSink(), 10, None)

    def test_rejects_circuit_without_fail(self):
        class HalfCircuit:
            def allowing(self):
                return True

            def succeed(self):
                pass

        with pytest.raises(ConfigurationError, match=r"fail\(\)"):
            BatchCollector(RecordingSink(), 10, HalfCircuit())
