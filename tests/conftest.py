"""Pytest configuration and shared fixtures."""

import pytest

from tests.fixtures.fakes import FakeClock, RecordingSink


@pytest.fixture
def fake_clock():
    """Fake clock starting at an arbitrary non-zero instant."""
    return FakeClock(initial=1_700_000_000_000)


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def sample_config(tmp_path):
    """Provide a fast configuration for pipeline tests."""
    from src.models.config import StreamConfig

    return StreamConfig(
        batch_size=5,
        flush_interval=0.05,
        circuit_failure_threshold=2,
        circuit_timeout=60.0,
        poll_interval=0.02,
        records_per_poll=3,
        fetch_error_rate=0.0,
        random_seed=7,
        run_duration=0.15,
        log_level="WARNING",
        output_directory=str(tmp_path / "out"),
    )
