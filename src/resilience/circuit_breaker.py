"""Circuit breaker implementation with explicit state management."""

from typing import Optional

from src.models.data_models import BreakerState, CircuitState, Closed, Open
from src.models.errors import ConfigurationError
from src.timing.clock import Clock, require_clock


class CircuitBreaker:
    """
    Circuit breaker with CLOSED/OPEN states.

    Isolates a failing sink from the pipeline:
    - Opens after ``failure_threshold`` consecutive failures
    - Stays open for ``timeout_seconds`` measured on the injected clock
    - Has no separate half-open state: the first ``allowing()`` call after the
      timeout closes the circuit and lets traffic through as a trial, and the
      next ``fail()``/``succeed()`` decides whether it opens again
    """

    def __init__(
        self,
        failure_threshold: int,
        timeout_seconds: float,
        clock: Clock,
        logger: Optional["StructuredLogger"] = None
    ):
        """
        Initialize circuit breaker.

        Args:
            failure_threshold: Consecutive failures before opening the circuit
            timeout_seconds: Seconds the circuit stays open before recovery
            clock: Clock with millis() used to time the open period
            logger: Optional structured logger for state transitions

        Raises:
            ConfigurationError: If threshold < 1, timeout < 0, or the clock has no millis()
        """
        if (
            isinstance(failure_threshold, bool)
            or not isinstance(failure_threshold, int)
            or failure_threshold < 1
        ):
            raise ConfigurationError(
                f"Threshold must be a positive integer, got: {failure_threshold!r}"
            )
        if (
            isinstance(timeout_seconds, bool)
            or not isinstance(timeout_seconds, (int, float))
            or timeout_seconds < 0
        ):
            raise ConfigurationError(
                f"Timeout must be a non-negative number, got: {timeout_seconds!r}"
            )
        self.failure_threshold = failure_threshold
        self.timeout_seconds = timeout_seconds
        self.clock = require_clock(clock)
        self.logger = logger
        self._state: BreakerState = Closed()
        self._failures = 0

    @property
    def state(self) -> CircuitState:
        """Current state, without evaluating the open timeout."""
        return self._state.kind

    @property
    def failure_count(self) -> int:
        return self._failures

    def allowing(self) -> bool:
        """
        Check whether an operation may proceed.

        Returns:
            True if the circuit is closed, or was open and its timeout has
            elapsed (the circuit closes and the failure count resets);
            False while the circuit is open
        """
        if isinstance(self._state, Closed):
            return True

        if self._state.expired(self.clock.millis()):
            self._failures = 0
            self._transition(Closed())
            return True

        return False

    def succeed(self) -> None:
        """Record a successful operation. Always closes the circuit."""
        self._failures = 0
        self._transition(Closed())

    def fail(self) -> None:
        """Record a failed operation, opening the circuit at the threshold."""
        self._failures += 1
        if self._failures >= self.failure_threshold:
            self._transition(Open(opened_at=self.clock.millis(), timeout=self.timeout_seconds))

    def _transition(self, new_state: BreakerState) -> None:
        previous = self._state.kind
        self._state = new_state
        if self.logger and previous != new_state.kind:
            self.logger.circuit_breaker_state(
                state=new_state.kind.value,
                failures=self._failures,
            )
