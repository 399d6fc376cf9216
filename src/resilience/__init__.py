"""Failure isolation for sinks."""

from .circuit_breaker import CircuitBreaker

__all__ = ["CircuitBreaker"]
