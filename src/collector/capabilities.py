"""Capability contracts for sinks, collectors and fetch functions.

Contracts are structural: anything with the right methods qualifies. Because
sinks and collectors are often supplied at runtime (plugins, adapters), they
are checked once at construction time and rejected with ConfigurationError.
"""

import inspect
from typing import Any, Awaitable, Protocol, Sequence, Union

from src.models.errors import ConfigurationError


class Sink(Protocol):
    """Final write destination for a completed batch of records."""

    def write(self, records: Sequence[Any]) -> Union[None, Awaitable[None]]:
        """Persist ``records``; raise on failure. May be sync or async."""
        ...


class Collector(Protocol):
    """Accepts records and supports explicit flush and stop."""

    async def accept(self, record: Any) -> None:
        ...

    async def flush(self) -> None:
        ...

    def stop(self) -> None:
        ...


class Fetch(Protocol):
    """Returns the records produced inside ``[since, until)`` (milliseconds)."""

    async def __call__(self, since: int, until: int) -> Sequence[Any]:
        ...


def require_method(obj: Any, name: str, message: str) -> None:
    """Raise ConfigurationError unless ``obj.name`` exists and is callable."""
    if obj is None or not callable(getattr(obj, name, None)):
        raise ConfigurationError(message)


def require_positive_int(value: Any, label: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigurationError(f"{label} must be a positive integer, got: {value!r}")
    return value


def require_positive_number(value: Any, label: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigurationError(f"{label} must be a positive number, got: {value!r}")
    return value


async def resolve(value: Any) -> Any:
    """Await ``value`` when a capability returned an awaitable."""
    if inspect.isawaitable(value):
        return await value
    return value
