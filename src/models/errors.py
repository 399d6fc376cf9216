"""Exceptions raised by the streaming primitives.

Sink and fetch failures are not wrapped: the adapter's own exception reaches
the caller unchanged. Only construction-time validation has its own type.
"""


class StreamError(Exception):
    """Base error for the streaming pipeline."""

    pass


class ConfigurationError(StreamError, ValueError):
    """Invalid constructor argument or missing capability."""

    pass


class FetchError(StreamError):
    """Fetch capability failed to return records for a time window."""

    pass
