"""Record collectors: size-triggered batching and timed flushing."""

from .batch import BatchCollector
from .timed_batch import TimedBatch

__all__ = ["BatchCollector", "TimedBatch"]
