"""
Queue Package

State container and scheduling for the upload queue:
    - actions / reducer: pure state transitions
    - store / events: observable single-writer store
    - scheduler: event-driven slot filling
    - retry_policy: bounded delayed re-queueing
    - preview_registry: preview handle lifecycle
    - pipeline: per-item convert -> compress -> upload
"""

from upload.queue.preview_registry import PreviewRegistry
from upload.queue.reducer import queue_reducer
from upload.queue.retry_policy import RetryPolicy
from upload.queue.store import QueueStore

__all__ = [
    "PreviewRegistry",
    "QueueStore",
    "RetryPolicy",
    "queue_reducer",
]
