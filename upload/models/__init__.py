"""
Models Package

Immutable records for the upload queue.
"""

from upload.models.queued_upload import QueuedUpload, QueueState, QueueStats

__all__ = [
    "QueueState",
    "QueueStats",
    "QueuedUpload",
]
