"""
Queue Actions

Discrete state transitions understood by queue_reducer().
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Tuple, Union

from upload.models.queued_upload import QueuedUpload


@dataclass(frozen=True)
class AddFiles:
    """Append validated items (all start QUEUED)"""

    items: Tuple[QueuedUpload, ...]


@dataclass(frozen=True)
class UpdateItem:
    """Merge `changes` (field name -> value) into one item"""

    id: str
    changes: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RemoveItem:
    id: str


@dataclass(frozen=True)
class SetPaused:
    paused: bool


@dataclass(frozen=True)
class IncrementActive:
    pass


@dataclass(frozen=True)
class DecrementActive:
    pass


@dataclass(frozen=True)
class ClearCompleted:
    pass


@dataclass(frozen=True)
class RetryItem:
    """Move an ERROR or RETRYING item back to QUEUED"""

    id: str
    reset_retries: bool = False


@dataclass(frozen=True)
class RetryAllFailed:
    """Move every ERROR item back to QUEUED"""

    reset_retries: bool = False


QueueAction = Union[
    AddFiles,
    UpdateItem,
    RemoveItem,
    SetPaused,
    IncrementActive,
    DecrementActive,
    ClearCompleted,
    RetryItem,
    RetryAllFailed,
]
