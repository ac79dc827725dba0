"""
Queue Events

Maps committed state transitions to the events the store publishes.
"""

from dataclasses import dataclass
from typing import List

from upload.constants import QueueEvent
from upload.models.queued_upload import QueueState
from upload.queue.actions import (
    AddFiles,
    DecrementActive,
    QueueAction,
    RetryAllFailed,
    RetryItem,
    SetPaused,
)


@dataclass(frozen=True)
class StateChange:
    """Payload of every queue event"""

    action: QueueAction
    previous: QueueState
    state: QueueState


def events_for(change: StateChange) -> List[QueueEvent]:
    """
    Events to publish for a committed (non no-op) change, in order.

    STATE_CHANGED always comes first; the specific transition event, if any,
    follows.
    """
    events = [QueueEvent.STATE_CHANGED]
    action = change.action

    if isinstance(action, AddFiles):
        events.append(QueueEvent.WORK_ADDED)
    elif isinstance(action, DecrementActive):
        events.append(QueueEvent.SLOT_FREED)
    elif isinstance(action, SetPaused) and not action.paused:
        events.append(QueueEvent.RESUMED)
    elif isinstance(action, (RetryItem, RetryAllFailed)):
        events.append(QueueEvent.ITEM_REQUEUED)

    return events
