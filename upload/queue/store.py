"""
Queue Store

Observable container for the queue state. It is the single writer: every
mutation goes through dispatch(), which synchronously computes the next
state from the latest state and then publishes transition events on the
injected EventBus.
"""

import logging
from typing import Callable, Optional

from core.event_bus import EventBus
from upload.constants import QueueEvent
from upload.models.queued_upload import QueueState
from upload.queue.actions import QueueAction
from upload.queue.events import StateChange, events_for
from upload.queue.reducer import queue_reducer

StateListener = Callable[[StateChange], None]


class QueueStore:
    """
    Holds QueueState and notifies subscribers of changes.

    Usage:
        bus = EventBus()
        store = QueueStore(bus)
        store.subscribe(lambda change: print(change.state.active_count))
        store.dispatch(IncrementActive())
    """

    def __init__(self, event_bus: EventBus, initial_state: Optional[QueueState] = None):
        self.logger = logging.getLogger(__name__)
        self.event_bus = event_bus
        self._state = initial_state or QueueState()
        self._dispatch_count = 0

    @property
    def state(self) -> QueueState:
        """Latest committed state"""
        return self._state

    @property
    def dispatch_count(self) -> int:
        """Number of actions that changed state"""
        return self._dispatch_count

    def dispatch(self, action: QueueAction) -> QueueState:
        """
        Apply an action.

        No-op actions (the reducer returned the same object) publish nothing.

        Returns:
            The state after the action
        """
        previous = self._state
        new_state = queue_reducer(previous, action)

        if new_state is previous:
            self.logger.debug(f"No-op action: {action!r}")
            return previous

        self._state = new_state
        self._dispatch_count += 1

        change = StateChange(action=action, previous=previous, state=new_state)
        for event in events_for(change):
            self.event_bus.publish(event, change)

        return new_state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """
        Listen to every committed change.

        Returns:
            Function that removes the listener
        """
        return self.event_bus.subscribe(QueueEvent.STATE_CHANGED, listener)
