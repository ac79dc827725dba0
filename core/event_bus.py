"""
Event Bus

Minimal synchronous publish/subscribe hub.

The upload queue store publishes transition events here (work added, slot
freed, resumed, item requeued) and the scheduler subscribes to the ones that
can start new work. Subscribers are called in registration order, on the
publisher's call stack.
"""

import logging
from typing import Any, Callable, Dict, Hashable, List

EventCallback = Callable[[Any], None]


class EventBus:
    """
    Synchronous event dispatcher.

    A failing subscriber is logged and skipped; it never prevents the other
    subscribers from receiving the event.

    Usage:
        bus = EventBus()
        unsubscribe = bus.subscribe("slot_freed", on_slot_freed)
        bus.publish("slot_freed", state)
        unsubscribe()
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self.subscribers: Dict[Hashable, List[EventCallback]] = {}

    def subscribe(self, event_type: Hashable, callback: EventCallback) -> Callable[[], None]:
        """
        Register an event handler.

        Args:
            event_type: Event key (usually an Enum member)
            callback: Called with the event payload

        Returns:
            Function that removes this subscription
        """
        self.subscribers.setdefault(event_type, []).append(callback)
        self.logger.debug(f"Subscribed to {event_type}: {callback}")

        def _unsubscribe() -> None:
            self.unsubscribe(event_type, callback)

        return _unsubscribe

    def unsubscribe(self, event_type: Hashable, callback: EventCallback) -> bool:
        """Remove a handler. Returns False if it was not registered."""
        callbacks = self.subscribers.get(event_type, [])
        if callback not in callbacks:
            return False
        callbacks.remove(callback)
        return True

    def publish(self, event_type: Hashable, data: Any = None) -> int:
        """
        Send an event to its subscribers.

        Args:
            event_type: Event key
            data: Payload handed to every subscriber

        Returns:
            Number of subscribers that handled the event without raising
        """
        delivered = 0
        # Copy: handlers may unsubscribe while we iterate
        for callback in list(self.subscribers.get(event_type, [])):
            try:
                callback(data)
                delivered += 1
            except Exception as e:
                self.logger.error(
                    f"Error in subscriber for {event_type}: {e}",
                    exc_info=True,
                )
        return delivered

    def subscriber_count(self, event_type: Hashable) -> int:
        """Number of handlers registered for an event type"""
        return len(self.subscribers.get(event_type, []))

    def clear(self) -> None:
        """Drop every subscription"""
        self.subscribers.clear()
