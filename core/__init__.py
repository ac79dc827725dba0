"""
Core utilities and modules.

Public API:
    - EventBus: Synchronous publish/subscribe hub

Usage:
    from core import EventBus

    bus = EventBus()
    bus.subscribe("slot_freed", handler)
"""

from core.event_bus import EventBus

__all__ = [
    "EventBus",
]
