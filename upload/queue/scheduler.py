"""
Upload Scheduler

Starts queued items up to the concurrency limit. It reacts only to the
transition events that can create or free work (work added, slot freed,
resumed, item requeued) instead of re-running on every state change.

Start sequence per item:  IncrementActive -> UpdateItem(status=<first phase>) -> launch
Settle sequence (by the pipeline):  UpdateItem(final status) -> DecrementActive
"""

import logging
from typing import Callable, List

from core.event_bus import EventBus
from upload.constants import QueueEvent, UploadStatus
from upload.models.queued_upload import QueuedUpload
from upload.queue.actions import DecrementActive, IncrementActive, UpdateItem
from upload.queue.events import StateChange
from upload.queue.store import QueueStore

TRIGGER_EVENTS = (
    QueueEvent.WORK_ADDED,
    QueueEvent.SLOT_FREED,
    QueueEvent.RESUMED,
    QueueEvent.ITEM_REQUEUED,
)


class UploadScheduler:
    """
    Event-driven scheduler.

    Args:
        store: Queue store (single writer)
        event_bus: Bus the store publishes on
        max_concurrent: Concurrency cap (>= 1)
        initial_status: Returns the first active status for an item
        launch: Starts processing an item (already marked active)

    Usage:
        scheduler = UploadScheduler(store, bus, 3, pipeline.initial_status, launch)
        scheduler.attach()
    """

    def __init__(
        self,
        store: QueueStore,
        event_bus: EventBus,
        max_concurrent: int,
        initial_status: Callable[[QueuedUpload], UploadStatus],
        launch: Callable[[QueuedUpload], None],
    ):
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")

        self.logger = logging.getLogger(__name__)
        self.store = store
        self.event_bus = event_bus
        self.max_concurrent = max_concurrent
        self.initial_status = initial_status
        self.launch = launch

        self._in_pass = False
        self._pass_requested = False
        self._rolling_back = False
        self._unsubscribers: List[Callable[[], None]] = []

    def attach(self) -> None:
        """Subscribe to trigger events"""
        if self._unsubscribers:
            return
        for event in TRIGGER_EVENTS:
            self._unsubscribers.append(self.event_bus.subscribe(event, self._on_trigger))

    def detach(self) -> None:
        """Stop reacting to events (teardown)"""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()

    @property
    def is_attached(self) -> bool:
        return bool(self._unsubscribers)

    def _on_trigger(self, change: StateChange) -> None:
        self.run_pass()

    def run_pass(self) -> int:
        """
        Select and start eligible items.

        Returns:
            Number of items started (including follow-up passes)
        """
        if self._rolling_back:
            return 0

        if self._in_pass:
            # Picked up by the running pass once its selection is done
            self._pass_requested = True
            return 0

        self._in_pass = True
        try:
            candidates = self._select()
        finally:
            self._in_pass = False

        started = 0
        for item in candidates:
            if self.start_item(item.id):
                started += 1

        if self._pass_requested:
            self._pass_requested = False
            started += self.run_pass()

        return started

    def _select(self) -> List[QueuedUpload]:
        state = self.store.state
        if state.is_paused:
            return []

        available = self.max_concurrent - state.active_count
        if available <= 0:
            return []

        return list(state.with_status(UploadStatus.QUEUED)[:available])

    def start_item(self, item_id: str) -> bool:
        """
        Mark one item active and launch it.

        Re-checks the live state, so a start never exceeds the cap nor picks
        an item that left QUEUED since selection.

        Returns:
            True if the item was started
        """
        state = self.store.state
        item = state.get_item(item_id)

        if item is None or item.status != UploadStatus.QUEUED:
            return False
        if state.is_paused or state.active_count >= self.max_concurrent:
            return False

        first_status = self.initial_status(item)

        self.store.dispatch(IncrementActive())
        self.store.dispatch(
            UpdateItem(item_id, {"status": first_status, "progress": 0, "error": None})
        )

        started = self.store.state.get_item(item_id)
        self.logger.debug(f"Started {item.name} ({first_status.value})")
        try:
            self.launch(started)
        except Exception:
            self.logger.error(f"Failed to launch {item.name}, returning it to the queue")
            # The freed slot must not start a nested pass on the same item
            self._rolling_back = True
            try:
                self.store.dispatch(UpdateItem(item_id, {"status": UploadStatus.QUEUED}))
                self.store.dispatch(DecrementActive())
            finally:
                self._rolling_back = False
            raise
        return True
