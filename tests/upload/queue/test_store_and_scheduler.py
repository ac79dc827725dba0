"""
Queue Store and Scheduler Tests

Tests:
- Store publishes STATE_CHANGED then the transition event
- No-op actions publish nothing
- Scheduler honours the concurrency cap and pause flag
- Scheduler re-checks live state before starting an item
- Items that settle synchronously inside launch never overshoot the cap
- A launch failure rolls the item back to QUEUED and frees its slot

To run these tests:
    pytest tests/upload/queue/test_store_and_scheduler.py -v
"""

from pathlib import Path
from typing import List

import pytest

from core.event_bus import EventBus
from media.models.media_file import MediaFile
from upload.constants import QueueEvent, UploadStatus
from upload.models.queued_upload import QueuedUpload, QueueState
from upload.queue.actions import (
    AddFiles,
    DecrementActive,
    IncrementActive,
    RetryItem,
    SetPaused,
    UpdateItem,
)
from upload.queue.scheduler import UploadScheduler
from upload.queue.store import QueueStore


def make_items(count: int) -> tuple:
    items = []
    for i in range(count):
        file = MediaFile(path=Path(f"/tmp/f{i}.jpg"), name=f"f{i}.jpg",
                         content_type="image/jpeg", size=100)
        items.append(QueuedUpload.from_file(file, item_id=f"item-{i}"))
    return tuple(items)


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def store(bus):
    return QueueStore(bus)


class Recorder:
    """Collects published events in order"""

    def __init__(self, bus: EventBus):
        self.events: List[QueueEvent] = []
        for event in QueueEvent:
            bus.subscribe(event, lambda change, event=event: self.events.append(event))


# =============================================================================
# STORE
# =============================================================================


@pytest.mark.unit
class TestQueueStore:

    def test_dispatch_returns_new_state(self, store):
        state = store.dispatch(IncrementActive())
        assert state is store.state
        assert state.active_count == 1
        assert store.dispatch_count == 1

    def test_add_files_publishes_state_changed_then_work_added(self, bus, store):
        recorder = Recorder(bus)
        store.dispatch(AddFiles(make_items(1)))
        assert recorder.events == [QueueEvent.STATE_CHANGED, QueueEvent.WORK_ADDED]

    def test_decrement_publishes_slot_freed(self, bus, store):
        store.dispatch(IncrementActive())
        recorder = Recorder(bus)
        store.dispatch(DecrementActive())
        assert recorder.events == [QueueEvent.STATE_CHANGED, QueueEvent.SLOT_FREED]

    def test_resume_publishes_resumed_but_pause_does_not(self, bus, store):
        recorder = Recorder(bus)
        store.dispatch(SetPaused(True))
        store.dispatch(SetPaused(False))
        assert recorder.events == [
            QueueEvent.STATE_CHANGED,
            QueueEvent.STATE_CHANGED,
            QueueEvent.RESUMED,
        ]

    def test_retry_publishes_item_requeued(self, bus, store):
        item = make_items(1)[0]
        store.dispatch(AddFiles((item,)))
        store.dispatch(UpdateItem(item.id, {"status": UploadStatus.ERROR, "error": "x"}))
        recorder = Recorder(bus)

        store.dispatch(RetryItem(item.id))

        assert recorder.events == [QueueEvent.STATE_CHANGED, QueueEvent.ITEM_REQUEUED]

    def test_noop_publishes_nothing(self, bus, store):
        recorder = Recorder(bus)
        before = store.state

        assert store.dispatch(DecrementActive()) is before
        assert store.dispatch(UpdateItem("missing", {"progress": 5})) is before
        assert recorder.events == []
        assert store.dispatch_count == 0

    def test_subscribe_receives_state_change(self, store):
        changes = []
        unsubscribe = store.subscribe(changes.append)

        store.dispatch(IncrementActive())
        unsubscribe()
        store.dispatch(IncrementActive())

        assert len(changes) == 1
        assert changes[0].previous.active_count == 0
        assert changes[0].state.active_count == 1
        assert isinstance(changes[0].action, IncrementActive)


# =============================================================================
# SCHEDULER
# =============================================================================


@pytest.mark.unit
class TestUploadScheduler:

    def make_scheduler(self, store, bus, max_concurrent=3, launch=None):
        launched = []
        scheduler = UploadScheduler(
            store=store,
            event_bus=bus,
            max_concurrent=max_concurrent,
            initial_status=lambda item: UploadStatus.UPLOADING,
            launch=launch or launched.append,
        )
        scheduler.attach()
        return scheduler, launched

    def test_rejects_invalid_cap(self, store, bus):
        with pytest.raises(ValueError):
            UploadScheduler(store, bus, 0, lambda item: UploadStatus.UPLOADING, lambda item: None)

    def test_starts_up_to_cap_in_insertion_order(self, store, bus):
        _, launched = self.make_scheduler(store, bus, max_concurrent=3)

        store.dispatch(AddFiles(make_items(5)))

        assert [item.id for item in launched] == ["item-0", "item-1", "item-2"]
        assert store.state.active_count == 3
        statuses = [item.status for item in store.state.items]
        assert statuses == [UploadStatus.UPLOADING] * 3 + [UploadStatus.QUEUED] * 2

    def test_launched_item_is_already_active(self, store, bus):
        _, launched = self.make_scheduler(store, bus, max_concurrent=1)
        store.dispatch(AddFiles(make_items(1)))
        assert launched[0].status == UploadStatus.UPLOADING
        assert launched[0].progress == 0

    def test_slot_freed_starts_next(self, store, bus):
        _, launched = self.make_scheduler(store, bus, max_concurrent=2)
        store.dispatch(AddFiles(make_items(3)))

        store.dispatch(UpdateItem("item-0", {"status": UploadStatus.UPLOADED}))
        store.dispatch(DecrementActive())

        assert [item.id for item in launched] == ["item-0", "item-1", "item-2"]
        assert store.state.active_count == 2

    def test_paused_starts_nothing_until_resume(self, store, bus):
        _, launched = self.make_scheduler(store, bus, max_concurrent=2)
        store.dispatch(SetPaused(True))
        store.dispatch(AddFiles(make_items(3)))

        assert launched == []

        store.dispatch(SetPaused(False))
        assert len(launched) == 2

    def test_detached_scheduler_ignores_events(self, store, bus):
        scheduler, launched = self.make_scheduler(store, bus)
        scheduler.detach()

        store.dispatch(AddFiles(make_items(2)))

        assert not scheduler.is_attached
        assert launched == []

    def test_start_item_rechecks_live_state(self, store, bus):
        scheduler, launched = self.make_scheduler(store, bus, max_concurrent=1)
        scheduler.detach()
        store.dispatch(AddFiles(make_items(2)))

        assert scheduler.start_item("missing") is False
        assert scheduler.start_item("item-0") is True
        # Cap reached
        assert scheduler.start_item("item-1") is False
        # No longer queued
        assert scheduler.start_item("item-0") is False
        assert store.state.active_count == 1

    def test_synchronous_settle_never_exceeds_cap(self, store, bus):
        """Items finishing inside launch re-enter the scheduler safely"""
        peak = []
        store.subscribe(lambda change: peak.append(change.state.active_count))

        def settle_now(item):
            store.dispatch(UpdateItem(item.id, {"status": UploadStatus.UPLOADED}))
            store.dispatch(DecrementActive())

        self.make_scheduler(store, bus, max_concurrent=2, launch=settle_now)
        store.dispatch(AddFiles(make_items(5)))

        assert all(item.status == UploadStatus.UPLOADED for item in store.state.items)
        assert store.state.active_count == 0
        assert max(peak) <= 2

    def test_run_pass_returns_started_count(self, bus):
        initial = QueueState(items=make_items(4), is_paused=False)
        store = QueueStore(bus, initial_state=initial)
        scheduler, launched = self.make_scheduler(store, bus, max_concurrent=3)

        assert scheduler.run_pass() == 3
        assert scheduler.run_pass() == 0
        assert len(launched) == 3

    def test_failed_launch_returns_item_to_queue(self, store, bus):
        def broken_launch(item):
            raise RuntimeError("no running event loop")

        scheduler, _ = self.make_scheduler(store, bus, launch=broken_launch)
        scheduler.detach()
        store.dispatch(AddFiles(make_items(1)))

        with pytest.raises(RuntimeError):
            scheduler.start_item("item-0")

        assert store.state.active_count == 0
        assert store.state.items[0].status == UploadStatus.QUEUED

    def test_failed_launch_during_pass_leaves_no_active_items(self, store, bus):
        attempts = []

        def broken_launch(item):
            attempts.append(item.id)
            raise RuntimeError("no running event loop")

        self.make_scheduler(store, bus, max_concurrent=2, launch=broken_launch)
        store.dispatch(AddFiles(make_items(3)))

        # The freed slot does not retry the same item inside the rollback
        assert attempts == ["item-0"]
        assert store.state.active_count == 0
        assert all(item.status == UploadStatus.QUEUED for item in store.state.items)
