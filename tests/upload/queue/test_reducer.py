"""
Queue Reducer Tests

To run these tests:
    pytest tests/upload/queue/test_reducer.py -v
"""

from dataclasses import replace
from pathlib import Path

import pytest

from media.models.media_file import MediaFile
from upload.constants import UploadStatus
from upload.models.queued_upload import QueuedUpload, QueueState
from upload.queue.actions import (
    AddFiles,
    ClearCompleted,
    DecrementActive,
    IncrementActive,
    RemoveItem,
    RetryAllFailed,
    RetryItem,
    SetPaused,
    UpdateItem,
)
from upload.queue.reducer import queue_reducer


def make_item(item_id: str, status: UploadStatus = UploadStatus.QUEUED, **changes) -> QueuedUpload:
    file = MediaFile(path=Path(f"/tmp/{item_id}.jpg"), name=f"{item_id}.jpg",
                     content_type="image/jpeg", size=100)
    return replace(QueuedUpload.from_file(file, item_id=item_id), status=status, **changes)


def state_with(*items: QueuedUpload, **kwargs) -> QueueState:
    return QueueState(items=tuple(items), **kwargs)


# =============================================================================
# ADD / UPDATE / REMOVE
# =============================================================================


@pytest.mark.unit
class TestItemActions:

    def test_add_files_appends_in_order_as_queued(self):
        state = state_with(make_item("a"))
        new_items = (make_item("b", UploadStatus.ERROR), make_item("c"))

        result = queue_reducer(state, AddFiles(new_items))

        assert [i.id for i in result.items] == ["a", "b", "c"]
        assert all(i.status == UploadStatus.QUEUED for i in result.items)

    def test_add_files_does_not_dedup(self):
        state = queue_reducer(QueueState(), AddFiles((make_item("a"),)))
        state = queue_reducer(state, AddFiles((make_item("a"),)))
        assert len(state.items) == 2

    def test_update_item_merges_and_keeps_other_items(self):
        a, b = make_item("a"), make_item("b")
        state = state_with(a, b)

        result = queue_reducer(state, UpdateItem("a", {"status": UploadStatus.UPLOADING, "progress": 40}))

        assert result.items[0].status == UploadStatus.UPLOADING
        assert result.items[0].progress == 40
        assert result.items[1] is b

    def test_update_unknown_id_is_noop(self):
        state = state_with(make_item("a"))
        assert queue_reducer(state, UpdateItem("zzz", {"progress": 10})) is state

    def test_remove_item(self):
        state = state_with(make_item("a"), make_item("b"))
        result = queue_reducer(state, RemoveItem("a"))
        assert [i.id for i in result.items] == ["b"]

    def test_remove_unknown_id_is_noop(self):
        state = state_with(make_item("a"))
        assert queue_reducer(state, RemoveItem("missing")) is state

    def test_unknown_action_raises(self):
        with pytest.raises(TypeError):
            queue_reducer(QueueState(), object())


# =============================================================================
# COUNTERS AND PAUSE
# =============================================================================


@pytest.mark.unit
class TestCountersAndPause:

    def test_increment_and_decrement(self):
        state = queue_reducer(QueueState(), IncrementActive())
        state = queue_reducer(state, IncrementActive())
        state = queue_reducer(state, DecrementActive())
        assert state.active_count == 1

    def test_decrement_floors_at_zero(self):
        state = QueueState()
        for _ in range(3):
            state = queue_reducer(state, DecrementActive())
        assert state.active_count == 0

    def test_decrement_at_zero_returns_same_state(self):
        state = QueueState()
        assert queue_reducer(state, DecrementActive()) is state

    def test_set_paused_toggles(self):
        state = queue_reducer(QueueState(), SetPaused(True))
        assert state.is_paused is True
        assert queue_reducer(state, SetPaused(False)).is_paused is False

    def test_set_paused_same_value_is_noop(self):
        state = QueueState(is_paused=True)
        assert queue_reducer(state, SetPaused(True)) is state


# =============================================================================
# CLEAR / RETRY
# =============================================================================


@pytest.mark.unit
class TestClearAndRetry:

    def test_clear_completed_only_removes_uploaded(self):
        state = state_with(
            make_item("done", UploadStatus.UPLOADED),
            make_item("queued"),
            make_item("active", UploadStatus.UPLOADING),
            make_item("failed", UploadStatus.ERROR, error="boom"),
            make_item("waiting", UploadStatus.RETRYING),
        )

        result = queue_reducer(state, ClearCompleted())

        assert [i.id for i in result.items] == ["queued", "active", "failed", "waiting"]

    def test_clear_completed_without_uploaded_is_noop(self):
        state = state_with(make_item("a"))
        assert queue_reducer(state, ClearCompleted()) is state

    def test_retry_item_requeues_error_and_clears_message(self):
        state = state_with(make_item("a", UploadStatus.ERROR, error="boom", retry_count=2))

        item = queue_reducer(state, RetryItem("a")).items[0]

        assert item.status == UploadStatus.QUEUED
        assert item.error is None
        assert item.retry_count == 2

    def test_retry_item_can_reset_retry_count(self):
        state = state_with(make_item("a", UploadStatus.ERROR, error="boom", retry_count=2))
        item = queue_reducer(state, RetryItem("a", reset_retries=True)).items[0]
        assert item.retry_count == 0

    def test_retry_item_requeues_retrying(self):
        state = state_with(make_item("a", UploadStatus.RETRYING, retry_count=1))
        item = queue_reducer(state, RetryItem("a")).items[0]
        assert item.status == UploadStatus.QUEUED
        assert item.retry_count == 1

    def test_retry_item_requeues_uploaded_and_clears_result(self):
        state = state_with(make_item(
            "a", UploadStatus.UPLOADED, progress=100, media_url="https://cdn/a.jpg",
            cf_video_uid="uid-1", cf_playback_url="https://stream/uid-1",
        ))

        item = queue_reducer(state, RetryItem("a")).items[0]

        assert item.status == UploadStatus.QUEUED
        assert item.progress == 0
        assert item.media_url is None
        assert item.cf_video_uid is None
        assert item.cf_playback_url is None

    @pytest.mark.parametrize(
        "status",
        [UploadStatus.QUEUED, UploadStatus.CONVERTING, UploadStatus.COMPRESSING, UploadStatus.UPLOADING],
    )
    def test_retry_item_ignores_queued_and_active(self, status):
        state = state_with(make_item("a", status))
        assert queue_reducer(state, RetryItem("a")) is state

    def test_retry_all_failed_touches_only_errors(self):
        uploaded = make_item("c", UploadStatus.UPLOADED)
        state = state_with(
            make_item("a", UploadStatus.ERROR, error="x", retry_count=2),
            make_item("b", UploadStatus.ERROR, error="y", retry_count=2),
            uploaded,
        )

        result = queue_reducer(state, RetryAllFailed())

        assert [i.status for i in result.items[:2]] == [UploadStatus.QUEUED] * 2
        assert [i.retry_count for i in result.items[:2]] == [2, 2]
        assert result.items[2] is uploaded

    def test_retry_all_failed_without_errors_is_noop(self):
        state = state_with(make_item("a", UploadStatus.UPLOADED))
        assert queue_reducer(state, RetryAllFailed()) is state
