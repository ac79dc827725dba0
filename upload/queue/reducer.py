"""
Queue Reducer

Pure state transitions for the upload queue: (state, action) -> state.

No I/O, no async work. When an action changes nothing the *same* state
object is returned, which is how the store detects no-ops.
"""

from dataclasses import replace

from upload.constants import RETRYABLE_STATUSES, UploadStatus
from upload.models.queued_upload import QueuedUpload, QueueState
from upload.queue.actions import (
    AddFiles,
    ClearCompleted,
    DecrementActive,
    IncrementActive,
    QueueAction,
    RemoveItem,
    RetryAllFailed,
    RetryItem,
    SetPaused,
    UpdateItem,
)


def _requeue(item: QueuedUpload, reset_retries: bool) -> QueuedUpload:
    return replace(
        item,
        status=UploadStatus.QUEUED,
        error=None,
        progress=0,
        compression_progress=None,
        media_url=None,
        cf_video_uid=None,
        cf_playback_url=None,
        retry_count=0 if reset_retries else item.retry_count,
    )


def queue_reducer(state: QueueState, action: QueueAction) -> QueueState:
    """
    Compute the next queue state.

    Args:
        state: Current state
        action: Action to apply

    Returns:
        New state, or `state` itself if nothing changed

    Raises:
        TypeError: For an unknown action type
    """
    if isinstance(action, AddFiles):
        if not action.items:
            return state
        added = tuple(replace(item, status=UploadStatus.QUEUED) for item in action.items)
        return replace(state, items=state.items + added)

    if isinstance(action, UpdateItem):
        for index, item in enumerate(state.items):
            if item.id == action.id:
                updated = replace(item, **action.changes)
                items = state.items[:index] + (updated,) + state.items[index + 1:]
                return replace(state, items=items)
        return state

    if isinstance(action, RemoveItem):
        items = tuple(item for item in state.items if item.id != action.id)
        if len(items) == len(state.items):
            return state
        return replace(state, items=items)

    if isinstance(action, SetPaused):
        if state.is_paused == action.paused:
            return state
        return replace(state, is_paused=action.paused)

    if isinstance(action, IncrementActive):
        return replace(state, active_count=state.active_count + 1)

    if isinstance(action, DecrementActive):
        # Floors at zero even under a double dispatch
        if state.active_count == 0:
            return state
        return replace(state, active_count=state.active_count - 1)

    if isinstance(action, ClearCompleted):
        items = tuple(item for item in state.items if item.status != UploadStatus.UPLOADED)
        if len(items) == len(state.items):
            return state
        return replace(state, items=items)

    if isinstance(action, RetryItem):
        for index, item in enumerate(state.items):
            if item.id == action.id:
                if item.status not in RETRYABLE_STATUSES:
                    return state
                items = (
                    state.items[:index]
                    + (_requeue(item, action.reset_retries),)
                    + state.items[index + 1:]
                )
                return replace(state, items=items)
        return state

    if isinstance(action, RetryAllFailed):
        if not any(item.status == UploadStatus.ERROR for item in state.items):
            return state
        items = tuple(
            _requeue(item, action.reset_retries) if item.status == UploadStatus.ERROR else item
            for item in state.items
        )
        return replace(state, items=items)

    raise TypeError(f"Unknown queue action: {action!r}")
