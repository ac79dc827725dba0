"""
Upload Queue

Consumer-facing bulk upload queue: validate and enqueue files, process up to
N of them at once, retry failures, pause/resume, clear completed.

This follows the controller pattern used across the project:
- Clean, simple API for callers (CLI, services)
- Collaborators (uploader, media toolkit, preview registry, event bus) are
  injected or auto-created
- All processing errors are contained per item
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple, Union

from core.event_bus import EventBus
from media.factory import MediaFactory, MediaToolkit
from media.interfaces.media_processor_interface import MediaProcessingError
from media.models.media_file import MediaFile
from media.utils.validation_utils import validate_media_file
from upload.config import QueueConfig
from upload.constants import ACTIVE_STATUSES, UploadStatus
from upload.factory import create_uploader
from upload.interfaces.uploader_interface import StorageUploaderInterface
from upload.models.queued_upload import QueuedUpload, QueueState, QueueStats
from upload.queue.actions import (
    AddFiles,
    ClearCompleted,
    RemoveItem,
    RetryAllFailed,
    RetryItem,
    SetPaused,
    UpdateItem,
)
from upload.queue.pipeline import CompletionCallback, UploadPipeline
from upload.queue.preview_registry import PreviewRegistry
from upload.queue.retry_policy import RetryPolicy
from upload.queue.scheduler import UploadScheduler
from upload.queue.store import QueueStore, StateListener

FileInput = Union[MediaFile, str, Path]


class UploadQueue:
    """
    Bounded-concurrency media upload queue.

    Methods that start work (add_files, retry_item, retry_all_failed,
    resume) must be called while an asyncio event loop is running.

    Usage:
        async with UploadQueue(event_id="evt-1", user_id="user-9") as queue:
            ids = queue.add_files(["IMG_0001.HEIC", "clip.mp4"])
            await queue.wait_until_idle()
            print(queue.stats)
    """

    def __init__(
        self,
        event_id: str,
        user_id: str,
        uploader: Optional[StorageUploaderInterface] = None,
        toolkit: Optional[MediaToolkit] = None,
        config: Optional[QueueConfig] = None,
        max_concurrent: Optional[int] = None,
        retry_policy: Optional[RetryPolicy] = None,
        bucket: Optional[str] = None,
        previews: Optional[PreviewRegistry] = None,
        event_bus: Optional[EventBus] = None,
        on_upload_complete: Optional[CompletionCallback] = None,
        probe_videos: bool = True,
    ):
        """
        Initialize the upload queue.

        Args:
            event_id: Event the moments belong to (storage path segment)
            user_id: Uploading user (storage path segment)
            uploader: Storage uploader, or None to auto-create from .env
            toolkit: Media processors, or None to auto-detect FFmpeg
            config: Queue configuration, or None to load config/upload_queue.yaml
            max_concurrent: Override config.max_concurrent
            retry_policy: Override the policy built from config
            bucket: Override config.bucket
            previews: Preview registry, or None for a private one
            event_bus: Event bus, or None for a private one
            on_upload_complete: Called with each item once it is uploaded
            probe_videos: Generate thumbnail + duration for accepted videos

        Raises:
            ValueError: If max_concurrent < 1
        """
        self.logger = logging.getLogger(__name__)

        self.config = config or QueueConfig()
        self.event_id = event_id
        self.user_id = user_id
        self.bucket = bucket or self.config.bucket
        self.max_concurrent = max_concurrent if max_concurrent is not None else self.config.max_concurrent
        self.retry_policy = retry_policy or RetryPolicy.from_config(self.config)
        self.probe_videos = probe_videos

        self.uploader = uploader or create_uploader()
        self.toolkit = toolkit or MediaFactory.create_toolkit(
            work_dir=self.config.work_dir,
            convert_mov=self.config.convert_mov_to_mp4,
        )
        self.previews = previews or PreviewRegistry()
        self.event_bus = event_bus or EventBus()
        self.store = QueueStore(self.event_bus)

        self.pipeline = UploadPipeline(
            store=self.store,
            toolkit=self.toolkit,
            uploader=self.uploader,
            previews=self.previews,
            retry_policy=self.retry_policy,
            schedule_retry=self._schedule_retry,
            bucket=self.bucket,
            event_id=event_id,
            user_id=user_id,
            on_complete=on_upload_complete,
        )
        self.scheduler = UploadScheduler(
            store=self.store,
            event_bus=self.event_bus,
            max_concurrent=self.max_concurrent,
            initial_status=self.pipeline.initial_status,
            launch=self._launch,
        )
        self.scheduler.attach()

        # Background work
        self._item_tasks: Dict[str, asyncio.Task] = {}
        self._retry_tasks: Dict[str, asyncio.Task] = {}
        self._probe_tasks: Set[asyncio.Task] = set()

        self._rejected: List[Tuple[str, str]] = []
        self._closed = False

        if not self.uploader.is_available():
            self.logger.warning(
                "Uploader initialized but not available. "
                "Check STORAGE_API_BASE_URL and network connection."
            )

        self.logger.info(
            f"Upload Queue initialized (bucket: {self.bucket}, "
            f"max_concurrent: {self.max_concurrent}, "
            f"max_retries: {self.retry_policy.max_retries})"
        )

    # =========================================================================
    # COMMANDS
    # =========================================================================

    def add_files(self, files: Iterable[FileInput]) -> List[str]:
        """
        Validate and enqueue files.

        Rejected files are logged, recorded in `rejected` and never enter
        the queue.

        Args:
            files: MediaFile objects or paths

        Returns:
            Ids of the accepted items, in input order

        Raises:
            RuntimeError: If the queue was closed or no event loop is running
        """
        self._ensure_open()
        self._require_loop()

        accepted: List[QueuedUpload] = []
        for entry in files:
            media = self._to_media_file(entry)
            if media is None:
                continue

            error = validate_media_file(media)
            if error:
                self.logger.warning(f"Rejected {media.name}: {error}")
                self._rejected.append((media.name, error))
                continue

            preview = self.previews.create(media.path)
            accepted.append(QueuedUpload.from_file(media, preview_url=preview))

        if not accepted:
            return []

        self.logger.info(f"Queued {len(accepted)} file(s)")
        self.store.dispatch(AddFiles(tuple(accepted)))

        if self.probe_videos:
            for item in accepted:
                if item.is_video:
                    self._start_probe(item)

        return [item.id for item in accepted]

    def remove_item(self, item_id: str) -> bool:
        """
        Remove an item and release its preview handles.

        An in-flight item stops at its next processing step; its slot is
        released when that step returns.

        Returns:
            True if an item was removed (False for an unknown id)
        """
        item = self.store.state.get_item(item_id)
        if item is None:
            return False

        self._cancel_retry(item_id)
        self._release_previews(item)
        self.store.dispatch(RemoveItem(item_id))
        self.logger.debug(f"Removed {item.name}")
        return True

    def retry_item(self, item_id: str) -> bool:
        """
        Re-queue a failed, retry-waiting or uploaded item now.

        Returns:
            True if the item went back to QUEUED
        """
        self._ensure_open()
        self._require_loop()
        self._cancel_retry(item_id)
        before = self.store.state
        after = self.store.dispatch(
            RetryItem(item_id, reset_retries=self.retry_policy.reset_on_manual_retry)
        )
        return after is not before

    def retry_all_failed(self) -> int:
        """
        Re-queue every item in ERROR.

        Returns:
            Number of items re-queued
        """
        self._ensure_open()
        self._require_loop()
        failed = len(self.store.state.with_status(UploadStatus.ERROR))
        self.store.dispatch(
            RetryAllFailed(reset_retries=self.retry_policy.reset_on_manual_retry)
        )
        if failed:
            self.logger.info(f"Retrying {failed} failed upload(s)")
        return failed

    def pause(self) -> None:
        """Stop starting new items (in-flight items continue)"""
        self.store.dispatch(SetPaused(True))
        self.logger.info("Queue paused")

    def resume(self) -> None:
        """Resume starting items (triggers a scheduling pass immediately)"""
        self._ensure_open()
        self._require_loop()
        self.store.dispatch(SetPaused(False))
        self.logger.info("Queue resumed")

    def clear_completed(self) -> int:
        """
        Remove uploaded items and release their preview handles.

        Returns:
            Number of items removed
        """
        uploaded = self.store.state.with_status(UploadStatus.UPLOADED)
        for item in uploaded:
            self._release_previews(item)
        self.store.dispatch(ClearCompleted())
        return len(uploaded)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Listen to every committed state change"""
        return self.store.subscribe(listener)

    # =========================================================================
    # READ-ONLY VIEW
    # =========================================================================

    @property
    def state(self) -> QueueState:
        return self.store.state

    @property
    def items(self) -> Tuple[QueuedUpload, ...]:
        """Items in insertion order"""
        return self.store.state.items

    @property
    def stats(self) -> QueueStats:
        return QueueStats.from_state(self.store.state)

    @property
    def is_paused(self) -> bool:
        return self.store.state.is_paused

    @property
    def is_complete(self) -> bool:
        return self.stats.is_complete

    @property
    def has_errors(self) -> bool:
        return self.stats.has_errors

    @property
    def is_uploading(self) -> bool:
        return self.stats.is_uploading

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def rejected(self) -> List[Tuple[str, str]]:
        """(file name, reason) for every file add_files() refused"""
        return list(self._rejected)

    def get_item(self, item_id: str) -> Optional[QueuedUpload]:
        return self.store.state.get_item(item_id)

    def get_status(self) -> Dict[str, Any]:
        """
        Get queue status (for CLI output and logs).

        Returns:
            Dictionary with stats, flags and per-item details
        """
        state = self.store.state
        return {
            'stats': self.stats.to_dict(),
            'is_paused': state.is_paused,
            'active_count': state.active_count,
            'max_concurrent': self.max_concurrent,
            'rejected': len(self._rejected),
            'items': [item.to_dict() for item in state.items],
        }

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def wait_until_idle(self, timeout: Optional[float] = None) -> bool:
        """
        Wait until nothing is active, retrying, or (unless paused) queued.

        Args:
            timeout: Seconds to wait (None = forever)

        Returns:
            True if the queue became idle, False on timeout
        """

        async def _wait() -> None:
            while not self._is_idle():
                changed = asyncio.Event()
                unsubscribe = self.store.subscribe(lambda change: changed.set())
                try:
                    await changed.wait()
                finally:
                    unsubscribe()

            pending = list(self._item_tasks.values())
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        try:
            await asyncio.wait_for(_wait(), timeout=timeout)
            return True
        except asyncio.TimeoutError:
            return False

    async def close(self, cancel_in_flight: bool = False) -> None:
        """
        Tear down the queue.

        Releases every preview handle, cancels retry timers and video probes,
        and stops in-flight items from touching queue state. In-flight
        uploads run to completion in the background unless cancel_in_flight
        is set.
        """
        if self._closed:
            return

        self._closed = True
        self.pipeline.closed = True
        self.scheduler.detach()

        to_await: List[asyncio.Task] = []
        for task in list(self._retry_tasks.values()) + list(self._probe_tasks):
            task.cancel()
            to_await.append(task)

        if cancel_in_flight:
            for task in self._item_tasks.values():
                task.cancel()
                to_await.append(task)

        revoked = self.previews.revoke_all()

        if to_await:
            await asyncio.gather(*to_await, return_exceptions=True)

        self._retry_tasks.clear()
        self._probe_tasks.clear()

        self.logger.info(
            f"Upload Queue closed ({revoked} preview handle(s) released, "
            f"{len(self._item_tasks)} upload(s) "
            f"{'cancelled' if cancel_in_flight else 'left running'})"
        )

    async def __aenter__(self) -> "UploadQueue":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("Upload queue is closed")

    def _require_loop(self) -> None:
        """Commands that can start work must run on the event loop"""
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            raise RuntimeError("Upload queue commands need a running event loop") from None

    def _to_media_file(self, entry: FileInput) -> Optional[MediaFile]:
        if isinstance(entry, MediaFile):
            return entry
        try:
            return MediaFile.from_path(entry)
        except OSError as e:
            name = Path(entry).name
            self.logger.warning(f"Rejected {name}: {e}")
            self._rejected.append((name, f"Cannot read file: {e}"))
            return None

    def _is_idle(self) -> bool:
        state = self.store.state
        if state.active_count > 0:
            return False
        for item in state.items:
            if item.status in ACTIVE_STATUSES or item.status == UploadStatus.RETRYING:
                return False
            if item.status == UploadStatus.QUEUED and not state.is_paused:
                return False
        return True

    def _launch(self, item: QueuedUpload) -> None:
        task = asyncio.get_running_loop().create_task(
            self.pipeline.process(item), name=f"upload-{item.id}"
        )
        self._item_tasks[item.id] = task

        def _done(finished: asyncio.Task) -> None:
            if self._item_tasks.get(item.id) is finished:
                del self._item_tasks[item.id]

        task.add_done_callback(_done)

    def _schedule_retry(self, item_id: str, delay: float) -> None:
        if self._closed:
            return
        self._cancel_retry(item_id)
        task = asyncio.get_running_loop().create_task(
            self._retry_after(item_id, delay), name=f"retry-{item_id}"
        )
        self._retry_tasks[item_id] = task

        def _done(finished: asyncio.Task) -> None:
            if self._retry_tasks.get(item_id) is finished:
                del self._retry_tasks[item_id]

        task.add_done_callback(_done)

    async def _retry_after(self, item_id: str, delay: float) -> None:
        await asyncio.sleep(delay)
        if self._closed:
            return
        current = self.store.state.get_item(item_id)
        if current is not None and current.status == UploadStatus.RETRYING:
            self.store.dispatch(RetryItem(item_id))

    def _cancel_retry(self, item_id: str) -> None:
        task = self._retry_tasks.pop(item_id, None)
        if task is not None:
            task.cancel()

    def _start_probe(self, item: QueuedUpload) -> None:
        task = asyncio.get_running_loop().create_task(
            self._probe_video(item.id, item.file), name=f"probe-{item.id}"
        )
        self._probe_tasks.add(task)
        task.add_done_callback(self._probe_tasks.discard)

    async def _probe_video(self, item_id: str, file: MediaFile) -> None:
        thumbnailer = self.toolkit.thumbnailer
        try:
            thumbnail = await thumbnailer.generate_thumbnail(file)
        except MediaProcessingError as e:
            self.logger.warning(f"No thumbnail for {file.name}: {e}")
            thumbnail = None

        duration = await thumbnailer.get_duration(file)

        handle = self.previews.create(thumbnail, owned=True) if thumbnail else None
        current = self.store.state.get_item(item_id)
        if self._closed or current is None:
            # Item went away while probing
            self.previews.revoke(handle)
            return

        changes: Dict[str, Any] = {"duration": duration}
        if handle:
            changes["local_thumbnail_url"] = handle
        self.store.dispatch(UpdateItem(item_id, changes))
        if handle and current.local_thumbnail_url:
            self.previews.revoke(current.local_thumbnail_url)

    def _release_previews(self, item: QueuedUpload) -> None:
        self.previews.revoke(item.preview_url)
        self.previews.revoke(item.local_thumbnail_url)

    def __repr__(self) -> str:
        stats = self.stats
        return (
            f"UploadQueue(total={stats.total}, active={self.state.active_count}, "
            f"paused={self.is_paused}, closed={self._closed})"
        )
