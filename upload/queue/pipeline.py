"""
Upload Pipeline

Processes one started item: convert -> compress -> upload, then settles it
as UPLOADED or hands the failure to the retry policy.

Every exception is caught at this boundary and turned into item state;
nothing escapes the item's task.
"""

import logging
import time
from pathlib import Path
from typing import Callable, Optional

from media.factory import MediaToolkit
from media.interfaces.media_processor_interface import MediaProcessingError
from media.models.media_file import CompressionProgress, MediaFile
from upload.constants import UploadStatus
from upload.interfaces.uploader_interface import (
    StorageUploaderInterface,
    UploaderError,
    UploadOptions,
)
from upload.models.queued_upload import QueuedUpload
from upload.queue.actions import DecrementActive, QueueAction, UpdateItem
from upload.queue.preview_registry import PreviewRegistry
from upload.queue.retry_policy import RetryPolicy
from upload.queue.store import QueueStore

CompletionCallback = Callable[[QueuedUpload], None]
RetryScheduler = Callable[[str, float], None]


class _Detached(Exception):
    """The item was removed or the queue closed while it was processing"""


class UploadPipeline:
    """
    Per-item processing routine.

    Args:
        store: Queue store
        toolkit: Converter, compressors and thumbnailer
        uploader: Storage uploader
        previews: Preview handle registry
        retry_policy: Applied on failure
        schedule_retry: Called with (item_id, delay) when an item enters RETRYING
        bucket: Storage bucket
        event_id: First storage path segment
        user_id: Second storage path segment
        on_complete: Called with the current record after a successful upload
    """

    def __init__(
        self,
        store: QueueStore,
        toolkit: MediaToolkit,
        uploader: StorageUploaderInterface,
        previews: PreviewRegistry,
        retry_policy: RetryPolicy,
        schedule_retry: RetryScheduler,
        bucket: str,
        event_id: str,
        user_id: str,
        on_complete: Optional[CompletionCallback] = None,
    ):
        self.logger = logging.getLogger(__name__)
        self.store = store
        self.toolkit = toolkit
        self.uploader = uploader
        self.previews = previews
        self.retry_policy = retry_policy
        self.schedule_retry = schedule_retry
        self.bucket = bucket
        self.event_id = event_id
        self.user_id = user_id
        self.on_complete = on_complete

        # Set by the queue on teardown; no dispatches afterwards
        self.closed = False

    # =========================================================================
    # SCHEDULER HOOKS
    # =========================================================================

    def initial_status(self, item: QueuedUpload) -> UploadStatus:
        """First active status for an item, decided before it starts"""
        file = item.file
        if self.toolkit.converter.needs_conversion(file):
            return UploadStatus.CONVERTING
        if self.toolkit.image_compressor.needs_compression(file):
            return UploadStatus.COMPRESSING
        if self.toolkit.video_compressor.needs_compression(file):
            return UploadStatus.COMPRESSING
        return UploadStatus.UPLOADING

    def storage_path(self, item_id: str, file: MediaFile) -> str:
        """
        Object path for an upload.

        Example:
            "evt-1/user-9/1718000000000_17180000.jpg"
        """
        ext = file.extension or "jpg"
        return f"{self.event_id}/{self.user_id}/{int(time.time() * 1000)}_{item_id[:8]}.{ext}"

    # =========================================================================
    # PROCESSING
    # =========================================================================

    async def process(self, item: QueuedUpload) -> None:
        """
        Run the pipeline for an item the scheduler has already marked active.

        Always releases the item's slot (DecrementActive) unless the queue
        was closed.
        """
        item_id = item.id
        file = item.file

        try:
            converter = self.toolkit.converter
            if converter.needs_conversion(file):
                self._enter_phase(item_id, UploadStatus.CONVERTING)
                file = await converter.convert(file)
                self._ensure_attached(item_id)
                self._replace_preview(item_id, file.path)

            image_compressor = self.toolkit.image_compressor
            if image_compressor.needs_compression(file):
                self._enter_phase(item_id, UploadStatus.COMPRESSING)
                result = await image_compressor.compress(file)
                self._ensure_attached(item_id)
                if result.was_compressed:
                    file = result.file
                    self._replace_preview(item_id, file.path)

            video_compressor = self.toolkit.video_compressor
            if video_compressor.needs_compression(file):
                self._enter_phase(item_id, UploadStatus.COMPRESSING)

                def on_compression(progress: CompressionProgress) -> None:
                    self._update(item_id, compression_progress=progress)

                compressed = await video_compressor.compress(file, on_compression)
                self._ensure_attached(item_id)
                if compressed.path != file.path:
                    file = compressed
                    self._replace_preview(item_id, file.path)

            self._enter_phase(
                item_id,
                UploadStatus.UPLOADING,
                progress=0,
                compression_progress=None,
            )

            result = await self.uploader.upload(
                self.bucket,
                file,
                UploadOptions(
                    path=self.storage_path(item_id, file),
                    on_progress=self._progress_reporter(item_id),
                ),
            )
            self._ensure_attached(item_id)

            self._update(
                item_id,
                status=UploadStatus.UPLOADED,
                media_url=result.public_url,
                cf_video_uid=result.cf_video_uid,
                cf_playback_url=result.cf_playback_url,
                progress=100,
                error=None,
            )
            self.logger.info(f"✅ Uploaded {item.name} -> {result.public_url}")
            self._notify_complete(item_id)

        except _Detached:
            self.logger.debug(f"Item {item_id} detached, stopping pipeline")

        except Exception as e:
            self._handle_failure(item_id, e)

        finally:
            self._dispatch(DecrementActive())

    def _handle_failure(self, item_id: str, error: Exception) -> None:
        message = str(error) or "Upload failed"

        if isinstance(error, (UploaderError, MediaProcessingError)):
            self.logger.error(f"❌ Upload error for {item_id}: {message}")
        else:
            self.logger.error(f"❌ Unexpected error for {item_id}: {message}", exc_info=True)

        if self.closed:
            return

        current = self.store.state.get_item(item_id)
        if current is None:
            return

        if self.retry_policy.should_retry(current.retry_count):
            delay = self.retry_policy.delay_for(current.retry_count)
            self._update(
                item_id,
                status=UploadStatus.RETRYING,
                retry_count=current.retry_count + 1,
                progress=0,
                compression_progress=None,
            )
            self.logger.info(
                f"Retrying {current.name} in {delay:.1f}s "
                f"(attempt {current.retry_count + 1}/{self.retry_policy.max_retries})"
            )
            self.schedule_retry(item_id, delay)
        else:
            self._update(
                item_id,
                status=UploadStatus.ERROR,
                error=message,
                compression_progress=None,
            )

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _dispatch(self, action: QueueAction) -> None:
        if self.closed:
            return
        self.store.dispatch(action)

    def _update(self, item_id: str, **changes) -> None:
        self._dispatch(UpdateItem(item_id, changes))

    def _enter_phase(self, item_id: str, status: UploadStatus, **changes) -> None:
        # The scheduler already set the first phase in start_item
        current = self.store.state.get_item(item_id)
        if current is not None and current.status == status:
            return
        self._update(item_id, status=status, **changes)

    def _ensure_attached(self, item_id: str) -> None:
        if self.closed or self.store.state.get_item(item_id) is None:
            raise _Detached(item_id)

    def _replace_preview(self, item_id: str, path: Path) -> None:
        """Point the item's preview at a processed file, releasing the old one"""
        handle = self.previews.create(path, owned=True)
        current = self.store.state.get_item(item_id)
        if self.closed or current is None:
            self.previews.revoke(handle)
            raise _Detached(item_id)

        old_handle = current.preview_url
        self._update(item_id, preview_url=handle)
        self.previews.revoke(old_handle)

    def _progress_reporter(self, item_id: str) -> Callable[[int, int], None]:
        last = {"percent": -1}

        def report(sent: int, total: int) -> None:
            percent = int(sent * 100 / total) if total else 100
            # Stay below 100 until the upload is confirmed
            percent = min(percent, 99)
            if percent != last["percent"]:
                last["percent"] = percent
                self._update(item_id, progress=percent)

        return report

    def _notify_complete(self, item_id: str) -> None:
        if self.on_complete is None:
            return
        current = self.store.state.get_item(item_id)
        if current is None:
            return
        try:
            self.on_complete(current)
        except Exception as e:
            self.logger.error(f"Upload complete callback failed: {e}", exc_info=True)
