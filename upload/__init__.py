"""
Upload Module

Bulk media upload queue with bounded concurrency, retries and
pause/resume, uploading through presigned storage URLs.

Public API:
    - UploadQueue: Consumer-facing queue
    - QueuedUpload: One item's immutable record
    - QueueStats: Aggregated counts
    - UploadStatus: Item status codes
    - UploadResult / UploaderError: Uploader results and failures
    - QueueConfig: YAML-backed queue configuration
    - create_uploader: Factory function

Usage:
    from upload import UploadQueue

    async with UploadQueue(event_id="evt-1", user_id="user-9") as queue:
        queue.add_files(["IMG_0001.HEIC", "clip.mp4"])
        await queue.wait_until_idle()
"""

from upload.config import QueueConfig
from upload.constants import UploadStatus
from upload.controllers.upload_queue import UploadQueue
from upload.factory import create_uploader
from upload.interfaces.uploader_interface import UploaderError, UploadResult
from upload.models.queued_upload import QueuedUpload, QueueStats

# Public API
__all__ = [
    "QueueConfig",
    "QueueStats",
    "QueuedUpload",
    "UploadQueue",
    "UploadResult",
    "UploadStatus",
    "UploaderError",
    "create_uploader",
]
