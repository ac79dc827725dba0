"""
Upload Queue Models

Immutable records for the upload queue. Every update produces a new object
(dataclasses.replace); nothing is mutated in place, so a snapshot handed to a
listener never changes under it.
"""

import random
import string
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from media.models.media_file import CompressionProgress, MediaFile
from upload.constants import ACTIVE_STATUSES, UploadStatus


def generate_item_id() -> str:
    """
    Opaque item id: millisecond timestamp + random base36 suffix.

    Example:
        generate_item_id()  # "1718000000000_k3j9x2"
    """
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=6))
    return f"{int(time.time() * 1000)}_{suffix}"


@dataclass(frozen=True)
class QueuedUpload:
    """
    One file's journey through the upload pipeline.

    Lifecycle:
    queued -> (converting) -> (compressing) -> uploading -> uploaded
                                                         -> retrying -> queued
                                                         -> error
    """

    id: str
    file: MediaFile
    name: str
    size: int
    is_video: bool

    status: UploadStatus = UploadStatus.QUEUED
    progress: int = 0  # 0-100, advisory
    retry_count: int = 0
    error: Optional[str] = None  # Set only while status is ERROR

    # Preview handles (owned by this item, released on removal/teardown)
    preview_url: Optional[str] = None
    local_thumbnail_url: Optional[str] = None
    duration: Optional[float] = None  # Video length in seconds

    # Populated only on successful upload
    media_url: Optional[str] = None
    cf_video_uid: Optional[str] = None
    cf_playback_url: Optional[str] = None

    compression_progress: Optional[CompressionProgress] = None

    @classmethod
    def from_file(
        cls,
        file: MediaFile,
        item_id: Optional[str] = None,
        preview_url: Optional[str] = None,
    ) -> "QueuedUpload":
        """Create a queued item for an accepted file"""
        return cls(
            id=item_id or generate_item_id(),
            file=file,
            name=file.name,
            size=file.size,
            is_video=file.is_video,
            preview_url=preview_url,
        )

    @property
    def is_active(self) -> bool:
        """True while the item holds a concurrency slot"""
        return self.status in ACTIVE_STATUSES

    @property
    def is_uploaded(self) -> bool:
        return self.status == UploadStatus.UPLOADED

    @property
    def is_failed(self) -> bool:
        return self.status == UploadStatus.ERROR

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (for logs and CLI output)"""
        return {
            'id': self.id,
            'name': self.name,
            'size': self.size,
            'is_video': self.is_video,
            'status': self.status.value,
            'progress': self.progress,
            'retry_count': self.retry_count,
            'error': self.error,
            'duration': self.duration,
            'media_url': self.media_url,
            'cf_video_uid': self.cf_video_uid,
            'cf_playback_url': self.cf_playback_url,
        }

    def __repr__(self) -> str:
        return (
            f"QueuedUpload(id='{self.id}', name='{self.name}', "
            f"status={self.status.value}, retries={self.retry_count})"
        )


@dataclass(frozen=True)
class QueueState:
    """Whole-queue state: items in insertion order, pause flag, slot counter"""

    items: Tuple[QueuedUpload, ...] = field(default_factory=tuple)
    is_paused: bool = False
    active_count: int = 0

    def get_item(self, item_id: str) -> Optional[QueuedUpload]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def with_status(self, status: UploadStatus) -> Tuple[QueuedUpload, ...]:
        """Items currently in `status`, in insertion order"""
        return tuple(item for item in self.items if item.status == status)


@dataclass(frozen=True)
class QueueStats:
    """
    Aggregated counts per status.

    `uploading` counts every item in the active set (converting, compressing
    or uploading), matching what users see as "in progress".
    """

    total: int = 0
    queued: int = 0
    retrying: int = 0
    uploading: int = 0
    completed: int = 0
    failed: int = 0

    @classmethod
    def from_state(cls, state: QueueState) -> "QueueStats":
        counts = {status: 0 for status in UploadStatus}
        for item in state.items:
            counts[item.status] += 1

        return cls(
            total=len(state.items),
            queued=counts[UploadStatus.QUEUED],
            retrying=counts[UploadStatus.RETRYING],
            uploading=sum(counts[s] for s in ACTIVE_STATUSES),
            completed=counts[UploadStatus.UPLOADED],
            failed=counts[UploadStatus.ERROR],
        )

    @property
    def is_complete(self) -> bool:
        """Every item uploaded (and there is at least one)"""
        return self.total > 0 and self.completed == self.total

    @property
    def has_errors(self) -> bool:
        return self.failed > 0

    @property
    def is_uploading(self) -> bool:
        """Work is in progress or still pending"""
        return self.uploading > 0 or self.queued > 0 or self.retrying > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total': self.total,
            'queued': self.queued,
            'retrying': self.retrying,
            'uploading': self.uploading,
            'completed': self.completed,
            'failed': self.failed,
        }
