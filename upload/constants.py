"""
Upload Constants

Enums and status groupings for the upload module.
Numeric tuning (concurrency, retries, timeouts) lives in config/settings.py.
"""

from enum import Enum

# =============================================================================
# ITEM STATUS
# =============================================================================


class UploadStatus(Enum):
    """Lifecycle status of a queued upload"""

    QUEUED = "queued"  # Waiting for a free slot
    CONVERTING = "converting"  # HEIC -> JPEG (or MOV -> MP4)
    COMPRESSING = "compressing"  # Image/video compression
    UPLOADING = "uploading"  # Bytes in flight
    UPLOADED = "uploaded"  # Done, media_url set
    ERROR = "error"  # Failed, retries exhausted (manual retry possible)
    RETRYING = "retrying"  # Waiting out the delay before an automatic retry


# Statuses that hold a concurrency slot
ACTIVE_STATUSES = frozenset(
    {UploadStatus.CONVERTING, UploadStatus.COMPRESSING, UploadStatus.UPLOADING}
)

# Statuses the scheduler never picks up again on its own
TERMINAL_STATUSES = frozenset({UploadStatus.UPLOADED, UploadStatus.ERROR})

# Statuses a manual retry can move back to QUEUED (never active or queued)
RETRYABLE_STATUSES = frozenset(
    {UploadStatus.ERROR, UploadStatus.RETRYING, UploadStatus.UPLOADED}
)

# =============================================================================
# UPLOADER ERRORS
# =============================================================================


class UploadErrorKind(Enum):
    """Failure categories reported by storage uploaders"""

    NETWORK = "network"  # Connection reset, DNS, timeout
    SERVER = "server"  # 5xx after internal retries
    CLIENT = "client"  # 4xx (auth, payload rejected)
    PRESIGN = "presign"  # Could not obtain an upload URL
    INVALID_FILE = "invalid_file"  # File missing/unreadable


class StorageProvider(Enum):
    """Backends the storage API may hand out URLs for"""

    SUPABASE = "supabase"
    R2 = "r2"
    CLOUDFLARE_STREAM = "cloudflare-stream"
    MOCK = "mock"


# =============================================================================
# QUEUE EVENTS
# =============================================================================


class QueueEvent(Enum):
    """Events published by the queue store on the event bus"""

    STATE_CHANGED = "state_changed"  # Any action that changed state
    WORK_ADDED = "work_added"  # AddFiles
    SLOT_FREED = "slot_freed"  # DecrementActive
    RESUMED = "resumed"  # SetPaused(False) on a paused queue
    ITEM_REQUEUED = "item_requeued"  # RetryItem / RetryAllFailed
