"""
Media Module Enums

Type definitions for the media module.
Configuration values (limits, thresholds, codec settings) live in
config/settings.py following the "ALL config in config/settings.py" principle.
"""

from enum import Enum

# =============================================================================
# ENUMS
# =============================================================================


class MediaKind(Enum):
    """Broad media category used for validation limits"""

    IMAGE = "image"  # JPEG, PNG, WebP (and HEIC once converted)
    GIF = "gif"  # Animated images - never recompressed
    VIDEO = "video"  # MP4, WebM, MOV
    UNKNOWN = "unknown"  # Anything else - rejected


class ConversionKind(Enum):
    """Which conversion a file needs before upload"""

    HEIC = "heic"  # HEIC/HEIF -> JPEG
    MOV = "mov"  # MOV -> MP4 (only when CONVERT_MOV_TO_MP4 is enabled)


class CompressionStage(Enum):
    """Video compression progress stages"""

    LOADING = "loading"
    COMPRESSING = "compressing"
    DONE = "done"
    ERROR = "error"


# Extension -> MIME fallback (some clients report application/octet-stream)
EXTENSION_CONTENT_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "webp": "image/webp",
    "gif": "image/gif",
    "heic": "image/heic",
    "heif": "image/heif",
    "mp4": "video/mp4",
    "webm": "video/webm",
    "mov": "video/quicktime",
    "pdf": "application/pdf",
    "mp3": "audio/mpeg",
    "m4a": "audio/x-m4a",
    "wav": "audio/wav",
    "ogg": "audio/ogg",
}

DEFAULT_CONTENT_TYPE = "application/octet-stream"
