"""
Validation Utilities

Synchronous checks run before a file is accepted into the upload queue,
plus the format-detection helpers the converters rely on.
"""

import logging
from typing import Optional

from config.settings import (
    ALLOWED_GIF_TYPES,
    ALLOWED_IMAGE_TYPES,
    ALLOWED_VIDEO_TYPES,
    CONVERTIBLE_IMAGE_TYPES,
    MAX_GIF_SIZE_BYTES,
    MAX_IMAGE_SIZE_BYTES,
    MAX_VIDEO_SIZE_BYTES,
)
from media.constants import ConversionKind, MediaKind
from media.models.media_file import MediaFile


logger = logging.getLogger(__name__)

HEIC_EXTENSIONS = ("heic", "heif")


def get_media_kind(file: MediaFile) -> MediaKind:
    """
    Classify a file by MIME type, with extension fallbacks for HEIC and MOV.

    Args:
        file: MediaFile to classify

    Returns:
        MediaKind (UNKNOWN for unsupported formats)
    """
    content_type = file.content_type
    ext = file.extension

    if content_type in ALLOWED_GIF_TYPES:
        return MediaKind.GIF

    if (
        content_type in ALLOWED_IMAGE_TYPES
        or content_type in CONVERTIBLE_IMAGE_TYPES
        or ext in HEIC_EXTENSIONS
    ):
        return MediaKind.IMAGE

    if content_type in ALLOWED_VIDEO_TYPES or ext == "mov":
        return MediaKind.VIDEO

    return MediaKind.UNKNOWN


def validate_media_file(file: MediaFile) -> Optional[str]:
    """
    Validate a file before it enters the queue.

    Checks format first, then the per-kind size limit.

    Args:
        file: MediaFile to validate

    Returns:
        Error message, or None if the file is acceptable

    Example:
        error = validate_media_file(MediaFile.from_path("clip.mp4"))
        if error:
            print(f"Rejected: {error}")
    """
    kind = get_media_kind(file)

    if kind == MediaKind.UNKNOWN:
        return "Unsupported format. Use JPEG, PNG, WebP, HEIC, GIF, MP4, WebM, or MOV"

    if kind == MediaKind.IMAGE and file.size > MAX_IMAGE_SIZE_BYTES:
        return "Images must be less than 10MB"

    if kind == MediaKind.GIF and file.size > MAX_GIF_SIZE_BYTES:
        return "GIFs must be less than 15MB"

    if kind == MediaKind.VIDEO and file.size > MAX_VIDEO_SIZE_BYTES:
        return "Videos must be less than 50MB"

    return None


def needs_conversion(
    file: MediaFile,
    convert_mov: bool = False,
) -> Optional[ConversionKind]:
    """
    Decide whether a file must be converted before upload.

    HEIC/HEIF is detected by MIME type or extension (some browsers report
    the wrong MIME). MOV is only converted when convert_mov is enabled.

    Returns:
        ConversionKind, or None if the file uploads as-is
    """
    if file.content_type in CONVERTIBLE_IMAGE_TYPES or file.extension in HEIC_EXTENSIONS:
        return ConversionKind.HEIC

    if convert_mov and (file.content_type == "video/quicktime" or file.extension == "mov"):
        return ConversionKind.MOV

    return None


def is_file_readable(file: MediaFile) -> bool:
    """
    Quick check that the payload still exists on disk.

    Use this right before reading bytes; files can disappear between enqueue
    and upload (temp directories, user cleanup).
    """
    try:
        return file.path.is_file()
    except OSError as e:
        logger.warning(f"Cannot stat {file.path}: {e}")
        return False
