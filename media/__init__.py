"""
Media Module

Validation, conversion and compression of photos and videos before upload.

Public API:
    - MediaFile: Reference to a local media payload
    - MediaToolkit: Converter + compressors + thumbnailer bundle
    - MediaProcessingError: Raised when a processing step fails
    - validate_media_file: Synchronous pre-queue validation
    - create_media_toolkit: Factory function

Usage:
    from media import MediaFile, validate_media_file

    file = MediaFile.from_path("IMG_0001.HEIC")
    error = validate_media_file(file)
"""

from media.factory import MediaFactory, MediaToolkit, create_media_toolkit
from media.interfaces.media_processor_interface import MediaProcessingError
from media.models.media_file import CompressionProgress, CompressionResult, MediaFile
from media.utils.validation_utils import validate_media_file

# Public API
__all__ = [
    "CompressionProgress",
    "CompressionResult",
    "MediaFactory",
    "MediaFile",
    "MediaProcessingError",
    "MediaToolkit",
    "create_media_toolkit",
    "validate_media_file",
]
