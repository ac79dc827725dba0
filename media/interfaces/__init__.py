"""
Interfaces Package

Abstract interfaces for media processing implementations.
"""

from media.interfaces.media_processor_interface import (
    ImageCompressorInterface,
    MediaConverterInterface,
    MediaProcessingError,
    ThumbnailerInterface,
    VideoCompressorInterface,
)

__all__ = [
    "ImageCompressorInterface",
    "MediaConverterInterface",
    "MediaProcessingError",
    "ThumbnailerInterface",
    "VideoCompressorInterface",
]
