"""
Models Package

Data classes for media files and processing results.
"""

from media.models.media_file import CompressionProgress, CompressionResult, MediaFile

__all__ = [
    "CompressionProgress",
    "CompressionResult",
    "MediaFile",
]
