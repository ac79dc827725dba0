"""
Interfaces Package

Abstract interfaces for storage upload implementations.
"""

from upload.interfaces.uploader_interface import (
    StorageUploaderInterface,
    UploaderError,
    UploadOptions,
    UploadResult,
)

__all__ = [
    "StorageUploaderInterface",
    "UploadOptions",
    "UploadResult",
    "UploaderError",
]
