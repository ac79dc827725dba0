"""
Controllers Package

High-level upload coordinators.
"""

from upload.controllers.upload_queue import UploadQueue

__all__ = [
    "UploadQueue",
]
