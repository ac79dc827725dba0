"""
Implementations Package

Concrete uploader implementations.
"""

from upload.implementations.mock_uploader import MockUploader
from upload.implementations.presigned_uploader import PresignedUploader

__all__ = [
    "MockUploader",
    "PresignedUploader",
]
