"""
Uploader Interface

Abstract interface for storage upload implementations.
Follows Dependency Inversion Principle - the upload queue depends on this
abstraction, not on the concrete presigned-URL HTTP client.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional

from media.models.media_file import MediaFile
from upload.constants import UploadErrorKind

# Called with (bytes_sent, total_bytes)
ByteProgressCallback = Callable[[int, int], None]


@dataclass
class UploadOptions:
    """
    Per-upload options.

    Attributes:
        path: Object path inside the bucket (e.g. "event/user/1700000000000_abcd1234.jpg")
        on_progress: Called as bytes are sent (optional)
    """

    path: str
    on_progress: Optional[ByteProgressCallback] = None


@dataclass
class UploadResult:
    """
    Result of a successful upload.

    Attributes:
        public_url: URL the media is served from
        path: Object path inside the bucket
        provider: Storage backend that received the bytes
        cf_video_uid: Cloudflare Stream video UID (videos on Stream only)
        cf_playback_url: Cloudflare Stream playback URL (videos on Stream only)
        upload_duration: Time taken to upload in seconds
        file_size: Size of uploaded file in bytes
    """

    public_url: str
    path: str
    provider: str = "unknown"
    cf_video_uid: Optional[str] = None
    cf_playback_url: Optional[str] = None
    upload_duration: float = 0.0
    file_size: int = 0


class StorageUploaderInterface(ABC):
    """
    Abstract base class for storage uploaders.

    Any uploader implementation (presigned HTTP, local mock, etc.)
    must implement these methods.
    """

    @abstractmethod
    async def upload(
        self,
        bucket: str,
        file: MediaFile,
        options: UploadOptions,
    ) -> UploadResult:
        """
        Upload a file.

        Transport-level retries are the implementation's business; the queue
        applies its own retry policy on top when this raises.

        Args:
            bucket: Target bucket (e.g. "moments")
            file: File to upload
            options: Object path and progress callback

        Returns:
            UploadResult with the public URL

        Raises:
            UploaderError: If the upload failed

        Example:
            result = await uploader.upload(
                "moments",
                MediaFile.from_path("/tmp/IMG_0001.jpg"),
                UploadOptions(path="event-1/user-1/1700000000000_abcd1234.jpg"),
            )
        """

    @abstractmethod
    def is_available(self) -> bool:
        """
        Check if uploader is configured to upload.

        Returns:
            True if endpoint and credentials are present
        """

    @abstractmethod
    async def test_connection(self) -> bool:
        """
        Test connection to the storage API without uploading.

        Returns:
            True if the API answered
        """


class UploaderError(Exception):
    """
    Exception raised for upload-related errors.

    Examples:
    - Presign endpoint rejected the request
    - Network error after all retries
    - File disappeared before upload
    """

    def __init__(
        self,
        message: str,
        kind: UploadErrorKind = UploadErrorKind.NETWORK,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code
