"""
Media Processor Interfaces

Abstract interfaces for the processing steps a file may go through before
upload: format conversion, image compression, video compression and
thumbnail extraction.

The upload queue only depends on these abstractions; FFmpeg/Pillow
implementations and mocks are swapped in through media/factory.py.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Optional

from media.constants import ConversionKind
from media.models.media_file import CompressionProgress, CompressionResult, MediaFile

# Callback type for video compression progress
ProgressCallback = Callable[[CompressionProgress], None]


class MediaConverterInterface(ABC):
    """
    Converts formats the storage target cannot serve directly
    (HEIC/HEIF images, optionally MOV videos).
    """

    @abstractmethod
    def needs_conversion(self, file: MediaFile) -> Optional[ConversionKind]:
        """
        Decide whether a file must be converted.

        Returns:
            ConversionKind, or None if the file uploads as-is
        """

    @abstractmethod
    async def convert(self, file: MediaFile) -> MediaFile:
        """
        Convert a file.

        Args:
            file: File for which needs_conversion() returned a kind

        Returns:
            New MediaFile pointing at the converted output

        Raises:
            MediaProcessingError: If conversion fails
        """


class ImageCompressorInterface(ABC):
    """Shrinks large still images before upload"""

    @abstractmethod
    def needs_compression(self, file: MediaFile) -> bool:
        """True for non-GIF images above the compression threshold"""

    @abstractmethod
    async def compress(self, file: MediaFile) -> CompressionResult:
        """
        Compress an image.

        Never raises for encoding problems: on failure the result carries the
        original file with was_compressed=False.

        Example:
            result = await compressor.compress(file)
            if result.was_compressed:
                print(f"Saved {result.saved_bytes} bytes")
        """


class VideoCompressorInterface(ABC):
    """Re-encodes large videos before upload"""

    @abstractmethod
    def needs_compression(self, file: MediaFile) -> bool:
        """True for videos above the compression threshold"""

    @abstractmethod
    async def compress(
        self,
        file: MediaFile,
        on_progress: Optional[ProgressCallback] = None,
    ) -> MediaFile:
        """
        Compress a video.

        Args:
            file: Video to compress
            on_progress: Called with CompressionProgress updates

        Returns:
            Compressed MediaFile, or the original if compression failed or
            did not make the file smaller
        """


class ThumbnailerInterface(ABC):
    """Extracts a preview frame and duration from videos"""

    @abstractmethod
    async def generate_thumbnail(self, file: MediaFile) -> Path:
        """
        Write a JPEG thumbnail for a video.

        Returns:
            Path of the thumbnail file (caller owns it)

        Raises:
            MediaProcessingError: If no frame could be extracted
        """

    @abstractmethod
    async def get_duration(self, file: MediaFile) -> Optional[float]:
        """Duration in seconds, or None if unknown"""


class MediaProcessingError(Exception):
    """
    Exception raised when a processing step fails.

    Examples:
    - HEIC decoder missing
    - Corrupt input file
    - FFmpeg timeout
    """

    def __init__(self, message: str, kind: Optional[ConversionKind] = None):
        super().__init__(message)
        self.kind = kind
