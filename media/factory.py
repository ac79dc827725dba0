"""
Media Factory

Factory pattern for creating the media processing toolkit.
Follows same pattern as upload/factory.py for consistency.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Optional

from config.settings import CONVERT_MOV_TO_MP4, UPLOAD_WORK_DIR
from media.implementations.ffmpeg_converter import FFmpegConverter
from media.implementations.ffmpeg_thumbnailer import FFmpegThumbnailer
from media.implementations.ffmpeg_video_compressor import FFmpegVideoCompressor
from media.implementations.mock_processors import (
    MockConverter,
    MockImageCompressor,
    MockThumbnailer,
    MockVideoCompressor,
)
from media.implementations.pillow_image_compressor import PillowImageCompressor
from media.interfaces.media_processor_interface import (
    ImageCompressorInterface,
    MediaConverterInterface,
    ThumbnailerInterface,
    VideoCompressorInterface,
)
from media.utils.ffmpeg_utils import ffmpeg_available

# Type alias
MediaMode = Literal["auto", "ffmpeg", "mock"]


@dataclass
class MediaToolkit:
    """The processing collaborators the upload pipeline needs"""

    converter: MediaConverterInterface
    image_compressor: ImageCompressorInterface
    video_compressor: VideoCompressorInterface
    thumbnailer: ThumbnailerInterface


class MediaFactory:
    """
    Factory for media processing implementations.

    Usage:
        # Auto-detect (FFmpeg if installed, else mocks)
        toolkit = MediaFactory.create_toolkit()

        # Force mocks for testing
        toolkit = MediaFactory.create_toolkit(mode="mock", work_dir=tmp_path)
    """

    _logger = logging.getLogger(__name__)

    @classmethod
    def create_toolkit(
        cls,
        mode: MediaMode = "auto",
        work_dir: Optional[Path] = None,
        convert_mov: bool = CONVERT_MOV_TO_MP4,
    ) -> MediaToolkit:
        """
        Create a media toolkit.

        Args:
            mode: "auto" (detect ffmpeg), "ffmpeg" (force real), "mock" (force sim)
            work_dir: Directory for derived files (defaults to UPLOAD_WORK_DIR)
            convert_mov: Remux MOV to MP4 before upload

        Raises:
            RuntimeError: If mode="ffmpeg" but ffmpeg/ffprobe are not installed
        """
        target_dir = Path(work_dir) if work_dir else UPLOAD_WORK_DIR

        if mode == "mock":
            cls._logger.info("Creating Mock media toolkit (forced)")
            return cls._create_mock_toolkit(target_dir, convert_mov)

        if mode == "ffmpeg":
            if not ffmpeg_available():
                raise RuntimeError(
                    "FFmpeg toolkit requested but ffmpeg/ffprobe not found. "
                    "Install with: sudo apt-get install ffmpeg"
                )
            cls._logger.info("Creating FFmpeg media toolkit (forced)")
            return cls._create_ffmpeg_toolkit(target_dir, convert_mov)

        # mode == "auto"
        if ffmpeg_available():
            cls._logger.info("Creating FFmpeg media toolkit (auto-detected)")
            return cls._create_ffmpeg_toolkit(target_dir, convert_mov)

        cls._logger.warning("ffmpeg not available, using Mock media toolkit")
        return cls._create_mock_toolkit(target_dir, convert_mov)

    @staticmethod
    def _create_ffmpeg_toolkit(work_dir: Path, convert_mov: bool) -> MediaToolkit:
        return MediaToolkit(
            converter=FFmpegConverter(work_dir, convert_mov=convert_mov),
            image_compressor=PillowImageCompressor(work_dir),
            video_compressor=FFmpegVideoCompressor(work_dir),
            thumbnailer=FFmpegThumbnailer(work_dir),
        )

    @staticmethod
    def _create_mock_toolkit(work_dir: Path, convert_mov: bool) -> MediaToolkit:
        return MediaToolkit(
            converter=MockConverter(work_dir, convert_mov=convert_mov),
            image_compressor=MockImageCompressor(work_dir),
            video_compressor=MockVideoCompressor(work_dir),
            thumbnailer=MockThumbnailer(work_dir),
        )


def create_media_toolkit(
    force_mock: bool = False,
    work_dir: Optional[Path] = None,
) -> MediaToolkit:
    """
    Quick toolkit creation with simple mock override.

    Example:
        toolkit = create_media_toolkit(force_mock=True, work_dir=tmp_path)
    """
    mode = "mock" if force_mock else "auto"
    return MediaFactory.create_toolkit(mode=mode, work_dir=work_dir)
