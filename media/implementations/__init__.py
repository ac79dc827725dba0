"""
Implementations Package

Concrete media processors (FFmpeg, Pillow) and their mocks.
"""

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

__all__ = [
    "FFmpegConverter",
    "FFmpegThumbnailer",
    "FFmpegVideoCompressor",
    "MockConverter",
    "MockImageCompressor",
    "MockThumbnailer",
    "MockVideoCompressor",
    "PillowImageCompressor",
]
