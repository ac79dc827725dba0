"""
Mock Media Processors

Simulated converter, compressors and thumbnailer for testing without
FFmpeg or Pillow doing real work.

These are "Fakes" (test doubles): they write real files to work_dir so
cleanup logic can be tested, but the bytes are not real media.
"""

import asyncio
import logging
from pathlib import Path
from typing import List, Optional

from media.constants import CompressionStage, ConversionKind
from media.interfaces.media_processor_interface import (
    ImageCompressorInterface,
    MediaConverterInterface,
    MediaProcessingError,
    ProgressCallback,
    ThumbnailerInterface,
    VideoCompressorInterface,
)
from media.models.media_file import CompressionProgress, CompressionResult, MediaFile
from media.utils.path_utils import replace_extension, unique_output_path
from media.utils.validation_utils import needs_conversion


def _write_derived(work_dir: Path, name: str, size: int) -> Path:
    path = unique_output_path(work_dir, name)
    path.write_bytes(b"\x00" * max(size, 1))
    return path


class MockConverter(MediaConverterInterface):
    """
    Mock converter.

    Usage:
        converter = MockConverter(work_dir=tmp_path)
        converter.should_fail = True  # next conversions raise
    """

    def __init__(self, work_dir: Path, convert_mov: bool = False, delay: float = 0.0):
        self.logger = logging.getLogger(__name__)
        self.work_dir = Path(work_dir)
        self.convert_mov = convert_mov
        self.delay = delay
        self.should_fail = False
        self.convert_history: List[str] = []

    def needs_conversion(self, file: MediaFile) -> Optional[ConversionKind]:
        return needs_conversion(file, convert_mov=self.convert_mov)

    async def convert(self, file: MediaFile) -> MediaFile:
        self.convert_history.append(file.name)
        if self.delay:
            await asyncio.sleep(self.delay)

        if self.should_fail:
            self.logger.error(f"[MOCK] Simulated conversion failure: {file.name}")
            raise MediaProcessingError(f"Simulated conversion failure: {file.name}")

        kind = self.needs_conversion(file)
        if kind == ConversionKind.MOV:
            new_name, content_type = replace_extension(file.name, "mp4"), "video/mp4"
        else:
            new_name, content_type = replace_extension(file.name, "jpg"), "image/jpeg"

        path = _write_derived(self.work_dir, new_name, file.size)
        self.logger.info(f"[MOCK] Converted {file.name} -> {new_name}")
        return MediaFile(path=path, name=new_name, content_type=content_type, size=file.size)


class MockImageCompressor(ImageCompressorInterface):
    """Mock image compressor: halves the size of images above the threshold"""

    def __init__(self, work_dir: Path, threshold: int = 3 * 1024 * 1024):
        self.logger = logging.getLogger(__name__)
        self.work_dir = Path(work_dir)
        self.threshold = threshold
        self.compress_history: List[str] = []

    def needs_compression(self, file: MediaFile) -> bool:
        return file.is_image and not file.is_gif and file.size > self.threshold

    async def compress(self, file: MediaFile) -> CompressionResult:
        self.compress_history.append(file.name)
        if not self.needs_compression(file):
            return CompressionResult(file, False, file.size, file.size)

        new_size = file.size // 2
        new_name = replace_extension(file.name, "jpg")
        path = _write_derived(self.work_dir, new_name, new_size)
        compressed = MediaFile(path=path, name=new_name, content_type="image/jpeg", size=new_size)
        return CompressionResult(compressed, True, file.size, new_size)


class MockVideoCompressor(VideoCompressorInterface):
    """Mock video compressor: reports a progress sequence and halves the size"""

    def __init__(self, work_dir: Path, threshold: int = 50 * 1024 * 1024):
        self.logger = logging.getLogger(__name__)
        self.work_dir = Path(work_dir)
        self.threshold = threshold
        self.compress_history: List[str] = []

    def needs_compression(self, file: MediaFile) -> bool:
        return file.is_video and file.size > self.threshold

    async def compress(
        self,
        file: MediaFile,
        on_progress: Optional[ProgressCallback] = None,
    ) -> MediaFile:
        self.compress_history.append(file.name)
        steps = [
            CompressionProgress(CompressionStage.LOADING, 0, "Preparing video..."),
            CompressionProgress(CompressionStage.COMPRESSING, 60, "Compressing... 60%"),
            CompressionProgress(CompressionStage.DONE, 100, "Compression complete"),
        ]
        for step in steps:
            if on_progress:
                on_progress(step)
            await asyncio.sleep(0)

        new_size = file.size // 2
        new_name = replace_extension(file.name, "mp4")
        path = _write_derived(self.work_dir, new_name, new_size)
        return MediaFile(path=path, name=new_name, content_type="video/mp4", size=new_size)


class MockThumbnailer(ThumbnailerInterface):
    """Mock thumbnailer with a fixed duration"""

    def __init__(self, work_dir: Path, duration: Optional[float] = 12.5, delay: float = 0.0):
        self.logger = logging.getLogger(__name__)
        self.work_dir = Path(work_dir)
        self.duration = duration
        self.delay = delay
        self.should_fail = False
        self.thumbnail_history: List[str] = []

    async def generate_thumbnail(self, file: MediaFile) -> Path:
        self.thumbnail_history.append(file.name)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.should_fail:
            raise MediaProcessingError(f"Simulated thumbnail failure: {file.name}")
        return _write_derived(self.work_dir, replace_extension(f"thumb_{file.name}", "jpg"), 16)

    async def get_duration(self, file: MediaFile) -> Optional[float]:
        return self.duration
