"""
Pillow Image Compressor Implementation

Resizes and re-encodes large photos as JPEG until they fit the target
size. Pillow is blocking, so the encode loop runs in a worker thread.
"""

import io
import logging
from pathlib import Path
from typing import Optional, Tuple

import anyio
from PIL import Image, ImageOps, UnidentifiedImageError

from config.settings import (
    IMAGE_COMPRESSION_THRESHOLD,
    IMAGE_INITIAL_QUALITY,
    IMAGE_MIN_QUALITY,
    IMAGE_QUALITY_STEP,
    MAX_IMAGE_DIMENSION,
    TARGET_COMPRESSED_SIZE,
)
from media.interfaces.media_processor_interface import ImageCompressorInterface
from media.models.media_file import CompressionResult, MediaFile
from media.utils.path_utils import format_size, replace_extension, unique_output_path


class PillowImageCompressor(ImageCompressorInterface):
    """
    JPEG compressor with a descending quality search.

    Algorithm:
    1. Scale so the longest side is at most max_dimension
    2. Encode at initial_quality; step quality down by quality_step until the
       output fits target_size or min_quality is reached
    3. Keep the original when the result is not smaller
    """

    def __init__(
        self,
        work_dir: Path,
        threshold: int = IMAGE_COMPRESSION_THRESHOLD,
        target_size: int = TARGET_COMPRESSED_SIZE,
        max_dimension: int = MAX_IMAGE_DIMENSION,
        initial_quality: float = IMAGE_INITIAL_QUALITY,
        min_quality: float = IMAGE_MIN_QUALITY,
        quality_step: float = IMAGE_QUALITY_STEP,
    ):
        self.logger = logging.getLogger(__name__)
        self.work_dir = Path(work_dir)
        self.threshold = threshold
        self.target_size = target_size
        self.max_dimension = max_dimension
        self.initial_quality = initial_quality
        self.min_quality = min_quality
        self.quality_step = quality_step

    def needs_compression(self, file: MediaFile) -> bool:
        if not file.is_image or file.is_gif:
            return False
        return file.size > self.threshold

    async def compress(self, file: MediaFile) -> CompressionResult:
        if not self.needs_compression(file):
            return CompressionResult(
                file=file,
                was_compressed=False,
                original_size=file.size,
                compressed_size=file.size,
            )

        try:
            return await anyio.to_thread.run_sync(self._compress_sync, file)
        except (OSError, UnidentifiedImageError, ValueError) as e:
            self.logger.warning(f"Image compression failed for {file.name}, using original: {e}")
            return CompressionResult(
                file=file,
                was_compressed=False,
                original_size=file.size,
                compressed_size=file.size,
            )

    def _compress_sync(self, file: MediaFile) -> CompressionResult:
        with Image.open(file.path) as source:
            image = ImageOps.exif_transpose(source)
            original_dimensions = image.size
            image = self._resize(image)
            if image.mode not in ("RGB", "L"):
                image = image.convert("RGB")

            data, quality = self._encode_to_target(image)
            compressed_dimensions = image.size

        if len(data) >= file.size:
            self.logger.info(
                f"Compression did not shrink {file.name} "
                f"({format_size(len(data))} >= {format_size(file.size)}), keeping original"
            )
            return CompressionResult(
                file=file,
                was_compressed=False,
                original_size=file.size,
                compressed_size=file.size,
                original_dimensions=original_dimensions,
                compressed_dimensions=original_dimensions,
            )

        new_name = replace_extension(file.name, "jpg")
        output_path = unique_output_path(self.work_dir, new_name)
        output_path.write_bytes(data)

        compressed = MediaFile(
            path=output_path,
            name=new_name,
            content_type="image/jpeg",
            size=len(data),
        )

        self.logger.info(
            f"Compressed {file.name}: {format_size(file.size)} -> "
            f"{format_size(len(data))} (quality {quality:.2f}, "
            f"{original_dimensions[0]}x{original_dimensions[1]} -> "
            f"{compressed_dimensions[0]}x{compressed_dimensions[1]})"
        )

        return CompressionResult(
            file=compressed,
            was_compressed=True,
            original_size=file.size,
            compressed_size=len(data),
            original_dimensions=original_dimensions,
            compressed_dimensions=compressed_dimensions,
        )

    def _resize(self, image: Image.Image) -> Image.Image:
        width, height = image.size
        longest = max(width, height)
        if longest <= self.max_dimension:
            return image

        scale = self.max_dimension / longest
        new_size = (max(1, round(width * scale)), max(1, round(height * scale)))
        return image.resize(new_size, Image.Resampling.LANCZOS)

    def _encode_to_target(self, image: Image.Image) -> Tuple[bytes, float]:
        quality = self.initial_quality
        data: Optional[bytes] = None

        while True:
            buffer = io.BytesIO()
            image.save(buffer, format="JPEG", quality=round(quality * 100), optimize=True)
            data = buffer.getvalue()

            if len(data) <= self.target_size:
                break

            next_quality = round(quality - self.quality_step, 2)
            if next_quality < self.min_quality:
                break
            quality = next_quality

        return data, quality
