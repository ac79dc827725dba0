"""
Pillow Image Compressor Tests

Uses real Pillow encoding on generated images.

To run these tests:
    pytest tests/media/implementations/test_pillow_image_compressor.py -v
"""

import asyncio
import os

import pytest
from PIL import Image

from media.implementations.pillow_image_compressor import PillowImageCompressor
from media.models.media_file import MediaFile


@pytest.fixture
def noisy_png(tmp_path):
    """800x600 random-noise PNG (compresses badly as PNG, well as JPEG)"""
    path = tmp_path / "noise.png"
    Image.frombytes("RGB", (800, 600), os.urandom(800 * 600 * 3)).save(path, format="PNG")
    return MediaFile.from_path(path)


@pytest.mark.unit
class TestPillowImageCompressor:

    def test_needs_compression(self, work_dir, fake):
        compressor = PillowImageCompressor(work_dir, threshold=1000)

        assert compressor.needs_compression(fake("big.jpg", 2000))
        assert not compressor.needs_compression(fake("small.jpg", 500))
        assert not compressor.needs_compression(fake("anim.gif", 2000))
        assert not compressor.needs_compression(fake("clip.mp4", 2000))

    def test_compresses_and_resizes(self, work_dir, noisy_png):
        compressor = PillowImageCompressor(work_dir, threshold=1000, max_dimension=400)

        result = asyncio.run(compressor.compress(noisy_png))

        assert result.was_compressed
        assert result.original_dimensions == (800, 600)
        assert result.compressed_dimensions == (400, 300)
        assert result.file.name == "noise.jpg"
        assert result.file.content_type == "image/jpeg"
        assert result.file.path.parent == work_dir
        assert result.file.path.stat().st_size == result.compressed_size
        assert result.saved_bytes > 0

        with Image.open(result.file.path) as output:
            assert output.format == "JPEG"
            assert output.size == (400, 300)

    def test_quality_steps_down_toward_target(self, work_dir, noisy_png):
        generous = PillowImageCompressor(work_dir, threshold=1000, target_size=10 ** 9)
        strict = PillowImageCompressor(work_dir, threshold=1000, target_size=1)

        loose_result = asyncio.run(generous.compress(noisy_png))
        tight_result = asyncio.run(strict.compress(noisy_png))

        assert tight_result.compressed_size < loose_result.compressed_size

    def test_keeps_original_when_not_smaller(self, work_dir, tmp_path):
        path = tmp_path / "tiny.png"
        Image.new("RGB", (8, 8), "white").save(path, format="PNG")
        media = MediaFile.from_path(path)
        compressor = PillowImageCompressor(work_dir, threshold=0)

        result = asyncio.run(compressor.compress(media))

        assert not result.was_compressed
        assert result.file is media
        assert list(work_dir.iterdir()) == []

    def test_corrupt_image_keeps_original(self, work_dir, make_media):
        media = make_media("broken.jpg", size=5000)
        compressor = PillowImageCompressor(work_dir, threshold=1000)

        result = asyncio.run(compressor.compress(media))

        assert not result.was_compressed
        assert result.file is media

    def test_below_threshold_untouched(self, work_dir, noisy_png):
        compressor = PillowImageCompressor(work_dir, threshold=10 ** 9)
        result = asyncio.run(compressor.compress(noisy_png))
        assert not result.was_compressed
        assert result.compressed_size == noisy_png.size
