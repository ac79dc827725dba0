"""
Media Module Integration Tests

Tests cover:
1. Factory creates the right toolkit per mode
2. Mock processors behave like the real ones (derived files in work_dir)
3. Package-level exports
"""

import asyncio

import pytest

from media import MediaFactory, MediaToolkit, create_media_toolkit, validate_media_file
from media import factory as media_factory
from media.constants import CompressionStage
from media.implementations.ffmpeg_converter import FFmpegConverter
from media.implementations.mock_processors import (
    MockConverter,
    MockImageCompressor,
    MockThumbnailer,
    MockVideoCompressor,
)
from media.implementations.pillow_image_compressor import PillowImageCompressor
from media.interfaces.media_processor_interface import MediaProcessingError

# =============================================================================
# FACTORY TESTS
# =============================================================================


class TestMediaFactory:
    """Test media toolkit factory"""

    def test_mock_mode(self, work_dir):
        toolkit = MediaFactory.create_toolkit(mode="mock", work_dir=work_dir)

        assert isinstance(toolkit, MediaToolkit)
        assert isinstance(toolkit.converter, MockConverter)
        assert isinstance(toolkit.image_compressor, MockImageCompressor)
        assert isinstance(toolkit.video_compressor, MockVideoCompressor)
        assert isinstance(toolkit.thumbnailer, MockThumbnailer)

    def test_ffmpeg_mode_requires_ffmpeg(self, monkeypatch, work_dir):
        monkeypatch.setattr(media_factory, "ffmpeg_available", lambda: False)

        with pytest.raises(RuntimeError):
            MediaFactory.create_toolkit(mode="ffmpeg", work_dir=work_dir)

    def test_auto_mode_falls_back_to_mocks(self, monkeypatch, work_dir):
        monkeypatch.setattr(media_factory, "ffmpeg_available", lambda: False)

        toolkit = MediaFactory.create_toolkit(work_dir=work_dir)

        assert isinstance(toolkit.converter, MockConverter)

    def test_auto_mode_uses_ffmpeg_when_installed(self, monkeypatch, work_dir):
        monkeypatch.setattr(media_factory, "ffmpeg_available", lambda: True)

        toolkit = MediaFactory.create_toolkit(work_dir=work_dir, convert_mov=True)

        assert isinstance(toolkit.converter, FFmpegConverter)
        assert toolkit.converter.convert_mov is True
        assert isinstance(toolkit.image_compressor, PillowImageCompressor)

    def test_convenience_function(self, work_dir):
        toolkit = create_media_toolkit(force_mock=True, work_dir=work_dir)
        assert isinstance(toolkit.thumbnailer, MockThumbnailer)


# =============================================================================
# MOCK PROCESSOR TESTS
# =============================================================================


class TestMockProcessors:
    """Mocks write derived files so cleanup can be tested"""

    def test_mock_converter(self, work_dir, make_media):
        converter = MockConverter(work_dir)
        media = make_media("IMG_2.heic", size=300)

        converted = asyncio.run(converter.convert(media))

        assert converted.name == "IMG_2.jpg"
        assert converted.path.exists()
        assert converted.path.parent == work_dir
        assert converter.convert_history == ["IMG_2.heic"]

    def test_mock_converter_failure(self, work_dir, make_media):
        converter = MockConverter(work_dir)
        converter.should_fail = True

        with pytest.raises(MediaProcessingError):
            asyncio.run(converter.convert(make_media("IMG_2.heic")))

    def test_mock_image_compressor(self, work_dir, make_media):
        compressor = MockImageCompressor(work_dir, threshold=100)

        result = asyncio.run(compressor.compress(make_media("big.png", size=1000)))

        assert result.was_compressed
        assert result.compressed_size == 500
        assert result.file.content_type == "image/jpeg"

    def test_mock_video_compressor_progress(self, work_dir, make_media):
        compressor = MockVideoCompressor(work_dir, threshold=100)
        progress = []

        result = asyncio.run(compressor.compress(make_media("clip.mp4", size=1000), progress.append))

        assert result.size == 500
        assert progress[0].stage == CompressionStage.LOADING
        assert progress[-1].stage == CompressionStage.DONE

    def test_mock_thumbnailer(self, work_dir, make_media):
        thumbnailer = MockThumbnailer(work_dir, duration=3.0)
        media = make_media("clip.mp4")

        thumbnail = asyncio.run(thumbnailer.generate_thumbnail(media))

        assert thumbnail.exists()
        assert asyncio.run(thumbnailer.get_duration(media)) == 3.0


def test_package_exports(fake):
    """validate_media_file is importable from the package root"""
    assert validate_media_file(fake("a.jpg")) is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
