"""
Media Test Configuration and Fixtures

To use pytest:
    pip install -e ".[test]"
    pytest tests/media/
"""

from pathlib import Path

import pytest

from media.models.media_file import MediaFile


@pytest.fixture
def work_dir(tmp_path):
    """Directory for derived files"""
    path = tmp_path / "work"
    path.mkdir()
    return path


@pytest.fixture
def make_media(tmp_path):
    """
    Write a file and wrap it in a MediaFile.

    Usage:
        def test_something(make_media):
            media = make_media("IMG_1.heic", size=2048)
    """

    def _make(name: str, size: int = 1024, content_type=None) -> MediaFile:
        path = tmp_path / name
        path.write_bytes(b"\x00" * size)
        return MediaFile.from_path(path, content_type=content_type)

    return _make


def fake_media(name: str, size: int = 1024, content_type=None) -> MediaFile:
    """MediaFile that does not exist on disk (for pure checks)"""
    from media.utils.path_utils import infer_content_type

    return MediaFile(
        path=Path("/nonexistent") / name,
        name=name,
        content_type=infer_content_type(name, content_type),
        size=size,
    )


@pytest.fixture
def fake():
    """Factory for MediaFile objects without files behind them"""
    return fake_media
