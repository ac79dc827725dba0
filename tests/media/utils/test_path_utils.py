"""
Path Utilities Tests

To run these tests:
    pytest tests/media/utils/test_path_utils.py -v
"""

import re

import pytest

from media.utils.path_utils import (
    ensure_directory,
    format_size,
    generate_smart_filename,
    get_extension,
    infer_content_type,
    replace_extension,
    unique_output_path,
)


@pytest.mark.unit
class TestNames:

    def test_get_extension(self):
        assert get_extension("IMG_0001.HEIC") == "heic"
        assert get_extension("/some/dir.d/file.tar.gz") == "gz"
        assert get_extension("README") == ""

    def test_replace_extension(self):
        assert replace_extension("IMG_0001.HEIC", "jpg") == "IMG_0001.jpg"
        assert replace_extension("clip", ".mp4") == "clip.mp4"

    def test_infer_content_type(self):
        assert infer_content_type("clip.mov") == "video/quicktime"
        assert infer_content_type("a.bin", "image/png") == "image/png"
        assert infer_content_type("IMG.HEIC", "application/octet-stream") == "image/heic"
        assert infer_content_type("unknown.xyz") == "application/octet-stream"


@pytest.mark.unit
class TestSmartFilename:

    def test_slug_and_timestamp(self):
        name = generate_smart_filename("My Cool Photo!.HEIC")
        assert re.fullmatch(r"my-cool-photo-[0-9a-z]+\.jpg", name)

    def test_prefix_and_extension(self):
        name = generate_smart_filename("clip.mov", prefix="event-123", ext=".mp4")
        assert name.startswith("event-123/clip-")
        assert name.endswith(".mp4")

    def test_empty_slug_falls_back(self):
        assert generate_smart_filename("!!!.png").startswith("upload-")

    def test_long_names_truncated(self):
        name = generate_smart_filename("a" * 80 + ".jpg")
        assert name.split("-")[0] == "a" * 50


@pytest.mark.unit
class TestFilesystem:

    def test_format_size(self):
        assert format_size(512) == "512 B"
        assert format_size(2048) == "2.0 KB"
        assert format_size(3 * 1024 * 1024) == "3.0 MB"

    def test_ensure_directory(self, tmp_path):
        target = tmp_path / "a" / "b"
        assert ensure_directory(target)
        assert target.is_dir()
        assert not ensure_directory(tmp_path / "missing", create=False)

    def test_ensure_directory_rejects_file(self, tmp_path):
        path = tmp_path / "file"
        path.write_text("x")
        assert not ensure_directory(path)

    def test_unique_output_path(self, tmp_path):
        work = tmp_path / "work"
        first = unique_output_path(work, "IMG_1.jpg")
        first.write_bytes(b"x")
        second = unique_output_path(work, "IMG_1.jpg")

        assert work.is_dir()
        assert first != second
        assert first.suffix == second.suffix == ".jpg"
        assert first.name.startswith("IMG_1-")
