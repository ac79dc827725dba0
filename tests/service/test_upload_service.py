"""
Upload Service CLI Tests

To run these tests:
    pytest tests/service/test_upload_service.py -v
"""

import logging

import pytest

from upload_service import build_parser, collect_files, main


@pytest.fixture(autouse=True)
def restore_root_logger():
    """main() installs handlers on the root logger; remove them afterwards"""
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers[:]:
        if handler not in before:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


@pytest.fixture
def photos(tmp_path):
    folder = tmp_path / "party"
    (folder / "nested").mkdir(parents=True)
    (folder / "a.jpg").write_bytes(b"\xff" * 100)
    (folder / "nested" / "IMG_1.HEIC").write_bytes(b"\xff" * 100)
    (folder / "notes.txt").write_text("not media")
    return folder


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "queue.yaml"
    path.write_text(f"work_dir: {tmp_path / 'work'}\nretry_delays: [0]\n")
    return path


def base_args(tmp_path, config_file):
    return [
        "--event-id", "evt-1",
        "--user-id", "user-9",
        "--log-dir", str(tmp_path),
        "--config", str(config_file),
    ]


@pytest.mark.unit
class TestCollectFiles:

    def test_directory_scanned_recursively(self, photos):
        names = sorted(p.name for p in collect_files([str(photos)]))
        assert names == ["IMG_1.HEIC", "a.jpg"]

    def test_explicit_files_kept(self, photos):
        files = collect_files([str(photos / "notes.txt")])
        assert [p.name for p in files] == ["notes.txt"]


@pytest.mark.unit
class TestParser:

    def test_requires_event_and_user(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["a.jpg"])

    def test_options(self):
        args = build_parser().parse_args(
            ["--event-id", "e", "--user-id", "u", "--max-concurrent", "5", "--mock", "x.jpg"]
        )
        assert args.max_concurrent == 5
        assert args.mock is True
        assert args.dry_run is False
        assert args.paths == ["x.jpg"]


@pytest.mark.integration
class TestMain:

    def test_dry_run_valid(self, tmp_path, config_file, photos):
        assert main(base_args(tmp_path, config_file) + ["--dry-run", str(photos)]) == 0

    def test_dry_run_with_rejected_file(self, tmp_path, config_file, photos):
        args = base_args(tmp_path, config_file) + ["--dry-run", str(photos / "notes.txt")]
        assert main(args) == 1

    def test_mock_upload(self, tmp_path, config_file, photos):
        assert main(base_args(tmp_path, config_file) + ["--mock", str(photos)]) == 0
        assert (tmp_path / "upload.log").exists()

    def test_nothing_to_upload(self, tmp_path, config_file):
        empty = tmp_path / "empty"
        empty.mkdir()
        assert main(base_args(tmp_path, config_file) + ["--mock", str(empty)]) == 0

    def test_only_rejected_files(self, tmp_path, config_file, photos):
        args = base_args(tmp_path, config_file) + ["--mock", str(photos / "notes.txt")]
        assert main(args) == 1

