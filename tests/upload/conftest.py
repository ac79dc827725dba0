"""
Upload Test Configuration and Fixtures

This file contains pytest fixtures shared across upload tests.
Mirrors the pattern from tests/media/conftest.py.

To use pytest:
    pip install -e ".[test]"
    pytest tests/upload/
"""

from pathlib import Path

import pytest

from media.factory import MediaFactory
from upload.config import QueueConfig
from upload.controllers.upload_queue import UploadQueue
from upload.implementations.mock_uploader import MockUploader
from upload.queue.retry_policy import RetryPolicy


# =============================================================================
# FILE FIXTURES
# =============================================================================

@pytest.fixture
def make_file(tmp_path):
    """
    Create a media file on disk.

    Usage:
        def test_something(make_file):
            path = make_file("a.jpg", size=1024)
    """
    source_dir = tmp_path / "source"
    source_dir.mkdir()

    def _make(name: str, size: int = 1024) -> Path:
        path = source_dir / name
        path.write_bytes(b"\xff" * size)
        return path

    return _make


# =============================================================================
# COLLABORATOR FIXTURES
# =============================================================================

@pytest.fixture
def mock_uploader():
    """Fast mock uploader (no delay, no random failures)"""
    return MockUploader()


@pytest.fixture
def work_dir(tmp_path):
    path = tmp_path / "work"
    path.mkdir()
    return path


@pytest.fixture
def mock_toolkit(work_dir):
    """Mock converter/compressors/thumbnailer writing into work_dir"""
    return MediaFactory.create_toolkit(mode="mock", work_dir=work_dir)


@pytest.fixture
def queue_config(tmp_path, work_dir):
    """QueueConfig backed by a YAML file in tmp_path"""
    config_path = tmp_path / "upload_queue.yaml"
    config_path.write_text(f"max_concurrent: 3\nwork_dir: {work_dir}\n")
    return QueueConfig(config_path)


@pytest.fixture
def fast_policy():
    """Default retry budget without the real delays"""
    return RetryPolicy(max_retries=2, delays=(0.0, 0.0))


@pytest.fixture
def make_queue(mock_uploader, mock_toolkit, queue_config, fast_policy):
    """
    Build an UploadQueue wired to mocks.

    Usage:
        queue = make_queue(max_concurrent=2)
    """

    def _make(**overrides) -> UploadQueue:
        kwargs = dict(
            event_id="evt-1",
            user_id="user-9",
            uploader=mock_uploader,
            toolkit=mock_toolkit,
            config=queue_config,
            retry_policy=fast_policy,
        )
        kwargs.update(overrides)
        return UploadQueue(**kwargs)

    return _make
