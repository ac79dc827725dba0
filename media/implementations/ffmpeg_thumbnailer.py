"""
FFmpeg Thumbnailer Implementation

Extracts a preview frame and the duration of a video with ffmpeg/ffprobe.
"""

import logging
from pathlib import Path
from typing import Optional

from config.settings import PROBE_TIMEOUT_SECONDS
from media.interfaces.media_processor_interface import (
    MediaProcessingError,
    ThumbnailerInterface,
)
from media.models.media_file import MediaFile
from media.utils.ffmpeg_utils import (
    FFmpegError,
    get_thumbnail_command,
    probe_duration,
    run_command,
)
from media.utils.path_utils import replace_extension, unique_output_path


class FFmpegThumbnailer(ThumbnailerInterface):
    """Writes JPEG thumbnails into work_dir"""

    def __init__(self, work_dir: Path, timeout: float = PROBE_TIMEOUT_SECONDS):
        self.logger = logging.getLogger(__name__)
        self.work_dir = Path(work_dir)
        self.timeout = timeout

    async def generate_thumbnail(self, file: MediaFile) -> Path:
        output_path = unique_output_path(
            self.work_dir, replace_extension(f"thumb_{file.name}", "jpg")
        )

        try:
            await run_command(get_thumbnail_command(file.path, output_path), self.timeout)
        except FFmpegError as e:
            output_path.unlink(missing_ok=True)
            raise MediaProcessingError(f"Thumbnail failed for {file.name}: {e}") from e

        if not output_path.exists() or output_path.stat().st_size == 0:
            output_path.unlink(missing_ok=True)
            raise MediaProcessingError(f"No frame extracted from {file.name}")

        self.logger.debug(f"Thumbnail written: {output_path}")
        return output_path

    async def get_duration(self, file: MediaFile) -> Optional[float]:
        return await probe_duration(file.path)
