"""
FFmpeg Video Compressor Implementation

Re-encodes large videos (H.264 CRF 28, max 1080p, AAC 128k) and reports
progress while FFmpeg runs.

Progress mapping:
    loading      0-30%   (probing input, starting FFmpeg)
    compressing  30-90%  (FFmpeg out_time / input duration)
    done         100%
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

from config.settings import VIDEO_COMPRESSION_THRESHOLD, VIDEO_COMPRESSION_TIMEOUT_SECONDS
from media.constants import CompressionStage
from media.interfaces.media_processor_interface import (
    ProgressCallback,
    VideoCompressorInterface,
)
from media.models.media_file import CompressionProgress, MediaFile
from media.utils.ffmpeg_utils import (
    get_compress_video_command,
    parse_progress_line,
    probe_duration,
)
from media.utils.path_utils import format_size, replace_extension, unique_output_path

PROGRESS_START = 30
PROGRESS_END = 90


class FFmpegVideoCompressor(VideoCompressorInterface):
    """
    FFmpeg-based video compressor.

    Failures never propagate: the original file is returned and an ERROR
    progress update is emitted.
    """

    def __init__(
        self,
        work_dir: Path,
        threshold: int = VIDEO_COMPRESSION_THRESHOLD,
        timeout: float = VIDEO_COMPRESSION_TIMEOUT_SECONDS,
    ):
        self.logger = logging.getLogger(__name__)
        self.work_dir = Path(work_dir)
        self.threshold = threshold
        self.timeout = timeout

    def needs_compression(self, file: MediaFile) -> bool:
        return file.is_video and file.size > self.threshold

    async def compress(
        self,
        file: MediaFile,
        on_progress: Optional[ProgressCallback] = None,
    ) -> MediaFile:
        def report(stage: CompressionStage, progress: int, message: str) -> None:
            if on_progress:
                on_progress(CompressionProgress(stage=stage, progress=progress, message=message))

        if not self.needs_compression(file):
            return file

        report(CompressionStage.LOADING, 0, "Preparing video...")
        duration = await probe_duration(file.path)
        report(CompressionStage.LOADING, PROGRESS_START, "Compressing video...")

        new_name = replace_extension(file.name, "mp4")
        output_path = unique_output_path(self.work_dir, new_name)
        command = get_compress_video_command(file.path, output_path)

        self.logger.info(
            f"Compressing video {file.name} ({format_size(file.size)}, "
            f"duration: {duration if duration else 'unknown'}s)"
        )

        try:
            returncode = await asyncio.wait_for(
                self._run_with_progress(command, duration, report),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            self.logger.error(f"Video compression timed out after {self.timeout}s: {file.name}")
            output_path.unlink(missing_ok=True)
            report(CompressionStage.ERROR, 0, "Compression timed out")
            return file
        except OSError as e:
            self.logger.error(f"Could not start ffmpeg for {file.name}: {e}")
            output_path.unlink(missing_ok=True)
            report(CompressionStage.ERROR, 0, "Compression failed")
            return file

        if returncode != 0 or not output_path.exists():
            self.logger.error(f"❌ ffmpeg exited with code {returncode} for {file.name}")
            output_path.unlink(missing_ok=True)
            report(CompressionStage.ERROR, 0, "Compression failed")
            return file

        compressed_size = output_path.stat().st_size
        if compressed_size >= file.size:
            self.logger.info(
                f"Compressed video not smaller ({format_size(compressed_size)} >= "
                f"{format_size(file.size)}), keeping original"
            )
            output_path.unlink(missing_ok=True)
            report(CompressionStage.DONE, 100, "Original kept")
            return file

        self.logger.info(
            f"✅ Video compressed: {format_size(file.size)} -> {format_size(compressed_size)}"
        )
        report(CompressionStage.DONE, 100, "Compression complete")
        return MediaFile(
            path=output_path,
            name=new_name,
            content_type="video/mp4",
            size=compressed_size,
        )

    async def _run_with_progress(self, command, duration: Optional[float], report) -> int:
        process = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.DEVNULL,
            stdin=asyncio.subprocess.DEVNULL,
        )

        try:
            last_percent = PROGRESS_START
            while True:
                raw = await process.stdout.readline()
                if not raw:
                    break

                elapsed = parse_progress_line(raw.decode("utf-8", errors="ignore"))
                if elapsed is None or not duration:
                    continue

                fraction = min(elapsed / duration, 1.0)
                percent = PROGRESS_START + int(fraction * (PROGRESS_END - PROGRESS_START))
                if percent > last_percent:
                    last_percent = percent
                    report(CompressionStage.COMPRESSING, percent, f"Compressing... {percent}%")

            return await process.wait()

        except asyncio.CancelledError:
            process.kill()
            await process.wait()
            raise
