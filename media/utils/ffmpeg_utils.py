"""
FFmpeg Utilities

Command builders and async subprocess helpers shared by the FFmpeg
converter, video compressor and thumbnailer.
"""

import asyncio
import json
import logging
import shutil
from pathlib import Path
from typing import List, Optional, Tuple

from config.settings import (
    AUDIO_BITRATE,
    AUDIO_CODEC,
    HEIC_JPEG_QUALITY,
    PROBE_TIMEOUT_SECONDS,
    THUMBNAIL_SEEK_SECONDS,
    THUMBNAIL_WIDTH,
    VIDEO_CODEC,
    VIDEO_CRF,
    VIDEO_MAX_HEIGHT,
    VIDEO_PRESET,
)


logger = logging.getLogger(__name__)


class FFmpegError(Exception):
    """FFmpeg/ffprobe exited with an error or timed out"""

    def __init__(self, message: str, returncode: Optional[int] = None):
        super().__init__(message)
        self.returncode = returncode


def ffmpeg_available() -> bool:
    """True if both ffmpeg and ffprobe are on PATH"""
    return bool(shutil.which("ffmpeg")) and bool(shutil.which("ffprobe"))


def get_heic_to_jpeg_command(input_file: Path, output_file: Path) -> List[str]:
    """Decode the primary HEIC image and write a high-quality JPEG"""
    return [
        "ffmpeg", "-y",
        "-i", str(input_file),
        "-frames:v", "1",
        "-q:v", str(HEIC_JPEG_QUALITY),
        str(output_file),
    ]


def get_mov_to_mp4_command(input_file: Path, output_file: Path) -> List[str]:
    """Remux MOV into an MP4 container without re-encoding"""
    return [
        "ffmpeg", "-y",
        "-i", str(input_file),
        "-c", "copy",
        "-movflags", "+faststart",
        str(output_file),
    ]


def get_compress_video_command(input_file: Path, output_file: Path) -> List[str]:
    """
    Build the video compression command.

    - CRF 28 / veryfast: good balance of quality, size and speed
    - Max 1080p height, aspect ratio kept (width rounded to even)
    - AAC audio, faststart for streaming
    - Machine-readable progress on stdout
    """
    return [
        "ffmpeg", "-y",
        "-i", str(input_file),
        "-c:v", VIDEO_CODEC,
        "-crf", str(VIDEO_CRF),
        "-preset", VIDEO_PRESET,
        "-vf", f"scale=-2:min(ih\\,{VIDEO_MAX_HEIGHT})",
        "-c:a", AUDIO_CODEC,
        "-b:a", AUDIO_BITRATE,
        "-movflags", "+faststart",
        "-progress", "pipe:1",
        "-nostats",
        str(output_file),
    ]


def get_thumbnail_command(input_file: Path, output_file: Path) -> List[str]:
    """Grab one frame shortly after the start, scaled to thumbnail width"""
    return [
        "ffmpeg", "-y",
        "-ss", str(THUMBNAIL_SEEK_SECONDS),
        "-i", str(input_file),
        "-frames:v", "1",
        "-vf", f"scale={THUMBNAIL_WIDTH}:-2",
        str(output_file),
    ]


async def run_command(command: List[str], timeout: float) -> Tuple[str, str]:
    """
    Run a command to completion.

    Args:
        command: argv list
        timeout: Seconds before the process is killed

    Returns:
        (stdout, stderr) decoded as UTF-8

    Raises:
        FFmpegError: Non-zero exit, timeout, or binary not found
    """
    logger.debug(f"Running: {' '.join(command)}")

    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            stdin=asyncio.subprocess.DEVNULL,
        )
    except FileNotFoundError as e:
        raise FFmpegError(
            f"{command[0]} not found. Install with: sudo apt-get install ffmpeg",
        ) from e

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError as e:
        process.kill()
        await process.wait()
        raise FFmpegError(f"{command[0]} timed out after {timeout}s") from e

    out = stdout.decode("utf-8", errors="ignore")
    err = stderr.decode("utf-8", errors="ignore")

    if process.returncode != 0:
        raise FFmpegError(
            f"{command[0]} exited with code {process.returncode}: {err.strip()[-500:]}",
            returncode=process.returncode,
        )

    return out, err


async def probe_duration(file_path: Path) -> Optional[float]:
    """
    Get media duration in seconds using ffprobe.

    Returns:
        Duration in seconds, or None if it cannot be determined
    """
    command = [
        "ffprobe",
        "-v", "error",
        "-show_entries", "format=duration",
        "-of", "json",
        str(file_path),
    ]

    try:
        stdout, _ = await run_command(command, timeout=PROBE_TIMEOUT_SECONDS)
        data = json.loads(stdout)
        duration_str = data.get("format", {}).get("duration")
        if duration_str:
            return float(duration_str)
        return None

    except (FFmpegError, json.JSONDecodeError, ValueError) as e:
        logger.warning(f"Error getting duration for {file_path.name}: {e}")
        return None


def parse_progress_line(line: str) -> Optional[float]:
    """
    Parse an ffmpeg `-progress` line into elapsed output seconds.

    Example:
        parse_progress_line("out_time_ms=1500000")  # 1.5
        parse_progress_line("frame=12")  # None
    """
    key, _, value = line.strip().partition("=")
    if key not in ("out_time_ms", "out_time_us"):
        return None
    try:
        # ffmpeg reports microseconds under both keys
        return int(value) / 1_000_000
    except ValueError:
        return None
