"""
FFmpeg Converter Implementation

Converts HEIC/HEIF photos to JPEG and (optionally) remuxes MOV videos into
MP4 containers using FFmpeg subprocesses.

FFmpeg is required on the system:
    sudo apt-get install ffmpeg
"""

import logging
from pathlib import Path
from typing import Optional

from config.settings import CONVERSION_TIMEOUT_SECONDS, CONVERT_MOV_TO_MP4
from media.constants import ConversionKind
from media.interfaces.media_processor_interface import (
    MediaConverterInterface,
    MediaProcessingError,
)
from media.models.media_file import MediaFile
from media.utils.ffmpeg_utils import (
    FFmpegError,
    get_heic_to_jpeg_command,
    get_mov_to_mp4_command,
    run_command,
)
from media.utils.path_utils import replace_extension, unique_output_path
from media.utils.validation_utils import needs_conversion


class FFmpegConverter(MediaConverterInterface):
    """
    FFmpeg-based format converter.

    Outputs are written to work_dir; the caller owns them and is expected to
    delete them once uploaded (the preview registry does this for the queue).
    """

    def __init__(
        self,
        work_dir: Path,
        convert_mov: bool = CONVERT_MOV_TO_MP4,
        timeout: float = CONVERSION_TIMEOUT_SECONDS,
    ):
        """
        Args:
            work_dir: Directory for converted outputs
            convert_mov: Remux MOV to MP4 (off by default, browsers play MOV)
            timeout: Per-conversion timeout in seconds
        """
        self.logger = logging.getLogger(__name__)
        self.work_dir = Path(work_dir)
        self.convert_mov = convert_mov
        self.timeout = timeout

        self.logger.info(
            f"FFmpeg Converter initialized (work_dir: {self.work_dir}, "
            f"convert_mov: {convert_mov})"
        )

    def needs_conversion(self, file: MediaFile) -> Optional[ConversionKind]:
        return needs_conversion(file, convert_mov=self.convert_mov)

    async def convert(self, file: MediaFile) -> MediaFile:
        kind = self.needs_conversion(file)
        if kind is None:
            return file

        if kind == ConversionKind.HEIC:
            new_name = replace_extension(file.name, "jpg")
            content_type = "image/jpeg"
            build_command = get_heic_to_jpeg_command
        else:
            new_name = replace_extension(file.name, "mp4")
            content_type = "video/mp4"
            build_command = get_mov_to_mp4_command

        output_path = unique_output_path(self.work_dir, new_name)
        self.logger.info(f"Converting {file.name} ({kind.value}) -> {output_path.name}")

        try:
            await run_command(build_command(file.path, output_path), self.timeout)
        except FFmpegError as e:
            output_path.unlink(missing_ok=True)
            self.logger.error(f"Conversion failed for {file.name}: {e}")
            raise MediaProcessingError(
                f"Failed to convert {file.name}: {e}", kind=kind
            ) from e

        if not output_path.exists() or output_path.stat().st_size == 0:
            output_path.unlink(missing_ok=True)
            raise MediaProcessingError(
                f"Conversion produced no output for {file.name}", kind=kind
            )

        converted = MediaFile.from_path(output_path, content_type=content_type, name=new_name)
        self.logger.info(f"✅ Converted {file.name} -> {converted.name} ({converted.size} bytes)")
        return converted
