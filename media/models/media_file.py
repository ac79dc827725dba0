"""
Media File Models

Data classes representing the files that flow through the upload pipeline.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from media.constants import CompressionStage
from media.utils.path_utils import infer_content_type


@dataclass(frozen=True)
class MediaFile:
    """
    Reference to a local media payload.

    Immutable: conversion and compression produce a new MediaFile pointing at
    a new file rather than mutating this one.

    Use MediaFile.from_path() to build one from disk - it captures the size
    and infers the content type.
    """

    path: Path
    name: str
    content_type: str
    size: int

    @classmethod
    def from_path(
        cls,
        path,
        content_type: Optional[str] = None,
        name: Optional[str] = None,
    ) -> "MediaFile":
        """
        Create a MediaFile from a file on disk.

        Args:
            path: Path to the file (str or Path)
            content_type: Reported MIME type, or None to infer from extension
            name: Display name, defaults to the file name

        Raises:
            FileNotFoundError: If the file does not exist
        """
        file_path = Path(path)
        display_name = name or file_path.name
        return cls(
            path=file_path,
            name=display_name,
            content_type=infer_content_type(display_name, content_type),
            size=file_path.stat().st_size,
        )

    @property
    def extension(self) -> str:
        """Lower-case extension without the dot ("" if none)"""
        if "." not in self.name:
            return ""
        return self.name.rsplit(".", 1)[-1].lower()

    @property
    def is_video(self) -> bool:
        """MIME video/* or a .mov file (some browsers report MOV oddly)"""
        return self.content_type.startswith("video/") or self.extension == "mov"

    @property
    def is_gif(self) -> bool:
        return self.content_type == "image/gif"

    @property
    def is_image(self) -> bool:
        return self.content_type.startswith("image/")

    def __repr__(self) -> str:
        return (
            f"MediaFile(name='{self.name}', "
            f"type={self.content_type}, size={self.size})"
        )


@dataclass(frozen=True)
class CompressionProgress:
    """Progress report emitted while a video is being compressed"""

    stage: CompressionStage
    progress: int  # 0-100
    message: str


@dataclass
class CompressionResult:
    """
    Result of an image compression attempt.

    was_compressed is False when the file did not need compression, when the
    output was not smaller than the input, or when compression failed - in
    all those cases `file` is the original.
    """

    file: MediaFile
    was_compressed: bool
    original_size: int
    compressed_size: int
    original_dimensions: Optional[Tuple[int, int]] = None
    compressed_dimensions: Optional[Tuple[int, int]] = None

    @property
    def saved_bytes(self) -> int:
        return self.original_size - self.compressed_size
