"""
Path Utilities

Helper functions for file names, extensions, content types and
working directories.
"""

import logging
import re
import time
from pathlib import Path
from typing import Optional

from media.constants import DEFAULT_CONTENT_TYPE, EXTENSION_CONTENT_TYPES


logger = logging.getLogger(__name__)


def get_extension(filename: str) -> str:
    """
    Get file extension (lowercase, without dot).

    Args:
        filename: File name or path string

    Returns:
        Extension string, "" if the name has no extension

    Example:
        ext = get_extension("IMG_0001.HEIC")
        # Returns: "heic"
    """
    name = Path(filename).name
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[-1].lower()


def replace_extension(filename: str, new_ext: str) -> str:
    """
    Swap the extension of a file name.

    Example:
        replace_extension("IMG_0001.HEIC", "jpg")
        # Returns: "IMG_0001.jpg"
    """
    clean_ext = new_ext.lstrip(".")
    if "." not in filename:
        return f"{filename}.{clean_ext}"
    return f"{filename.rsplit('.', 1)[0]}.{clean_ext}"


def infer_content_type(filename: str, reported_type: Optional[str] = None) -> str:
    """
    Infer MIME type, trusting the reported type unless it is generic.

    Some clients (notably iOS Safari) report application/octet-stream or
    nothing at all; the extension is the fallback.

    Args:
        filename: File name used for the extension lookup
        reported_type: MIME type as reported by the client (optional)

    Returns:
        MIME type string

    Example:
        infer_content_type("clip.mov")  # "video/quicktime"
        infer_content_type("a.bin", "image/png")  # "image/png"
    """
    if reported_type and reported_type != DEFAULT_CONTENT_TYPE:
        return reported_type

    ext = get_extension(filename)
    return EXTENSION_CONTENT_TYPES.get(ext, reported_type or DEFAULT_CONTENT_TYPE)


def generate_smart_filename(
    original_name: str,
    prefix: Optional[str] = None,
    ext: str = "jpg",
) -> str:
    """
    Generate a readable, URL-safe storage file name.

    The original name is slugified (max 50 chars, "upload" if nothing is
    left), a base36 timestamp is appended for uniqueness and an optional
    prefix becomes a leading path segment.

    Args:
        original_name: Original file name or descriptive context
        prefix: Optional path prefix (entity ID, user ID)
        ext: File extension (with or without dot)

    Returns:
        Storage path like "event-123/my-cool-photo-lk3x9q2a.jpg"
    """
    clean_ext = ext.lstrip(".").lower()
    name_without_ext = re.sub(r"\.[^.]+$", "", original_name)

    sanitized = re.sub(r"[^a-z0-9]+", "-", name_without_ext.lower())
    sanitized = re.sub(r"-+", "-", sanitized).strip("-")[:50]
    smart_name = sanitized or "upload"

    timestamp = _to_base36(int(time.time() * 1000))
    filename = f"{smart_name}-{timestamp}.{clean_ext}"
    return f"{prefix}/{filename}" if prefix else filename


def _to_base36(value: int) -> str:
    digits = "0123456789abcdefghijklmnopqrstuvwxyz"
    if value == 0:
        return "0"
    out = []
    while value:
        value, rem = divmod(value, 36)
        out.append(digits[rem])
    return "".join(reversed(out))


def format_size(bytes: int) -> str:
    """
    Format byte size as human-readable string.

    Example:
        print(format_size(3_500_000))  # "3.3 MB"
    """
    if bytes < 1024:
        return f"{bytes} B"
    if bytes < 1024 * 1024:
        return f"{bytes / 1024:.1f} KB"
    return f"{bytes / (1024 * 1024):.1f} MB"


def ensure_directory(path: Path, create: bool = True) -> bool:
    """
    Ensure directory exists.

    Args:
        path: Directory path
        create: If True, create if doesn't exist

    Returns:
        True if directory exists or was created
    """
    try:
        if path.exists():
            if not path.is_dir():
                logger.error(f"Path exists but is not a directory: {path}")
                return False
            return True

        if create:
            path.mkdir(parents=True, exist_ok=True)
            logger.debug(f"Created directory: {path}")
            return True

        return False

    except OSError as e:
        logger.error(f"Failed to create directory {path}: {e}")
        return False


def unique_output_path(work_dir: Path, filename: str) -> Path:
    """
    Build a collision-free path inside work_dir for a derived file.

    Example:
        unique_output_path(Path("/tmp/work"), "IMG_1.jpg")
        # Path("/tmp/work/IMG_1-lk3x9q2a-3f.jpg")
    """
    ensure_directory(work_dir)
    stem, dot, ext = filename.rpartition(".")
    if not dot:
        stem, ext = filename, ""
    counter = 0
    while True:
        suffix = f"{_to_base36(time.time_ns() // 1000)}-{counter:x}"
        candidate = work_dir / (f"{stem}-{suffix}.{ext}" if ext else f"{stem}-{suffix}")
        if not candidate.exists():
            return candidate
        counter += 1
