#!/usr/bin/env python3
"""
Moments Upload Service - Command Line Entry Point

Uploads a batch of photos and videos for an event through the bulk upload
queue: validation, HEIC conversion, compression, bounded-concurrency upload
with retries.

Usage:
    moments-upload --event-id EVT --user-id USR photos/ clip.mp4
    moments-upload --event-id EVT --user-id USR photos/ --dry-run
    moments-upload --event-id EVT --user-id USR photos/ --mock --max-concurrent 5

Exit code is 0 when every accepted file was uploaded (or, in dry-run mode,
when every file passed validation).
"""

import argparse
import asyncio
import logging
import logging.handlers
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from config.settings import LOG_BACKUP_COUNT, LOG_DIR, LOG_SERVICE_FILE
from media.constants import EXTENSION_CONTENT_TYPES
from media.factory import MediaFactory
from media.models.media_file import MediaFile
from media.utils.path_utils import format_size, get_extension
from media.utils.validation_utils import validate_media_file
from upload.config import QueueConfig
from upload.controllers.upload_queue import UploadQueue
from upload.factory import UploaderFactory
from upload.models.queued_upload import QueuedUpload

MEDIA_EXTENSIONS = frozenset(
    ext for ext, content_type in EXTENSION_CONTENT_TYPES.items()
    if content_type.startswith(("image/", "video/"))
)


def setup_logging(log_dir: str = LOG_DIR, level: int = logging.INFO) -> None:
    """
    Setup logging with rotation.

    Logs to both console and file with rotation:
    - Daily rotation
    - Keep 7 days of logs
    - Falls back to ./logs when log_dir is not writable
    """
    logger = logging.getLogger()
    logger.setLevel(level)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter("%(message)s | %(name)s"))
    logger.addHandler(console_handler)

    file_format = logging.Formatter("%(asctime)s - %(levelname)s - %(message)s | %(name)s")

    log_file = Path(log_dir) / LOG_SERVICE_FILE
    try:
        file_handler = logging.handlers.TimedRotatingFileHandler(
            str(log_file),
            when="midnight",
            interval=1,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
    except (PermissionError, FileNotFoundError):
        logs_dir = Path("logs")
        logs_dir.mkdir(exist_ok=True)

        fallback_log = logs_dir / LOG_SERVICE_FILE
        logger.warning(f"Cannot write to {log_file}, using fallback: {fallback_log}")
        logger.info(
            f"To fix: sudo mkdir -p {log_dir} && sudo chown $(whoami) {log_dir}"
        )

        file_handler = logging.handlers.TimedRotatingFileHandler(
            str(fallback_log),
            when="midnight",
            interval=1,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )

    file_handler.setLevel(level)
    file_handler.setFormatter(file_format)
    logger.addHandler(file_handler)


def collect_files(paths: Sequence[str]) -> List[Path]:
    """
    Expand CLI arguments into media files.

    Directories are scanned recursively for known media extensions; explicit
    file arguments are kept as-is (validation decides later).
    """
    collected: List[Path] = []
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            collected.extend(
                sorted(
                    p for p in path.rglob("*")
                    if p.is_file() and get_extension(p.name) in MEDIA_EXTENSIONS
                )
            )
        else:
            collected.append(path)
    return collected


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="moments-upload",
        description="Bulk upload photos and videos as event moments",
        epilog="""
Examples:
  %(prog)s --event-id evt-1 --user-id u-9 ~/Pictures/party
  %(prog)s --event-id evt-1 --user-id u-9 IMG_0001.HEIC clip.mov --dry-run
  %(prog)s --event-id evt-1 --user-id u-9 ~/Pictures/party --mock
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument("paths", nargs="+", help="Files or directories to upload")
    parser.add_argument("--event-id", required=True, help="Event the moments belong to")
    parser.add_argument("--user-id", required=True, help="Uploading user ID")
    parser.add_argument("--bucket", default=None, help="Storage bucket (default from config)")
    parser.add_argument(
        "--max-concurrent",
        type=int,
        default=None,
        help="Files processed at once (default from config)",
    )
    parser.add_argument(
        "--mock",
        action="store_true",
        help="Use mock uploader and media processors (nothing leaves the machine)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only validate files, do not upload",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to queue YAML config (default: config/upload_queue.yaml)",
    )
    parser.add_argument("--log-dir", default=LOG_DIR, help=f"Log directory (default: {LOG_DIR})")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")

    return parser


def run_dry_run(files: List[Path]) -> int:
    """Validate files without uploading"""
    logger = logging.getLogger(__name__)
    rejected = 0

    for path in files:
        try:
            media = MediaFile.from_path(path)
        except OSError as e:
            logger.warning(f"  ✗ {path.name}: {e}")
            rejected += 1
            continue

        error = validate_media_file(media)
        if error:
            logger.warning(f"  ✗ {media.name}: {error}")
            rejected += 1
        else:
            logger.info(f"  ✓ {media.name} ({format_size(media.size)}, {media.content_type})")

    logger.info("=" * 70)
    logger.info("DRY RUN MODE - No uploads performed")
    logger.info(f"Valid: {len(files) - rejected}, rejected: {rejected}")
    logger.info("=" * 70)
    return 0 if rejected == 0 else 1


async def run_upload(args: argparse.Namespace, files: List[Path]) -> int:
    """Run the queue to completion and print a summary"""
    logger = logging.getLogger(__name__)

    config = QueueConfig(Path(args.config)) if args.config else QueueConfig()
    mode = "mock" if args.mock else "auto"

    uploader = UploaderFactory.create_uploader(mode=mode)
    toolkit = MediaFactory.create_toolkit(
        mode=mode,
        work_dir=config.work_dir,
        convert_mov=config.convert_mov_to_mp4,
    )

    def on_complete(item: QueuedUpload) -> None:
        logger.info(f"  ✅ {item.name} -> {item.media_url}")

    async with UploadQueue(
        event_id=args.event_id,
        user_id=args.user_id,
        uploader=uploader,
        toolkit=toolkit,
        config=config,
        max_concurrent=args.max_concurrent,
        bucket=args.bucket,
        on_upload_complete=on_complete,
    ) as queue:
        ids = queue.add_files(files)
        for name, reason in queue.rejected:
            logger.warning(f"  ✗ {name}: {reason}")

        if not ids:
            logger.error("❌ No valid files to upload")
            return 1

        logger.info(f"📤 Uploading {len(ids)} file(s) ({queue.max_concurrent} at a time)...")
        await queue.wait_until_idle()

        stats = queue.stats
        logger.info("\n" + "=" * 70)
        logger.info("📊 UPLOAD SUMMARY")
        logger.info("=" * 70)
        logger.info(f"Total files: {stats.total}")
        logger.info(f"✅ Uploaded: {stats.completed}")
        logger.info(f"❌ Failed: {stats.failed}")
        if queue.rejected:
            logger.info(f"🚫 Rejected: {len(queue.rejected)}")
        for item in queue.items:
            if item.error:
                logger.info(f"  {item.name}: {item.error}")
        logger.info("=" * 70)

        return 0 if not stats.has_errors else 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    setup_logging(args.log_dir, logging.DEBUG if args.verbose else logging.INFO)
    logger = logging.getLogger(__name__)

    logger.info("=" * 70)
    logger.info("Moments Bulk Upload")
    logger.info("=" * 70)
    logger.info(f"Event: {args.event_id}, user: {args.user_id}")
    logger.info(f"Mode: {'DRY RUN' if args.dry_run else ('MOCK' if args.mock else 'UPLOAD')}")

    files = collect_files(args.paths)
    if not files:
        logger.info("✓ No media files found")
        return 0

    logger.info(f"Found {len(files)} file(s)")

    if args.dry_run:
        return run_dry_run(files)

    try:
        return asyncio.run(run_upload(args, files))
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return 130
    except Exception as e:
        logger.critical(f"Fatal error: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
