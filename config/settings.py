"""
Central Configuration File

ALL configuration values live here. This is the single source of truth.

Guidelines:
- Secrets (API tokens, storage endpoints) should be in .env, NOT here
- Import these settings in modules: from config.settings import MAX_UPLOAD_RETRIES
- Per-deployment queue tuning can be overridden in config/upload_queue.yaml
  (see upload/config.py)
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# =============================================================================
# UPLOAD QUEUE CONFIGURATION
# =============================================================================

# Concurrency
# Don't overwhelm mobile / venue Wi-Fi connections
MAX_CONCURRENT_UPLOADS = int(os.getenv("MAX_CONCURRENT_UPLOADS", "3"))

# Retry policy (queue level)
MAX_UPLOAD_RETRIES = 2
RETRY_DELAYS_SECONDS = (2.0, 5.0)  # delay before retry #1, #2, ... (last one repeats)
RESET_RETRY_COUNT_ON_MANUAL_RETRY = False  # manual retry keeps the attempt counter

# Storage target
UPLOAD_BUCKET = os.getenv("UPLOAD_BUCKET", "moments")

# Working directory for converted / compressed / thumbnail files
UPLOAD_WORK_DIR = Path(os.getenv("UPLOAD_WORK_DIR", "./temp_uploads"))

# Queue YAML overrides
UPLOAD_QUEUE_CONFIG_PATH = Path(
    os.getenv("UPLOAD_QUEUE_CONFIG_PATH", "config/upload_queue.yaml"),
)

# =============================================================================
# MEDIA VALIDATION
# =============================================================================

# File size limits (bytes)
MAX_IMAGE_SIZE_BYTES = 10 * 1024 * 1024  # 10 MB
MAX_GIF_SIZE_BYTES = 15 * 1024 * 1024  # 15 MB
MAX_VIDEO_SIZE_BYTES = 50 * 1024 * 1024  # 50 MB

# Allowed MIME types
ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/png", "image/webp")
ALLOWED_GIF_TYPES = ("image/gif",)
ALLOWED_VIDEO_TYPES = ("video/mp4", "video/webm", "video/quicktime")
CONVERTIBLE_IMAGE_TYPES = ("image/heic", "image/heif")

# =============================================================================
# MEDIA CONVERSION
# =============================================================================

# MOV uploads directly by default (modern browsers play it)
CONVERT_MOV_TO_MP4 = os.getenv("CONVERT_MOV_TO_MP4", "false").lower() == "true"
HEIC_JPEG_QUALITY = 2  # ffmpeg -q:v scale (2 = visually lossless)
CONVERSION_TIMEOUT_SECONDS = 120

# =============================================================================
# IMAGE COMPRESSION
# =============================================================================

IMAGE_COMPRESSION_THRESHOLD = 3 * 1024 * 1024  # images above 3 MB get compressed
TARGET_COMPRESSED_SIZE = 2 * 1024 * 1024  # aim for 2 MB
MAX_IMAGE_DIMENSION = 4096  # longest side after resize
IMAGE_INITIAL_QUALITY = 0.85
IMAGE_MIN_QUALITY = 0.5
IMAGE_QUALITY_STEP = 0.1

# =============================================================================
# VIDEO COMPRESSION
# =============================================================================

VIDEO_COMPRESSION_THRESHOLD = 50 * 1024 * 1024  # videos above 50 MB get compressed
VIDEO_CODEC = "libx264"
VIDEO_CRF = 28  # lower = better quality, larger file
VIDEO_PRESET = "veryfast"
VIDEO_MAX_HEIGHT = 1080
AUDIO_CODEC = "aac"
AUDIO_BITRATE = "128k"
VIDEO_COMPRESSION_TIMEOUT_SECONDS = 900  # 15 minutes

# Thumbnails
THUMBNAIL_WIDTH = 320
THUMBNAIL_SEEK_SECONDS = 0.5
PROBE_TIMEOUT_SECONDS = 10

# =============================================================================
# STORAGE API (presigned uploads)
# =============================================================================

PRESIGN_ENDPOINT = "/api/storage/presign"
PRESIGN_MAX_RETRIES = 2  # presign is quick, failures are usually auth issues
PRESIGN_TIMEOUT_SECONDS = 15.0
UPLOAD_HTTP_MAX_RETRIES = 3
UPLOAD_HTTP_TIMEOUT_SECONDS = 600.0  # large PUTs on slow links
INITIAL_RETRY_DELAY_SECONDS = 1.0
MAX_RETRY_DELAY_SECONDS = 10.0
RETRY_JITTER_RATIO = 0.25
UPLOAD_CHUNK_SIZE = 256 * 1024  # bytes per streamed chunk (progress granularity)

# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================

LOG_DIR = os.getenv("UPLOAD_LOG_DIR", "/var/log/moments-upload")
LOG_SERVICE_FILE = "upload.log"
LOG_BACKUP_COUNT = 7

# =============================================================================
# SECRETS (loaded from .env)
# =============================================================================
# IMPORTANT: These should NEVER be committed to version control!
# Create a .env file in the project root with these values

STORAGE_API_BASE_URL = os.getenv("STORAGE_API_BASE_URL", "")
STORAGE_API_TOKEN = os.getenv("STORAGE_API_TOKEN", "")
