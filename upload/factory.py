"""
Upload Factory

Factory pattern for creating uploader implementations.
Follows same pattern as media/factory.py for consistency.

Automatically configures from environment variables.
"""

import logging
import os
from typing import Literal, Optional

from upload.implementations.mock_uploader import MockUploader
from upload.implementations.presigned_uploader import PresignedUploader
from upload.interfaces.uploader_interface import StorageUploaderInterface

# Type alias
UploaderMode = Literal["auto", "presigned", "mock"]


class UploaderFactory:
    """
    Factory for creating uploader implementations.

    Reads configuration from environment variables:
    - STORAGE_API_BASE_URL: Origin serving /api/storage/presign
    - STORAGE_API_TOKEN: Bearer token (optional)

    Usage:
        # Auto-detect from environment
        uploader = UploaderFactory.create_uploader()

        # Force mock for testing
        uploader = UploaderFactory.create_uploader(mode="mock")
    """

    _logger = logging.getLogger(__name__)

    @classmethod
    def create_uploader(
        cls,
        mode: UploaderMode = "auto",
        base_url: Optional[str] = None,
    ) -> StorageUploaderInterface:
        """
        Create an uploader instance.

        Args:
            mode: "auto" (from env), "presigned" (force real), "mock" (force sim)
            base_url: Override STORAGE_API_BASE_URL

        Returns:
            StorageUploaderInterface implementation

        Raises:
            RuntimeError: If mode="presigned" but the API is not configured
        """
        if mode == "mock":
            cls._logger.info("Creating Mock Uploader (forced)")
            return MockUploader()

        if mode == "presigned":
            try:
                uploader = cls._create_presigned_uploader(base_url)
                cls._logger.info("Creating Presigned Uploader (forced)")
                return uploader
            except ValueError as e:
                raise RuntimeError(
                    f"Presigned uploader requested but not available: {e}"
                ) from e

        # mode == "auto" - try the storage API first, fall back to mock
        try:
            uploader = cls._create_presigned_uploader(base_url)
            cls._logger.info("Creating Presigned Uploader (auto-detected)")
            return uploader
        except ValueError as e:
            cls._logger.warning(f"Presigned uploader not available ({e}), using Mock Uploader")
            return MockUploader()

    @classmethod
    def _create_presigned_uploader(cls, base_url: Optional[str] = None) -> PresignedUploader:
        """
        Create presigned uploader from environment configuration.

        Raises:
            ValueError: If STORAGE_API_BASE_URL is missing
        """
        api_url = base_url or os.getenv("STORAGE_API_BASE_URL")
        if not api_url:
            raise ValueError(
                "STORAGE_API_BASE_URL not set in environment. "
                "Add to .env file: STORAGE_API_BASE_URL=https://your-app.example"
            )

        return PresignedUploader(
            base_url=api_url,
            token=os.getenv("STORAGE_API_TOKEN") or None,
        )

    @classmethod
    def is_presigned_available(cls) -> bool:
        """True if the storage API is configured"""
        return bool(os.getenv("STORAGE_API_BASE_URL"))


# Convenience function for quick creation
def create_uploader(
    force_mock: bool = False,
    base_url: Optional[str] = None,
) -> StorageUploaderInterface:
    """
    Quick uploader creation with simple mock override.

    Example:
        # Normal usage
        uploader = create_uploader()

        # Testing
        uploader = create_uploader(force_mock=True)
    """
    mode = "mock" if force_mock else "auto"
    return UploaderFactory.create_uploader(mode=mode, base_url=base_url)
