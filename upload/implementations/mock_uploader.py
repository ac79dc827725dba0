"""
Mock Uploader Implementation

Simulated storage uploader for testing without the storage API.
Similar to the mock media processors in the media module.
"""

import asyncio
import logging
import random
import time
from typing import Dict, List, Optional
from uuid import uuid4

from media.models.media_file import MediaFile
from upload.constants import StorageProvider, UploadErrorKind
from upload.interfaces.uploader_interface import (
    StorageUploaderInterface,
    UploaderError,
    UploadOptions,
    UploadResult,
)


class MockUploader(StorageUploaderInterface):
    """
    Mock storage uploader for testing.

    This simulates upload timing and behavior without actually uploading.
    Useful for:
    - Unit tests (scripted failures, concurrency assertions)
    - Development without storage credentials (--mock)
    - CI/CD pipelines
    """

    def __init__(
        self,
        delay: float = 0.0,
        fail_rate: float = 0.0,
        base_url: str = "https://cdn.mock.local",
    ):
        """
        Initialize mock uploader.

        Args:
            delay: Seconds each upload takes (0 = yield once and finish)
            fail_rate: Probability of upload failure (0.0 to 1.0)
            base_url: Prefix for generated public URLs

        Example:
            # Fast mock for unit tests
            uploader = MockUploader()

            # Script failures: first two attempts of a.jpg fail
            uploader = MockUploader()
            uploader.fail_next("a.jpg", times=2)

            # Hold uploads until the test releases them
            uploader.hold()
            ...
            uploader.release()
        """
        self.logger = logging.getLogger(__name__)
        self.delay = delay
        self.fail_rate = fail_rate
        self.base_url = base_url.rstrip("/")

        # Track upload history for testing
        self.upload_history: List[dict] = []
        self.attempts: Dict[str, int] = {}

        self._fail_plan: Dict[str, int] = {}
        self._gate: Optional[asyncio.Event] = None
        self._in_flight = 0
        self.max_in_flight = 0

        self.logger.info(f"Mock Uploader initialized (delay: {delay}, fail_rate: {fail_rate})")

    async def upload(
        self,
        bucket: str,
        file: MediaFile,
        options: UploadOptions,
    ) -> UploadResult:
        """
        Simulate an upload.

        Reports progress 0 -> total, honours the hold gate and scripted
        failures.
        """
        start_time = time.time()
        self.attempts[file.name] = self.attempts.get(file.name, 0) + 1

        self._in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self._in_flight)

        try:
            self.logger.info(f"[MOCK] Starting upload: {file.name} ({file.size} bytes)")

            if options.on_progress:
                options.on_progress(0, file.size)

            if self._gate is not None:
                await self._gate.wait()

            if self.delay:
                await asyncio.sleep(self.delay)
            else:
                await asyncio.sleep(0)

            if self._fail_plan.get(file.name, 0) > 0:
                self._fail_plan[file.name] -= 1
                raise UploaderError(
                    f"Simulated upload failure: {file.name}",
                    kind=UploadErrorKind.NETWORK,
                )

            if self.fail_rate and random.random() < self.fail_rate:
                raise UploaderError("Simulated upload failure", kind=UploadErrorKind.NETWORK)

            if options.on_progress:
                options.on_progress(file.size, file.size)

            upload_id = f"mock_{uuid4().hex[:11]}"
            self.upload_history.append(
                {
                    "upload_id": upload_id,
                    "bucket": bucket,
                    "path": options.path,
                    "name": file.name,
                    "content_type": file.content_type,
                    "file_size": file.size,
                    "timestamp": time.time(),
                }
            )

            upload_duration = time.time() - start_time
            self.logger.info(f"[MOCK] ✅ Upload successful: {options.path}")

            return UploadResult(
                public_url=f"{self.base_url}/{bucket}/{options.path}",
                path=options.path,
                provider=StorageProvider.MOCK.value,
                upload_duration=upload_duration,
                file_size=file.size,
            )

        except UploaderError as e:
            self.logger.error(f"[MOCK] Upload failed: {e}")
            raise

        finally:
            self._in_flight -= 1

    def is_available(self) -> bool:
        """Mock uploader is always available"""
        return True

    async def test_connection(self) -> bool:
        """Simulate connection test (always succeeds unless fail_rate)"""
        if self.fail_rate and random.random() < self.fail_rate:
            self.logger.warning("[MOCK] Connection test failed (simulated)")
            return False

        self.logger.info("[MOCK] ✅ Connection test successful")
        return True

    # =========================================================================
    # TESTING HELPER METHODS
    # =========================================================================

    def fail_next(self, name: str, times: int = 1) -> None:
        """Make the next `times` uploads of file `name` fail"""
        self._fail_plan[name] = self._fail_plan.get(name, 0) + times

    def hold(self) -> None:
        """Block uploads after they start until release() is called"""
        self._gate = asyncio.Event()

    def release(self) -> None:
        """Let held uploads finish"""
        if self._gate is not None:
            self._gate.set()
            self._gate = None

    @property
    def in_flight(self) -> int:
        return self._in_flight

    def get_upload_history(self) -> List[dict]:
        """
        Get list of all uploads performed.

        Returns:
            List of upload records
        """
        return self.upload_history.copy()

    def clear_history(self) -> None:
        """Clear upload history"""
        self.upload_history.clear()
        self.attempts.clear()
        self.logger.debug("[MOCK] Upload history cleared")

    def get_last_upload(self) -> Optional[dict]:
        """Most recent successful upload, or None"""
        return self.upload_history[-1] if self.upload_history else None

    def was_uploaded(self, name: str) -> bool:
        """True if a file with this name was uploaded successfully"""
        return any(record["name"] == name for record in self.upload_history)
