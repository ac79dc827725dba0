"""
Presigned URL Uploader Implementation

Uploads files through the storage API:
1. POST /api/storage/presign {bucket, path, contentType} -> {url, publicUrl, provider}
2. PUT the bytes to the presigned URL

Transient failures (transport errors, 5xx) are retried with exponential
backoff and jitter. Client errors (4xx) are never retried - they won't
succeed on retry.
"""

import asyncio
import logging
import random
import time
from typing import AsyncIterator, Callable, Optional

import anyio
import httpx

from config.settings import (
    INITIAL_RETRY_DELAY_SECONDS,
    MAX_RETRY_DELAY_SECONDS,
    PRESIGN_ENDPOINT,
    PRESIGN_MAX_RETRIES,
    PRESIGN_TIMEOUT_SECONDS,
    RETRY_JITTER_RATIO,
    UPLOAD_CHUNK_SIZE,
    UPLOAD_HTTP_MAX_RETRIES,
    UPLOAD_HTTP_TIMEOUT_SECONDS,
)
from media.models.media_file import MediaFile
from upload.constants import UploadErrorKind
from upload.interfaces.uploader_interface import (
    StorageUploaderInterface,
    UploaderError,
    UploadOptions,
    UploadResult,
)

ContentFactory = Callable[[], AsyncIterator[bytes]]


def get_retry_delay(
    attempt: int,
    initial_delay: float = INITIAL_RETRY_DELAY_SECONDS,
    max_delay: float = MAX_RETRY_DELAY_SECONDS,
    jitter_ratio: float = RETRY_JITTER_RATIO,
) -> float:
    """
    Exponential backoff delay with jitter.

    Example:
        get_retry_delay(0)  # 1.0 - 1.25 s
        get_retry_delay(5)  # 10.0 - 12.5 s (capped)
    """
    base_delay = min(initial_delay * (2 ** attempt), max_delay)
    return base_delay + base_delay * random.random() * jitter_ratio


class PresignedUploader(StorageUploaderInterface):
    """
    Storage uploader backed by the presign API.

    Usage:
        uploader = PresignedUploader("https://dalat.app", token="...")
        result = await uploader.upload("moments", file, UploadOptions(path="..."))

    Tests inject an httpx transport (httpx.MockTransport) instead of
    hitting the network.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        presign_max_retries: int = PRESIGN_MAX_RETRIES,
        upload_max_retries: int = UPLOAD_HTTP_MAX_RETRIES,
        presign_timeout: float = PRESIGN_TIMEOUT_SECONDS,
        upload_timeout: float = UPLOAD_HTTP_TIMEOUT_SECONDS,
        initial_retry_delay: float = INITIAL_RETRY_DELAY_SECONDS,
        chunk_size: int = UPLOAD_CHUNK_SIZE,
    ):
        """
        Args:
            base_url: Storage API origin (e.g. "https://dalat.app")
            token: Bearer token for the presign endpoint (optional)
            transport: httpx transport override (tests)
            presign_max_retries: Retries for the presign call
            upload_max_retries: Retries for the PUT
            presign_timeout: Per-attempt presign timeout in seconds
            upload_timeout: Per-attempt PUT timeout in seconds
            initial_retry_delay: First backoff delay (doubles per attempt)
            chunk_size: Bytes per streamed chunk (progress granularity)
        """
        self.logger = logging.getLogger(__name__)
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.transport = transport
        self.presign_max_retries = presign_max_retries
        self.upload_max_retries = upload_max_retries
        self.presign_timeout = presign_timeout
        self.upload_timeout = upload_timeout
        self.initial_retry_delay = initial_retry_delay
        self.chunk_size = chunk_size

        self.logger.info(f"Presigned Uploader initialized (api: {self.base_url})")

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    async def upload(
        self,
        bucket: str,
        file: MediaFile,
        options: UploadOptions,
    ) -> UploadResult:
        start_time = time.time()

        data = await self._read_file(file)
        total = len(data)

        async with self._client() as client:
            presigned = await self._presign(client, bucket, options.path, file.content_type)

            def content_factory() -> AsyncIterator[bytes]:
                return self._iter_chunks(data, options)

            response = await self._request_with_retry(
                client,
                "PUT",
                presigned["url"],
                max_retries=self.upload_max_retries,
                timeout=self.upload_timeout,
                headers={
                    "Content-Type": file.content_type,
                    "Content-Length": str(total),
                },
                content_factory=content_factory,
            )

        if not response.is_success:
            raise UploaderError(
                f"Storage upload failed: {response.status_code} {response.reason_phrase}",
                kind=UploadErrorKind.CLIENT,
                status_code=response.status_code,
            )

        upload_duration = time.time() - start_time
        self.logger.info(
            f"✅ Uploaded {file.name} -> {bucket}/{options.path} ({upload_duration:.1f}s)"
        )

        return UploadResult(
            public_url=presigned["publicUrl"],
            path=options.path,
            provider=presigned.get("provider", "unknown"),
            cf_video_uid=presigned.get("cfVideoUid"),
            cf_playback_url=presigned.get("cfPlaybackUrl"),
            upload_duration=upload_duration,
            file_size=total,
        )

    def is_available(self) -> bool:
        return bool(self.base_url)

    async def test_connection(self) -> bool:
        """GET the presign endpoint (returns storage info when configured)"""
        try:
            async with self._client() as client:
                response = await client.get(
                    PRESIGN_ENDPOINT,
                    headers=self._auth_headers(),
                    timeout=self.presign_timeout,
                )
        except httpx.HTTPError as e:
            self.logger.warning(f"Storage API unreachable: {e}")
            return False

        if response.is_success:
            self.logger.info("✅ Storage API connection successful")
            return True

        self.logger.warning(f"Storage API answered {response.status_code}")
        return False

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, transport=self.transport)

    def _auth_headers(self) -> dict:
        # API calls only; the presigned PUT carries its own signature
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    async def _read_file(self, file: MediaFile) -> bytes:
        # Read up front so the PUT never races with file cleanup
        try:
            return await anyio.to_thread.run_sync(file.path.read_bytes)
        except OSError as e:
            raise UploaderError(
                f"Cannot read {file.name}: {e}", kind=UploadErrorKind.INVALID_FILE
            ) from e

    async def _presign(
        self,
        client: httpx.AsyncClient,
        bucket: str,
        path: str,
        content_type: str,
    ) -> dict:
        try:
            response = await self._request_with_retry(
                client,
                "POST",
                PRESIGN_ENDPOINT,
                max_retries=self.presign_max_retries,
                timeout=self.presign_timeout,
                headers=self._auth_headers(),
                json={"bucket": bucket, "path": path, "contentType": content_type},
            )
        except UploaderError as e:
            raise UploaderError(
                f"Presign failed: {e}", kind=UploadErrorKind.PRESIGN, status_code=e.status_code
            ) from e

        if not response.is_success:
            raise UploaderError(
                f"Presign failed ({response.status_code}): {response.text}",
                kind=UploadErrorKind.PRESIGN,
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise UploaderError(
                "Presign returned invalid JSON", kind=UploadErrorKind.PRESIGN
            ) from e

        if not payload.get("url") or not payload.get("publicUrl"):
            raise UploaderError(
                "Presign response missing url/publicUrl", kind=UploadErrorKind.PRESIGN
            )

        return payload

    async def _request_with_retry(
        self,
        client: httpx.AsyncClient,
        method: str,
        url: str,
        max_retries: int,
        timeout: float,
        content_factory: Optional[ContentFactory] = None,
        **kwargs,
    ) -> httpx.Response:
        """
        Send a request, retrying transport errors and 5xx responses.

        Returns:
            The first response that is a success or a 4xx

        Raises:
            UploaderError: NETWORK or SERVER once retries are exhausted
        """
        for attempt in range(max_retries + 1):
            if content_factory is not None:
                kwargs["content"] = content_factory()

            try:
                response = await client.request(method, url, timeout=timeout, **kwargs)
            except httpx.TransportError as e:
                if attempt < max_retries:
                    delay = get_retry_delay(attempt, initial_delay=self.initial_retry_delay)
                    self.logger.warning(
                        f"Retryable error: {e!r}, retrying in {delay:.1f}s "
                        f"(attempt {attempt + 1}/{max_retries})"
                    )
                    await asyncio.sleep(delay)
                    continue
                raise UploaderError(
                    f"Network error after {max_retries + 1} attempts: {e!r}",
                    kind=UploadErrorKind.NETWORK,
                ) from e

            if response.is_success or 400 <= response.status_code < 500:
                return response

            if attempt < max_retries:
                delay = get_retry_delay(attempt, initial_delay=self.initial_retry_delay)
                self.logger.warning(
                    f"Server error {response.status_code}, retrying in {delay:.1f}s "
                    f"(attempt {attempt + 1}/{max_retries})"
                )
                await asyncio.sleep(delay)
                continue

            raise UploaderError(
                f"Upload failed: {response.status_code} {response.reason_phrase}",
                kind=UploadErrorKind.SERVER,
                status_code=response.status_code,
            )

        # Unreachable: the loop either returns or raises on the last attempt
        raise UploaderError("Upload failed after retries", kind=UploadErrorKind.NETWORK)

    async def _iter_chunks(self, data: bytes, options: UploadOptions) -> AsyncIterator[bytes]:
        total = len(data)
        sent = 0
        if options.on_progress:
            options.on_progress(0, total)
        for offset in range(0, total, self.chunk_size):
            chunk = data[offset:offset + self.chunk_size]
            sent += len(chunk)
            yield chunk
            if options.on_progress:
                options.on_progress(sent, total)
