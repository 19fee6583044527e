"""
PlaceHub Backend: Cloudinary Storage Implementation
====================================================

What:  ObjectStorage implementation backed by the Cloudinary media host.
How:   Wraps the synchronous Cloudinary SDK (`uploader.upload`,
       `uploader.destroy`, `api.ping`) in worker threads, retries transport
       failures with tenacity, and translates every SDK error into
       UploadFailedError / DeleteFailedError.
Who:   Built once from settings by placehub.dependencies and injected into
       PlaceService.

Credentials:
    The SDK supports a process-global `cloudinary.config(...)`. This client
    does not use it: cloud name, key and secret are held by the instance and
    passed as options on every call, so two instances with different
    accounts can coexist (and tests never leak config into each other).

Retry Policy:
    GeneralError   → transport problem (socket error, unexpected status,
                     unparseable body): retried with exponential backoff
    RateLimited    → retried with exponential backoff
    anything else  → provider said no (bad credentials, bad file): not retried
"""

import asyncio
import io
import logging
import time
from typing import Any, Dict

import cloudinary.api
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from cloudinary.exceptions import GeneralError, RateLimited
from tenacity import (
    RetryError,
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from placehub.config import settings
from placehub.exceptions import DeleteFailedError, UploadFailedError
from placehub.schemas.place import ImageHandle
from placehub.services.storage_base import ObjectStorage

logger = logging.getLogger(__name__)

_retry_policy = retry(
    retry=retry_if_exception_type((GeneralError, RateLimited)),
    stop=stop_after_attempt(settings.retry_max_attempts),
    wait=wait_exponential_jitter(
        initial=settings.retry_min_wait,
        max=settings.retry_max_wait,
        jitter=1,
    ),
    before_sleep=before_sleep_log(logger, logging.WARNING),
)


class CloudinaryStorage(ObjectStorage):
    """
    Cloudinary-backed image storage.

    Every upload lands in `folder` and gets a Cloudinary-generated public id.
    Deleting an id that no longer exists is logged and treated as success.
    """

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        folder: str = "places",
        timeout: int = 60,
    ):
        self.folder = folder
        self.timeout = timeout
        self._credentials: Dict[str, Any] = {
            "cloud_name": cloud_name,
            "api_key": api_key,
            "api_secret": api_secret,
        }
        logger.info(
            "CloudinaryStorage initialized with cloud=%s, folder=%s, timeout=%ds",
            cloud_name or "<unset>",
            folder,
            timeout,
        )

    # ── Upload ────────────────────────────────────────────────────────────

    async def upload(self, blob: bytes) -> ImageHandle:
        """
        Upload one image blob into the configured folder.

        Raises:
            UploadFailedError: after retries are exhausted, or immediately for
                non-transient provider errors.
        """
        start_time = time.perf_counter()
        try:
            result = await self._upload_with_retry(blob)
        except RetryError as e:
            last = e.last_attempt.exception() if e.last_attempt else None
            logger.error("Cloudinary upload retries exhausted: %s", last)
            raise UploadFailedError(
                context={"attempts": settings.retry_max_attempts, "error": str(last)},
            ) from last
        except CloudinaryError as e:
            logger.error("Cloudinary rejected upload (%d bytes): %s", len(blob), e)
            raise UploadFailedError(
                context={"error_type": type(e).__name__, "error": str(e)},
            ) from e

        try:
            handle = ImageHandle(url=result["secure_url"], public_id=result["public_id"])
        except (KeyError, TypeError) as e:
            logger.error("Unexpected Cloudinary upload response: %r", result)
            raise UploadFailedError(context={"error": "malformed upload response"}) from e

        logger.info(
            "Uploaded image %s (%d bytes) in %.0fms",
            handle.public_id,
            len(blob),
            (time.perf_counter() - start_time) * 1000,
        )
        return handle

    @_retry_policy
    async def _upload_with_retry(self, blob: bytes) -> Dict[str, Any]:
        # The SDK reads file-like objects; a fresh stream per attempt
        return await asyncio.to_thread(
            cloudinary.uploader.upload,
            io.BytesIO(blob),
            folder=self.folder,
            resource_type="image",
            timeout=self.timeout,
            **self._credentials,
        )

    # ── Delete ────────────────────────────────────────────────────────────

    async def delete(self, public_id: str) -> None:
        """
        Destroy one stored image by public id.

        Cloudinary answers {"result": "ok"} or {"result": "not found"}; both
        leave the object absent. Any other answer is a failure.
        """
        try:
            result = await self._destroy_with_retry(public_id)
        except RetryError as e:
            last = e.last_attempt.exception() if e.last_attempt else None
            logger.error("Cloudinary destroy retries exhausted for %s: %s", public_id, last)
            raise DeleteFailedError(
                context={"public_id": public_id, "error": str(last)},
            ) from last
        except CloudinaryError as e:
            logger.error("Cloudinary rejected destroy of %s: %s", public_id, e)
            raise DeleteFailedError(
                context={"public_id": public_id, "error_type": type(e).__name__},
            ) from e

        outcome = (result or {}).get("result")
        if outcome == "ok":
            logger.info("Deleted image %s", public_id)
        elif outcome == "not found":
            logger.warning("Image %s was already absent on Cloudinary", public_id)
        else:
            logger.error("Cloudinary destroy of %s answered %r", public_id, result)
            raise DeleteFailedError(context={"public_id": public_id, "result": outcome})

    @_retry_policy
    async def _destroy_with_retry(self, public_id: str) -> Dict[str, Any]:
        return await asyncio.to_thread(
            cloudinary.uploader.destroy,
            public_id,
            invalidate=True,
            timeout=self.timeout,
            **self._credentials,
        )

    # ── Health ────────────────────────────────────────────────────────────

    async def health_check(self) -> bool:
        """Ping the Admin API. Does not count against upload quota."""
        try:
            response = await asyncio.to_thread(cloudinary.api.ping, **self._credentials)
            return (response or {}).get("status") == "ok"
        except Exception as e:
            logger.warning("Cloudinary health check failed: %s", str(e))
            return False
