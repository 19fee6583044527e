"""
PlaceHub Backend: Image Upload Boundary
========================================

What:  Validates the image parts of a multipart request and reads them into
       raw byte blobs for PlaceService.
How:   Count check first (no reading), then per file: extension, declared
       content type, size, and the real type sniffed from the bytes with
       libmagic. Blobs are returned in the order the client sent
       them, which is the order the stored images keep.
Who:   Called by the place routes before any workflow runs.

Rules:
    create:  1 .. MAX_IMAGES_PER_PLACE images
    update:  0 .. MAX_IMAGES_PER_PLACE images (0 = keep current images)

The workflow engine does not re-check any of this.
"""

import logging
from pathlib import Path
from typing import List, Optional, Sequence

import magic
from fastapi import UploadFile

from placehub.config import settings
from placehub.exceptions import PlaceHubError, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {"image/png", "image/jpeg", "image/jpg", "image/webp"}
ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp"}


class UploadService:
    """Request-boundary checks for place images."""

    def __init__(self, max_images: Optional[int] = None, max_file_size: Optional[int] = None):
        self.max_images = max_images or settings.max_images_per_place
        self.max_file_size = max_file_size or settings.max_file_size

    def validate_count(self, count: int, required: bool) -> None:
        if required and count == 0:
            raise ValidationError(
                message="At least one image must be sent",
                field="images",
                context={"min": 1, "max": self.max_images},
            )
        if count > self.max_images:
            raise ValidationError(
                message=f"At most {self.max_images} images are allowed per place, got {count}",
                field="images",
                context={"max": self.max_images, "received": count},
            )

    def validate_extension(self, filename: Optional[str]) -> None:
        # Clients that send no filename are judged by content type alone
        if not filename:
            return
        ext = Path(filename).suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"File type '{ext or filename}' is not supported. "
                    f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="images",
                context={"extension": ext, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )

    def validate_content_type(self, content_type: Optional[str]) -> None:
        if content_type and content_type.lower() not in ALLOWED_CONTENT_TYPES:
            raise ValidationError(
                message=f"Content type '{content_type}' is not an accepted image type",
                field="images",
                context={"content_type": content_type, "allowed": sorted(ALLOWED_CONTENT_TYPES)},
            )

    def validate_image_bytes(self, content: bytes, filename: Optional[str]) -> str:
        """
        Detect the real type from the leading bytes with libmagic.

        Extension and declared content type are client claims; this is the
        check that decides. It runs before any remote call, so a renamed
        non-image never reaches the update step that deletes old images.

        Returns:
            Detected MIME type (e.g. "image/png").
        """
        try:
            detected = magic.from_buffer(content[:2048], mime=True)
        except magic.MagicException as e:
            logger.error("Image type detection failed for %s: %s", filename, str(e))
            raise PlaceHubError(
                message="Could not verify the image type. Please try again.",
                context={"filename": filename, "error": str(e)},
            ) from e

        if detected not in ALLOWED_CONTENT_TYPES:
            raise ValidationError(
                message=(
                    f"File content of '{filename or 'upload'}' is '{detected}', "
                    "not a PNG, JPEG or WebP image"
                ),
                field="images",
                context={"detected_mime": detected, "allowed": sorted(ALLOWED_CONTENT_TYPES)},
            )
        return detected

    def validate_size(self, size: int) -> None:
        """
        Rejects empty files and files above MAX_FILE_SIZE.

        Called on the actual byte count, never on a client-reported header.
        """
        if size == 0:
            raise ValidationError(message="Uploaded image is empty", field="images")
        if size > self.max_file_size:
            max_mb = self.max_file_size / (1024 * 1024)
            raise ValidationError(
                message=f"Image size ({size / (1024 * 1024):.1f}MB) exceeds maximum of {max_mb:.0f}MB.",
                field="images",
                context={"max_size_mb": max_mb, "actual_size": size},
            )

    async def read_images(
        self,
        files: Optional[Sequence[UploadFile]],
        required: bool,
    ) -> List[bytes]:
        """
        Validate and read every uploaded image.

        Args:
            files: The `images` parts of the request (None when absent).
            required: True on create (at least one image), False on update.

        Returns:
            Raw bytes per image, in request order. Empty list when the
            client sent none and none were required.

        Raises:
            ValidationError: count, type or size rule broken. Nothing has
                been sent to the media host at that point.
        """
        files = list(files or [])
        self.validate_count(len(files), required=required)

        blobs: List[bytes] = []
        for upload in files:
            self.validate_extension(upload.filename)
            self.validate_content_type(upload.content_type)
            content = await upload.read()
            self.validate_size(len(content))
            self.validate_image_bytes(content, upload.filename)
            blobs.append(content)

        if blobs:
            logger.info(
                "Accepted %d image(s), %d bytes total",
                len(blobs),
                sum(len(b) for b in blobs),
            )
        return blobs


upload_service = UploadService()
