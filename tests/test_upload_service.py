"""
PlaceHub Backend: Upload Boundary Unit Tests
=============================================

What:  Tests for UploadService validation (count, type, size) and reading.

What we test:
    ✅ Create requires at least one image, update accepts none
    ✅ More than the maximum number of images is rejected before reading
    ✅ Unsupported extensions and content types are rejected
    ✅ Empty and oversized files are rejected
    ✅ Files whose bytes are not an image are rejected whatever their name
    ✅ Blobs come back in request order
"""

import io

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from placehub.exceptions import ValidationError
from placehub.services.upload_service import ALLOWED_CONTENT_TYPES, UploadService


def _upload(content: bytes, filename: str = "photo.jpg", content_type: str = "image/jpeg"):
    return UploadFile(
        file=io.BytesIO(content),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


class TestCount:
    """Tests for the image count rule."""

    def setup_method(self):
        self.service = UploadService(max_images=3, max_file_size=1024)

    def test_create_requires_an_image(self):
        with pytest.raises(ValidationError, match="At least one image"):
            self.service.validate_count(0, required=True)

    def test_update_accepts_no_images(self):
        self.service.validate_count(0, required=False)

    def test_max_images_accepted(self):
        self.service.validate_count(3, required=True)

    def test_too_many_images_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            self.service.validate_count(4, required=False)

        assert exc_info.value.field == "images"
        assert exc_info.value.context["received"] == 4


class TestFileRules:
    """Tests for per-file type and size checks."""

    def setup_method(self):
        self.service = UploadService(max_images=3, max_file_size=1024)

    @pytest.mark.parametrize("filename", ["a.png", "b.JPG", "c.jpeg", "d.webp"])
    def test_allowed_extensions(self, filename):
        self.service.validate_extension(filename)

    @pytest.mark.parametrize("filename", ["a.gif", "b.pdf", "c"])
    def test_rejected_extensions(self, filename):
        with pytest.raises(ValidationError, match="not supported"):
            self.service.validate_extension(filename)

    def test_missing_filename_is_skipped(self):
        self.service.validate_extension(None)

    def test_rejected_content_type(self):
        with pytest.raises(ValidationError):
            self.service.validate_content_type("application/pdf")

    def test_empty_file_rejected(self):
        with pytest.raises(ValidationError, match="empty"):
            self.service.validate_size(0)

    def test_oversized_file_rejected(self):
        with pytest.raises(ValidationError, match="exceeds maximum"):
            self.service.validate_size(1025)

    def test_file_at_limit_accepted(self):
        self.service.validate_size(1024)


class TestReadImages:
    """Tests for UploadService.read_images."""

    def setup_method(self):
        self.service = UploadService(max_images=3, max_file_size=1024)

    @pytest.mark.asyncio
    async def test_reads_in_request_order(self, png):
        files = [
            _upload(png("first"), "1.png", "image/png"),
            _upload(png("second"), "2.png", "image/png"),
            _upload(png("third"), "3.png", "image/png"),
        ]

        blobs = await self.service.read_images(files, required=True)

        assert blobs == [png("first"), png("second"), png("third")]

    @pytest.mark.asyncio
    async def test_none_on_update_returns_empty_list(self):
        assert await self.service.read_images(None, required=False) == []

    @pytest.mark.asyncio
    async def test_none_on_create_rejected(self):
        with pytest.raises(ValidationError):
            await self.service.read_images(None, required=True)

    @pytest.mark.asyncio
    async def test_too_many_rejected(self):
        files = [_upload(b"x", f"{i}.jpg") for i in range(4)]

        with pytest.raises(ValidationError):
            await self.service.read_images(files, required=True)

    @pytest.mark.asyncio
    async def test_one_bad_file_rejects_request(self, png):
        files = [_upload(png("ok"), "1.png", "image/png"), _upload(b"", "2.jpg")]

        with pytest.raises(ValidationError, match="empty"):
            await self.service.read_images(files, required=True)

    @pytest.mark.asyncio
    async def test_renamed_script_rejected(self):
        """Extension and declared type say PNG; the bytes say otherwise."""
        files = [_upload(b"#!/bin/sh\necho not an image\n", "photo.png", "image/png")]

        with pytest.raises(ValidationError) as exc_info:
            await self.service.read_images(files, required=False)

        assert exc_info.value.context["detected_mime"] not in ALLOWED_CONTENT_TYPES


class TestImageBytes:
    """Tests for content sniffing with libmagic."""

    def setup_method(self):
        self.service = UploadService(max_images=3, max_file_size=1024)

    def test_png_detected(self, png):
        assert self.service.validate_image_bytes(png("x"), "x.png") == "image/png"

    def test_jpeg_detected(self):
        jpeg = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00\xff\xd9"

        assert self.service.validate_image_bytes(jpeg, "x.jpg") == "image/jpeg"

    def test_pdf_rejected(self):
        with pytest.raises(ValidationError, match="not a PNG, JPEG or WebP image"):
            self.service.validate_image_bytes(b"%PDF-1.4\n%\xe2\xe3\xcf\xd3\n", "menu.jpg")
