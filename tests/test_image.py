"""Tests for receipt image preparation."""

import base64

import pytest

from src.config import AppSettings
from src.providers.parsing import parse_data_uri
from src.services.image import (
    ImageTooLargeError,
    ImageUploadError,
    UnsupportedImageTypeError,
    prepare_image_upload,
)


class TestPrepareImageUpload:
    """Tests for prepare_image_upload."""

    def test_encodes_data_uri(self, app_settings):
        """Test an accepted image becomes a data URI the adapters can split."""
        content = b"\x89PNG\r\n\x1a\nfake-image"
        uri = prepare_image_upload(content, "receipt.png", "image/png", settings=app_settings)

        mime, payload = parse_data_uri(uri)
        assert mime == "image/png"
        assert base64.b64decode(payload) == content

    def test_mime_type_is_normalized(self, app_settings):
        """Test MIME types are matched case-insensitively."""
        uri = prepare_image_upload(b"jpeg-bytes", "r.jpg", "IMAGE/JPEG", settings=app_settings)
        assert uri.startswith("data:image/jpeg;base64,")

    @pytest.mark.parametrize("mime", ["application/pdf", "text/plain", None, ""])
    def test_rejects_non_images(self, app_settings, mime):
        """Test non-image uploads are refused."""
        with pytest.raises(UnsupportedImageTypeError, match="Please upload an image file"):
            prepare_image_upload(b"data", "file.bin", mime, settings=app_settings)

    def test_rejects_unlisted_image_type(self, app_settings):
        """Test image types outside the accepted list are refused."""
        with pytest.raises(UnsupportedImageTypeError, match="Unsupported image type"):
            prepare_image_upload(b"data", "anim.gif", "image/gif", settings=app_settings)

    def test_rejects_large_files(self, app_settings):
        """Test files over the limit are refused."""
        content = b"x" * (app_settings.max_upload_size_bytes + 1)
        with pytest.raises(ImageTooLargeError, match="less than 5MB"):
            prepare_image_upload(content, "huge.jpg", "image/jpeg", settings=app_settings)

    def test_accepts_file_at_limit(self, app_settings):
        """Test a file exactly at the limit is accepted."""
        content = b"x" * app_settings.max_upload_size_bytes
        assert prepare_image_upload(content, "big.jpg", "image/jpeg", settings=app_settings)

    def test_rejects_empty_file(self, app_settings):
        """Test empty uploads are refused."""
        with pytest.raises(ImageUploadError, match="empty"):
            prepare_image_upload(b"", "empty.jpg", "image/jpeg", settings=app_settings)

    def test_custom_limit(self):
        """Test the limit follows settings."""
        settings = AppSettings(_env_file=None, max_upload_size_mb=1)
        with pytest.raises(ImageTooLargeError, match="less than 1MB"):
            prepare_image_upload(b"x" * (1024 * 1024 + 1), "r.jpg", "image/jpeg", settings=settings)
