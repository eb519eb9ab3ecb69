"""
Receipt image preparation.

Receipts reach the providers as data URIs. This module checks an
uploaded file before it is encoded: only image MIME types are
accepted and the file must fit within the upload limit.
"""

import base64
from typing import Optional

import structlog

from src.config import AppSettings, get_settings

logger = structlog.get_logger(__name__)


class ImageUploadError(Exception):
    """Base exception for rejected receipt uploads."""
    pass


class UnsupportedImageTypeError(ImageUploadError):
    """The file is not an accepted image type."""
    pass


class ImageTooLargeError(ImageUploadError):
    """The file exceeds the upload size limit."""
    pass


def prepare_image_upload(
    content: bytes,
    filename: str,
    mime_type: Optional[str],
    settings: Optional[AppSettings] = None,
) -> str:
    """
    Validate an uploaded receipt and encode it as a data URI.

    Args:
        content: Raw file bytes
        filename: Original filename, used for logging only
        mime_type: Content type reported by the browser

    Returns:
        "data:<mime>;base64,<payload>"

    Raises:
        UnsupportedImageTypeError: If the MIME type is not an image type
        ImageTooLargeError: If the file is larger than the upload limit
        ImageUploadError: If the file is empty
    """
    settings = settings or get_settings().app
    mime = (mime_type or "").strip().lower()

    if not mime.startswith("image/"):
        raise UnsupportedImageTypeError("Please upload an image file")

    if mime not in settings.supported_image_types_list:
        raise UnsupportedImageTypeError(
            f"Unsupported image type: {mime}. "
            f"Supported types: {', '.join(settings.supported_image_types_list)}"
        )

    if not content:
        raise ImageUploadError("The uploaded file is empty")

    if len(content) > settings.max_upload_size_bytes:
        raise ImageTooLargeError(
            f"Image size must be less than {settings.max_upload_size_mb}MB"
        )

    logger.info("image_prepared", filename=filename, mime_type=mime, size=len(content))
    return f"data:{mime};base64,{base64.b64encode(content).decode('ascii')}"
