"""Receipt image preparation package."""

from src.services.image.data_uri import (
    ImageTooLargeError,
    ImageUploadError,
    UnsupportedImageTypeError,
    prepare_image_upload,
)

__all__ = [
    "ImageTooLargeError",
    "ImageUploadError",
    "UnsupportedImageTypeError",
    "prepare_image_upload",
]
