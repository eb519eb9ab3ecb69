"""Services package."""

from src.services.image import (
    ImageTooLargeError,
    ImageUploadError,
    UnsupportedImageTypeError,
    prepare_image_upload,
)
from src.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    CredentialStoreInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsCredentialStore,
    InMemoryAuditStorage,
    InMemoryCredentialStore,
    StorageError,
)

__all__ = [
    # Image preparation
    "ImageTooLargeError",
    "ImageUploadError",
    "UnsupportedImageTypeError",
    "prepare_image_upload",
    # Storage services
    "AuditStorageInterface",
    "ConnectionError",
    "CredentialStoreInterface",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsCredentialStore",
    "InMemoryAuditStorage",
    "InMemoryCredentialStore",
    "StorageError",
]
