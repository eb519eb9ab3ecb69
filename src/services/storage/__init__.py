"""Storage backends for provider settings and the audit log."""

from src.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsCredentialStore,
)
from src.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    CredentialStoreInterface,
    StorageError,
)
from src.services.storage.memory import InMemoryAuditStorage, InMemoryCredentialStore

__all__ = [
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
