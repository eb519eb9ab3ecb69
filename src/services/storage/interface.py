"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep the AI orchestration decoupled from where credentials live
2. Use in-memory storage for testing
3. Swap Google Sheets for the hosted backend later

The interface is intentionally simple - we're not building an ORM.
Just the operations the settings page and the orchestrator need.
"""

from abc import ABC, abstractmethod

from src.models.audit import AuditEvent
from src.models.transaction import ProviderConfig


class CredentialStoreInterface(ABC):
    """
    Abstract interface for per-user provider settings.

    Implementations MUST return rows ordered by priority ascending,
    keeping their stored order for equal priorities.
    """

    @abstractmethod
    async def list_active_provider_configs(self, user_id: str) -> list[ProviderConfig]:
        """
        List the user's active provider settings.

        Returns:
            Active rows, ordered by priority ascending

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def list_provider_configs(self, user_id: str) -> list[ProviderConfig]:
        """
        List all of the user's provider settings, active or not.

        Returns:
            All rows, ordered by priority ascending
        """
        pass

    @abstractmethod
    async def upsert_provider_config(self, config: ProviderConfig) -> ProviderConfig:
        """
        Insert or replace the row for (config.user_id, config.provider).

        An existing row keeps its id and created_at.

        Returns:
            The stored row

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def delete_provider_config(self, config_id: str) -> bool:
        """
        Delete a row by id.

        Returns:
            True if a row was deleted, False if none matched
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(self, correlation_id) -> list[AuditEvent]:
        """Get all events for one logical request, in chronological order."""
        pass

    @abstractmethod
    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """Get the most recent audit events (newest first)."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
