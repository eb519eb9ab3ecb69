"""
In-memory storage.

Used by the test suite and for running without a spreadsheet. Follows
the same ordering and upsert rules as the Google Sheets backend.
"""

from datetime import datetime
from uuid import UUID

from src.models.audit import AuditEvent
from src.models.transaction import ProviderConfig
from src.services.storage.interface import (
    AuditStorageInterface,
    CredentialStoreInterface,
)


class InMemoryCredentialStore(CredentialStoreInterface):
    """Provider settings kept in a list, in insertion order."""

    def __init__(self, configs: list[ProviderConfig] | None = None):
        self._rows: list[ProviderConfig] = []
        for config in configs or []:
            self._rows.append(config.model_copy())

    def _for_user(self, user_id: str) -> list[ProviderConfig]:
        rows = [row for row in self._rows if row.user_id == user_id]
        # sorted() is stable, so equal priorities keep insertion order
        return sorted(rows, key=lambda row: row.priority)

    async def list_active_provider_configs(self, user_id: str) -> list[ProviderConfig]:
        return [row.model_copy() for row in self._for_user(user_id) if row.is_active]

    async def list_provider_configs(self, user_id: str) -> list[ProviderConfig]:
        return [row.model_copy() for row in self._for_user(user_id)]

    async def upsert_provider_config(self, config: ProviderConfig) -> ProviderConfig:
        for index, row in enumerate(self._rows):
            if row.user_id == config.user_id and row.provider == config.provider:
                stored = config.model_copy(update={
                    "id": row.id,
                    "created_at": row.created_at,
                    "updated_at": datetime.utcnow(),
                })
                self._rows[index] = stored
                return stored.model_copy()

        stored = config.model_copy()
        self._rows.append(stored)
        return stored.model_copy()

    async def delete_provider_config(self, config_id: str) -> bool:
        for index, row in enumerate(self._rows):
            if row.id == config_id:
                del self._rows[index]
                return True
        return False


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self.events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True

    async def get_events_by_correlation_id(self, correlation_id: UUID) -> list[AuditEvent]:
        events = [e for e in self.events if e.correlation_id == correlation_id]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return sorted(self.events, key=lambda e: e.timestamp, reverse=True)[:limit]
