"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as the storage backend because:
1. The studio already keeps its books in Sheets
2. No database setup required
3. Non-technical users can inspect their provider settings directly

TRADEOFFS:
- API keys sit in a spreadsheet, so access to it must be restricted
- No transactions (upsert is find-then-write)
- Limited query capabilities (we filter in Python)

The implementation follows the abstract interface, so the orchestrator
never knows which backend it is talking to.
"""

import asyncio
import json
from datetime import datetime
from typing import Optional
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from src.config import GoogleSheetsSettings, get_settings
from src.models.audit import AuditEvent, AuditEventType, AuditSeverity
from src.models.transaction import ProviderConfig, ProviderName
from src.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    CredentialStoreInterface,
    StorageError,
)

logger = structlog.get_logger(__name__)


# Column mappings for the provider settings sheet
PROVIDER_SETTINGS_COLUMNS = [
    "id",
    "user_id",
    "provider",
    "api_key",
    "is_active",
    "priority",
    "created_at",
    "updated_at",
]

# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "user_id",
    "provider",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create_sheet(self, title: str, columns: list[str], rows: int) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_provider_settings_sheet(self) -> gspread.Worksheet:
        """Get or create the provider settings worksheet."""
        return self._get_or_create_sheet(
            self._settings.provider_settings_sheet_name,
            PROVIDER_SETTINGS_COLUMNS,
            rows=200,
        )

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        return self._get_or_create_sheet(
            self._settings.audit_sheet_name,
            AUDIT_COLUMNS,
            rows=5000,  # More rows for audit log
        )


class GoogleSheetsCredentialStore(CredentialStoreInterface):
    """
    Google Sheets implementation of the provider settings store.

    One row per (user_id, provider). Rows are read whole and filtered
    in Python; the sheet is small.
    """

    def __init__(self, client=None):
        self._client = client or GoogleSheetsClient()

    def _config_to_row(self, config: ProviderConfig) -> list:
        """Convert a ProviderConfig to a spreadsheet row."""
        return [
            config.id,
            config.user_id,
            config.provider.value,
            config.api_key,
            str(config.is_active),
            str(config.priority),
            config.created_at.isoformat(),
            config.updated_at.isoformat(),
        ]

    def _row_to_config(self, row: list) -> ProviderConfig:
        """Convert a spreadsheet row to a ProviderConfig."""
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        now = datetime.utcnow().isoformat()
        return ProviderConfig(
            id=safe_get(0),
            user_id=safe_get(1),
            provider=ProviderName(safe_get(2)),
            api_key=safe_get(3),
            is_active=safe_get(4, "True").lower() == "true",
            priority=int(safe_get(5, "1")),
            created_at=datetime.fromisoformat(safe_get(6, now)),
            updated_at=datetime.fromisoformat(safe_get(7, now)),
        )

    def _read_user_rows(self, user_id: str) -> list[ProviderConfig]:
        sheet = self._client.get_provider_settings_sheet()
        all_rows = sheet.get_all_values()[1:]  # Skip header

        configs = []
        for row in all_rows:
            if not row or len(row) < 3 or row[1] != user_id:
                continue
            try:
                configs.append(self._row_to_config(row))
            except ValueError as e:
                logger.warning("provider_settings_row_skipped", config_id=row[0], error=str(e))

        return sorted(configs, key=lambda c: c.priority)

    def _upsert_row(self, config: ProviderConfig) -> ProviderConfig:
        sheet = self._client.get_provider_settings_sheet()
        all_rows = sheet.get_all_values()

        for idx, row in enumerate(all_rows[1:], start=2):  # Start from 2 (row 1 is header)
            if (
                row
                and len(row) > 2
                and row[1] == config.user_id
                and row[2] == config.provider.value
            ):
                existing = self._row_to_config(row)
                stored = config.model_copy(update={
                    "id": existing.id,
                    "created_at": existing.created_at,
                    "updated_at": datetime.utcnow(),
                })
                for col_idx, value in enumerate(self._config_to_row(stored), start=1):
                    sheet.update_cell(idx, col_idx, value)
                return stored

        sheet.append_row(self._config_to_row(config), value_input_option="RAW")
        return config

    def _delete_row(self, config_id: str) -> bool:
        sheet = self._client.get_provider_settings_sheet()
        all_rows = sheet.get_all_values()

        for idx, row in enumerate(all_rows[1:], start=2):
            if row and row[0] == config_id:
                sheet.delete_rows(idx)
                return True

        return False

    # gspread is blocking; calls run in a worker thread so callers
    # can put a timeout on them without stalling the event loop.

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def list_active_provider_configs(self, user_id: str) -> list[ProviderConfig]:
        """List the user's active rows, lowest priority first."""
        try:
            configs = await asyncio.to_thread(self._read_user_rows, user_id)
        except Exception as e:
            raise StorageError(f"Failed to list provider settings: {e}")
        return [c for c in configs if c.is_active]

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def list_provider_configs(self, user_id: str) -> list[ProviderConfig]:
        """List all of the user's rows, lowest priority first."""
        try:
            return await asyncio.to_thread(self._read_user_rows, user_id)
        except Exception as e:
            raise StorageError(f"Failed to list provider settings: {e}")

    async def upsert_provider_config(self, config: ProviderConfig) -> ProviderConfig:
        """Insert a row, or replace the one for the same user and provider."""
        try:
            return await asyncio.to_thread(self._upsert_row, config)
        except Exception as e:
            raise StorageError(f"Failed to save provider settings: {e}")

    async def delete_provider_config(self, config_id: str) -> bool:
        """Delete a row by id."""
        try:
            return await asyncio.to_thread(self._delete_row, config_id)
        except Exception as e:
            raise StorageError(f"Failed to delete provider settings: {e}")


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client=None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        return AuditEvent(
            event_id=UUID(safe_get(0)),
            timestamp=datetime.fromisoformat(safe_get(1)),
            event_type=AuditEventType(safe_get(2)),
            severity=AuditSeverity(safe_get(3)),
            user_id=safe_get(4) or None,
            provider=safe_get(5) or None,
            correlation_id=UUID(safe_get(6)) if safe_get(6) else None,
            description=safe_get(7),
            details=json.loads(safe_get(8)) if safe_get(8) else {},
            error_message=safe_get(9) or None,
            is_user_action=safe_get(10).lower() == "true",
        )

    def _read_rows(self) -> list[list]:
        return self._client.get_audit_sheet().get_all_values()[1:]  # Skip header

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = await asyncio.to_thread(self._client.get_audit_sheet)
            await asyncio.to_thread(sheet.append_row, event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            # Don't raise - audit logging should not break the main flow
            logger.warning("audit_write_failed", event_type=event.event_type.value, error=str(e))
            return False

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get events by correlation ID."""
        try:
            all_rows = await asyncio.to_thread(self._read_rows)

            events = []
            for row in all_rows:
                if row and len(row) > 6 and row[6] == str(correlation_id):
                    try:
                        events.append(self._row_to_event(row))
                    except ValueError:
                        continue

            # Sort chronologically
            events.sort(key=lambda e: e.timestamp)
            return events
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events."""
        try:
            all_rows = await asyncio.to_thread(self._read_rows)

            events = []
            for row in reversed(all_rows):
                if not row:
                    continue
                try:
                    events.append(self._row_to_event(row))
                except ValueError:
                    continue
                if len(events) >= limit:
                    break

            return events
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
