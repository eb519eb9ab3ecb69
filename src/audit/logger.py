"""
Audit Logger

DESIGN DECISION: Every provider attempt, failover and settings change
is logged. This provides:
1. Traceability of which provider answered which request
2. Debugging capability when the whole chain fails
3. A per-user history of credential changes

The audit logger:
- Is async to not block main flow
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from src.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from src.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An audit storage backend (for persistence), when one is given
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_providers_initialized(
        self,
        user_id: str,
        providers: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log which adapters received keys for a user."""
        await self.log(AuditEventBuilder.providers_initialized(
            user_id=user_id,
            providers=providers,
            correlation_id=correlation_id,
        ))

    async def log_provider_attempt_failed(
        self,
        provider: str,
        operation: str,
        error: BaseException,
        correlation_id: UUID,
        user_id: Optional[str] = None,
    ) -> None:
        """Log one provider failing inside a failover chain."""
        await self.log(AuditEventBuilder.provider_attempt_failed(
            provider=provider,
            operation=operation,
            error=error,
            correlation_id=correlation_id,
            user_id=user_id,
        ))

    async def log_analysis_completed(
        self,
        provider: str,
        operation: str,
        correlation_id: UUID,
        attempts: int,
        user_id: Optional[str] = None,
    ) -> None:
        await self.log(AuditEventBuilder.analysis_completed(
            provider=provider,
            operation=operation,
            correlation_id=correlation_id,
            attempts=attempts,
            user_id=user_id,
        ))

    async def log_no_providers_configured(
        self,
        operation: str,
        correlation_id: UUID,
        user_id: Optional[str] = None,
    ) -> None:
        await self.log(AuditEventBuilder.no_providers_configured(
            operation=operation,
            correlation_id=correlation_id,
            user_id=user_id,
        ))

    async def log_all_providers_failed(
        self,
        operation: str,
        attempted: list[str],
        last_error: BaseException,
        correlation_id: UUID,
        user_id: Optional[str] = None,
    ) -> None:
        """Log exhaustion of the failover chain."""
        await self.log(AuditEventBuilder.all_providers_failed(
            operation=operation,
            attempted=attempted,
            last_error=last_error,
            correlation_id=correlation_id,
            user_id=user_id,
        ))

    async def log_provider_configured(
        self,
        user_id: Optional[str],
        provider: str,
        priority: int,
    ) -> None:
        await self.log(AuditEventBuilder.provider_configured(
            user_id=user_id,
            provider=provider,
            priority=priority,
        ))

    async def log_settings_saved(
        self,
        user_id: str,
        provider: str,
        is_active: bool,
        priority: int,
    ) -> None:
        """Log a provider settings save. Never carries the key itself."""
        await self.log(AuditEventBuilder.settings_saved(
            user_id=user_id,
            provider=provider,
            is_active=is_active,
            priority=priority,
        ))

    async def log_settings_deleted(self, config_id: str) -> None:
        await self.log(AuditEventBuilder.settings_deleted(config_id=config_id))

    async def log_settings_load_failed(
        self,
        user_id: Optional[str],
        error: BaseException,
    ) -> None:
        await self.log(AuditEventBuilder.settings_load_failed(
            user_id=user_id,
            error=error,
        ))

    async def log_draft_confirmed(
        self,
        draft_id: UUID,
        amount: float,
        category: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log user confirmation."""
        await self.log(AuditEventBuilder.draft_confirmed(
            draft_id=draft_id,
            amount=amount,
            category=category,
            correlation_id=correlation_id,
        ))

    async def log_draft_rejected(
        self,
        draft_id: UUID,
        reason: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log user rejection."""
        await self.log(AuditEventBuilder.draft_rejected(
            draft_id=draft_id,
            reason=reason,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., sending a receipt).
    Pass it through all subsequent operations.
    """
    return uuid4()
