"""
Audit Models for Studio Ledger

Every provider attempt, failover and settings change is recorded.
This provides:
1. Traceability of which provider produced which analysis
2. Debugging information when every provider fails
3. A history of credential changes per user

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
Audit events never carry raw API keys.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Provider lifecycle
    PROVIDERS_INITIALIZED = "providers_initialized"
    PROVIDER_CONFIGURED = "provider_configured"

    # AI operations
    PROVIDER_ATTEMPT_FAILED = "provider_attempt_failed"
    ANALYSIS_COMPLETED = "analysis_completed"
    NO_PROVIDERS_CONFIGURED = "no_providers_configured"
    ALL_PROVIDERS_FAILED = "all_providers_failed"

    # Settings
    SETTINGS_SAVED = "settings_saved"
    SETTINGS_DELETED = "settings_deleted"
    SETTINGS_LOAD_FAILED = "settings_load_failed"

    # Human confirmation
    DRAFT_CONFIRMED = "draft_confirmed"
    DRAFT_REJECTED = "draft_rejected"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = Field(default=AuditSeverity.INFO)

    # Who and what this is about
    user_id: Optional[str] = None
    provider: Optional[str] = None

    # Correlation - joins all attempts of one logical request
    correlation_id: Optional[UUID] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "user_id": self.user_id,
            "provider": self.provider,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, user_id, provider,
         correlation_id, description, details_json, error_message, is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.user_id or "",
            self.provider or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.provider_attempt_failed("gemini", "analyze_transaction", err, cid)
    """

    @staticmethod
    def providers_initialized(
        user_id: str,
        providers: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROVIDERS_INITIALIZED,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Configured {len(providers)} provider(s) for user",
            details={"providers": providers},
        )

    @staticmethod
    def provider_configured(
        user_id: Optional[str],
        provider: str,
        priority: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROVIDER_CONFIGURED,
            user_id=user_id,
            provider=provider,
            description=f"{provider} provider configured (priority: {priority})",
            details={"priority": priority},
        )

    @staticmethod
    def provider_attempt_failed(
        provider: str,
        operation: str,
        error: BaseException,
        correlation_id: UUID,
        user_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROVIDER_ATTEMPT_FAILED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            provider=provider,
            correlation_id=correlation_id,
            description=f"{provider} failed during {operation}",
            details={
                "operation": operation,
                "error_type": type(error).__name__,
            },
            error_message=str(error),
        )

    @staticmethod
    def analysis_completed(
        provider: str,
        operation: str,
        correlation_id: UUID,
        attempts: int,
        user_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ANALYSIS_COMPLETED,
            user_id=user_id,
            provider=provider,
            correlation_id=correlation_id,
            description=f"{operation} succeeded with {provider}",
            details={"operation": operation, "attempts": attempts},
        )

    @staticmethod
    def no_providers_configured(
        operation: str,
        correlation_id: UUID,
        user_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.NO_PROVIDERS_CONFIGURED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"{operation} requested with no available providers",
            details={"operation": operation},
        )

    @staticmethod
    def all_providers_failed(
        operation: str,
        attempted: list[str],
        last_error: BaseException,
        correlation_id: UUID,
        user_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ALL_PROVIDERS_FAILED,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"All {len(attempted)} provider(s) failed during {operation}",
            details={"operation": operation, "attempted": attempted},
            error_message=str(last_error),
        )

    @staticmethod
    def settings_saved(
        user_id: str,
        provider: str,
        is_active: bool,
        priority: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTINGS_SAVED,
            user_id=user_id,
            provider=provider,
            description=f"Settings saved for {provider}",
            details={"is_active": is_active, "priority": priority},
            is_user_action=True,
        )

    @staticmethod
    def settings_deleted(config_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTINGS_DELETED,
            description="Provider settings deleted",
            details={"config_id": config_id},
            is_user_action=True,
        )

    @staticmethod
    def settings_load_failed(
        user_id: Optional[str],
        error: BaseException,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTINGS_LOAD_FAILED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            description="Failed to load provider settings",
            details={"error_type": type(error).__name__},
            error_message=str(error) or type(error).__name__,
        )

    @staticmethod
    def draft_confirmed(
        draft_id: UUID,
        amount: float,
        category: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DRAFT_CONFIRMED,
            correlation_id=correlation_id,
            description="User confirmed transaction draft",
            details={
                "draft_id": str(draft_id),
                "amount": amount,
                "category": category,
            },
            is_user_action=True,
        )

    @staticmethod
    def draft_rejected(
        draft_id: UUID,
        reason: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DRAFT_REJECTED,
            correlation_id=correlation_id,
            description="User rejected transaction draft",
            details={
                "draft_id": str(draft_id),
                "reason": reason or "No reason provided",
            },
            is_user_action=True,
        )
