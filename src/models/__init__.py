"""
Data Models Package

This package contains all Pydantic models used in the Studio Ledger system.
All data flowing through the AI pipeline must conform to these schemas.
"""

from src.models.transaction import (
    DEFAULT_CATEGORIES,
    DRAFT_DEFAULT_CATEGORIES,
    EXPENSE_CATEGORIES,
    INCOME_CATEGORIES,
    TRANSACTION_CATEGORIES,
    DraftStatus,
    ProviderConfig,
    ProviderName,
    ProviderStatus,
    TransactionAnalysis,
    TransactionDraft,
    TransactionType,
    ValidationIssue,
    ValidationResult,
    categories_for,
    format_inr,
    mask_api_key,
)
from src.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from src.models.result import Err, Ok, Result

__all__ = [
    # Transaction models
    "DEFAULT_CATEGORIES",
    "DRAFT_DEFAULT_CATEGORIES",
    "EXPENSE_CATEGORIES",
    "INCOME_CATEGORIES",
    "TRANSACTION_CATEGORIES",
    "DraftStatus",
    "ProviderConfig",
    "ProviderName",
    "ProviderStatus",
    "TransactionAnalysis",
    "TransactionDraft",
    "TransactionType",
    "ValidationIssue",
    "ValidationResult",
    "categories_for",
    "format_inr",
    "mask_api_key",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
    # Results
    "Err",
    "Ok",
    "Result",
]
