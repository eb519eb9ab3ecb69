"""
Tests for Studio Ledger

Test strategy:
1. Unit tests for individual components (models, parsing, validators)
2. Integration tests for flows (with scripted fake providers)
3. No real API calls in tests (use fakes and httpx.MockTransport)
"""

import pytest
from datetime import date, timedelta
from uuid import uuid4

from pydantic import ValidationError

from src.models.transaction import (
    DEFAULT_CATEGORIES,
    EXPENSE_CATEGORIES,
    INCOME_CATEGORIES,
    DraftStatus,
    ProviderConfig,
    ProviderName,
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
from src.models.result import Err, Ok


class TestTransactionAnalysis:
    """Tests for the normalized analysis record."""

    def test_defaults(self):
        """Test an empty analysis falls back to the image-path defaults."""
        analysis = TransactionAnalysis()
        assert analysis.amount == 0
        assert analysis.type == TransactionType.EXPENSE
        assert analysis.description == "Transaction"
        assert analysis.confidence == 0.8

    def test_accepts_camel_case_aliases(self):
        """Test construction from the JSON keys the models emit."""
        analysis = TransactionAnalysis(
            amount=500,
            vendorName="Asian Paints",
            transactionDate="2024-12-01",
            paymentMethod="UPI",
        )
        assert analysis.vendor_name == "Asian Paints"
        assert analysis.transaction_date == "2024-12-01"
        assert analysis.payment_method == "UPI"

    def test_payload_uses_camel_case(self):
        """Test to_payload serializes with wire names."""
        payload = TransactionAnalysis(amount=10, vendor_name="Shop").to_payload()
        assert payload["vendorName"] == "Shop"
        assert payload["type"] == "expense"
        assert "vendor_name" not in payload

    def test_is_frozen(self):
        """Test an analysis cannot be mutated after construction."""
        analysis = TransactionAnalysis(amount=10)
        with pytest.raises(ValidationError):
            analysis.amount = 20

    def test_rejects_out_of_range_confidence(self):
        """Test confidence must be between 0 and 1."""
        with pytest.raises(ValidationError):
            TransactionAnalysis(confidence=1.5)


class TestTaxonomy:
    """Tests for the closed category lists."""

    def test_categories_for_type(self):
        """Test each type maps to its own list."""
        assert categories_for(TransactionType.INCOME) == INCOME_CATEGORIES
        assert categories_for(TransactionType.EXPENSE) == EXPENSE_CATEGORIES
        assert categories_for(None) == ()

    def test_defaults_are_in_taxonomy(self):
        """Test default categories are members of their lists."""
        for transaction_type, category in DEFAULT_CATEGORIES.items():
            assert category in categories_for(transaction_type)

    def test_expected_categories_exist(self):
        """Test the categories the prompts rely on are present."""
        assert "Current Account" in INCOME_CATEGORIES
        assert "Construction Material" in EXPENSE_CATEGORIES
        assert "Labour" in EXPENSE_CATEGORIES


class TestProviderConfig:
    """Tests for per-user provider settings rows."""

    def test_creation(self):
        """Test ProviderConfig defaults."""
        config = ProviderConfig(user_id="u1", provider=ProviderName.GEMINI, api_key="key")
        assert config.is_active is True
        assert config.priority == 1
        assert config.id

    def test_priority_must_be_positive(self):
        """Test priority below 1 is rejected."""
        with pytest.raises(ValidationError):
            ProviderConfig(user_id="u1", provider=ProviderName.CLAUDE, priority=0)

    def test_log_dict_masks_key(self):
        """Test the raw key never appears in the log view."""
        config = ProviderConfig(
            user_id="u1",
            provider=ProviderName.CLAUDE,
            api_key="sk-ant-secret-value-9876",
        )
        log_dict = config.to_log_dict()
        assert "sk-ant-secret-value-9876" not in str(log_dict)
        assert log_dict["api_key"].startswith("sk-a")
        assert log_dict["api_key"].endswith("9876")
        assert log_dict["provider"] == "claude"

    def test_mask_short_key(self):
        """Test short keys are returned unchanged."""
        assert mask_api_key("abc") == "abc"
        assert mask_api_key("sk-test-key-123456") == "sk-t" + "•" * 10 + "3456"


class TestTransactionDraft:
    """Tests for editable drafts."""

    def test_creation(self):
        """Test TransactionDraft defaults."""
        draft = TransactionDraft(amount=1000, type=TransactionType.EXPENSE)
        assert draft.status == DraftStatus.PENDING_REVIEW
        assert draft.transaction_date == date.today()

    def test_blank_category_becomes_none(self):
        """Test an empty category string is treated as missing."""
        draft = TransactionDraft(amount=1000, category="   ")
        assert draft.category is None

    def test_update_revalidates(self):
        """Test update returns a new validated draft."""
        draft = TransactionDraft(amount=1000, type=TransactionType.EXPENSE)
        updated = draft.update(amount=2500, category="Labour")
        assert updated.amount == 2500
        assert updated.category == "Labour"
        assert updated.draft_id == draft.draft_id
        assert draft.amount == 1000

        with pytest.raises(ValidationError):
            draft.update(amount=-5)


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.SETTINGS_SAVED,
            description="Settings saved",
        )
        assert event.event_type == AuditEventType.SETTINGS_SAVED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.ANALYSIS_COMPLETED,
            description="analyze_transaction succeeded with gemini",
            provider="gemini",
            details={"attempts": 2},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "analysis_completed"
        assert log_dict["details"]["attempts"] == 2

    def test_audit_event_to_sheets_row(self):
        """Test conversion to sheets row."""
        event = AuditEvent(
            event_type=AuditEventType.DRAFT_CONFIRMED,
            description="User confirmed transaction draft",
            is_user_action=True,
        )
        row = event.to_sheets_row()
        assert len(row) == 11  # Expected number of columns
        assert row[2] == "draft_confirmed"  # event_type
        assert row[10] == "True"  # is_user_action

    def test_builder_provider_attempt_failed(self):
        """Test AuditEventBuilder.provider_attempt_failed."""
        correlation_id = uuid4()
        event = AuditEventBuilder.provider_attempt_failed(
            provider="gemini",
            operation="analyze_transaction",
            error=RuntimeError("quota exceeded"),
            correlation_id=correlation_id,
        )
        assert event.event_type == AuditEventType.PROVIDER_ATTEMPT_FAILED
        assert event.severity == AuditSeverity.WARNING
        assert event.correlation_id == correlation_id
        assert event.error_message == "quota exceeded"
        assert event.details["error_type"] == "RuntimeError"

    def test_builder_settings_saved_has_no_key(self):
        """Test settings events carry metadata only."""
        event = AuditEventBuilder.settings_saved(
            user_id="u1", provider="claude", is_active=True, priority=2,
        )
        assert event.is_user_action is True
        assert event.details == {"is_active": True, "priority": 2}


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_validation_result_has_errors(self):
        """Test has_errors property."""
        result = ValidationResult(
            draft_id=uuid4(),
            is_valid=False,
            issues=[
                ValidationIssue(
                    field="amount",
                    issue_type="missing",
                    message="Amount is required",
                    severity="error",
                ),
            ],
        )
        assert result.has_errors is True
        assert result.error_count == 1

    def test_validation_result_warnings_only(self):
        """Test that warnings don't count as errors."""
        result = ValidationResult(
            draft_id=uuid4(),
            is_valid=True,
            issues=[
                ValidationIssue(
                    field="transaction_date",
                    issue_type="future_date",
                    message="Date in future",
                    severity="warning",
                ),
            ],
        )
        assert result.has_errors is False
        assert result.error_count == 0


class TestFormatting:
    """Tests for rupee formatting."""

    def test_indian_grouping(self):
        """Test lakh/crore digit grouping."""
        assert format_inr(100000) == "₹1,00,000"
        assert format_inr(1234567) == "₹12,34,567"
        assert format_inr(250000.0) == "₹2,50,000"

    def test_small_amounts(self):
        """Test amounts under a thousand are not grouped."""
        assert format_inr(999) == "₹999"
        assert format_inr(0) == "₹0"

    def test_negative_amount(self):
        """Test the sign goes before the symbol."""
        assert format_inr(-5000) == "-₹5,000"


class TestResult:
    """Tests for Ok/Err results."""

    def test_unwrap_or(self):
        """Test Ok yields its value and Err yields the default."""
        assert Ok([1]).unwrap_or([]) == [1]
        assert Err(RuntimeError("x")).unwrap_or([]) == []
        assert Ok(1).is_ok and not Err(RuntimeError("x")).is_ok
