"""Tests for the chat-style transaction entry flow."""

from datetime import date

import pytest

from src.models.audit import AuditEventType
from src.models.transaction import (
    DraftStatus,
    ProviderName,
    TransactionAnalysis,
    TransactionDraft,
    TransactionType,
)
from src.orchestrator import TransactionChatFlow
from src.providers import AllProvidersFailedError, NoProvidersConfiguredError, TransportError
from src.validation import TransactionValidator
from tests.conftest import PNG_DATA_URI, analysis_reply, provider_config


class StubAIService:
    """Returns a fixed analysis, or raises a fixed error."""

    def __init__(self, analysis=None, error=None):
        self.analysis = analysis
        self.error = error
        self.calls = []

    async def analyze_transaction(self, image_data_uri):
        self.calls.append(("image", image_data_uri))
        if self.error is not None:
            raise self.error
        return self.analysis

    async def analyze_text_transaction(self, message):
        self.calls.append(("text", message))
        if self.error is not None:
            raise self.error
        return self.analysis


@pytest.fixture
def make_flow(app_settings, audit_logger):
    def _make(analysis=None, error=None):
        ai_service = StubAIService(analysis=analysis, error=error)
        flow = TransactionChatFlow(
            ai_service=ai_service,
            validator=TransactionValidator(app_settings),
            audit_logger=audit_logger,
            settings=app_settings,
        )
        return flow, ai_service
    return _make


class TestReplyFormatting:
    """Tests for the assistant's reply text."""

    def test_confident_expense(self, make_flow):
        """Test a confident, complete analysis."""
        flow, _ = make_flow()
        reply = flow.format_analysis_reply(TransactionAnalysis(
            amount=50000,
            type=TransactionType.EXPENSE,
            category="Construction Material",
            confidence=0.9,
        ))
        assert reply == (
            "I've analyzed your transaction. I found an amount of ₹50,000. "
            "This appears to be an expense. "
            "I've categorized this as \"Construction Material\". "
            "The details look good!"
        )

    def test_unknown_amount_and_type(self, make_flow):
        """Test the reply asks for what is missing."""
        flow, _ = make_flow()
        reply = flow.format_analysis_reply(TransactionAnalysis(amount=0, type=None, confidence=0.5))
        assert "I couldn't detect a specific amount." in reply
        assert "Could you clarify if this is income or expense?" in reply
        assert "categorized" not in reply
        assert reply.endswith("Let me ask a few questions to get more details.")

    def test_error_reply(self):
        """Test the apology carries the error text and a settings hint."""
        reply = TransactionChatFlow.format_error_reply(NoProvidersConfiguredError())
        assert reply.startswith("Sorry, I encountered an error")
        assert "No AI providers configured" in reply
        assert "Settings" in reply


class TestProcessMessage:
    """Tests for routing a message to the right analysis."""

    @pytest.mark.asyncio
    async def test_text_message(self, make_flow):
        """Test a plain message goes to text analysis and seeds a draft."""
        analysis = TransactionAnalysis(
            amount=100000,
            type=TransactionType.INCOME,
            category="Current Account",
            description="Payment received",
            confidence=0.9,
        )
        flow, ai_service = make_flow(analysis=analysis)

        reply = await flow.process_message("Received 1 lakh", project_id="proj-7")

        assert ai_service.calls == [("text", "Received 1 lakh")]
        assert reply.analysis is analysis
        assert "₹1,00,000" in reply.content
        assert reply.draft.amount == 100000
        assert reply.draft.project_id == "proj-7"
        assert reply.error is None

    @pytest.mark.asyncio
    async def test_image_message(self, make_flow):
        """Test an attached image goes to image analysis."""
        flow, ai_service = make_flow(analysis=TransactionAnalysis(amount=700))

        await flow.process_message("", image_data_uri=PNG_DATA_URI)

        assert ai_service.calls == [("image", PNG_DATA_URI)]

    @pytest.mark.asyncio
    async def test_no_draft_without_type(self, make_flow):
        """Test a typeless analysis produces no draft."""
        flow, _ = make_flow(analysis=TransactionAnalysis(amount=3000, type=None))
        reply = await flow.process_message("3000 for something")
        assert reply.draft is None

    @pytest.mark.asyncio
    async def test_terminal_error_becomes_apology(self, make_flow):
        """Test exhaustion is reported in the chat, not raised."""
        last = TransportError("Claude API error: 529 - overloaded", "claude")
        flow, _ = make_flow(error=AllProvidersFailedError(last, ["gemini", "claude"]))

        reply = await flow.process_message("Paid 500")

        assert reply.analysis is None
        assert reply.draft is None
        assert "Claude API error: 529 - overloaded" in reply.content
        assert reply.error == "Claude API error: 529 - overloaded"

    @pytest.mark.asyncio
    async def test_end_to_end_with_service(self, service, credential_store, gemini, app_settings):
        """Test the flow against a real AIService and fake provider."""
        gemini.reply = analysis_reply(amount=250000, type="expense", category="Labour", confidence=0.9)
        await credential_store.upsert_provider_config(provider_config(ProviderName.GEMINI))
        await service.initialize("user-1")
        flow = TransactionChatFlow(service, settings=app_settings, validator=TransactionValidator(app_settings))

        reply = await flow.process_message("Spent 2.5 lakh on labour")

        assert reply.draft.category == "Labour"
        assert "₹2,50,000" in reply.content


class TestDraftLifecycle:
    """Tests for editing, confirming and rejecting drafts."""

    def test_update_draft(self, make_flow):
        """Test user edits are applied to a copy."""
        flow, _ = make_flow()
        draft = TransactionDraft(amount=1000, type=TransactionType.EXPENSE, category="Labour")
        updated = flow.update_draft(draft, amount=1200)
        assert updated.amount == 1200
        assert draft.amount == 1000

    @pytest.mark.asyncio
    async def test_confirm_valid_draft(self, make_flow, audit_storage):
        """Test confirming a valid draft marks it confirmed and audits it."""
        flow, _ = make_flow()
        draft = TransactionDraft(amount=5000, type=TransactionType.EXPENSE, category="Labour", confidence=0.9)

        confirmed, result, message = await flow.confirm_draft(draft)

        assert result.is_valid is True
        assert confirmed.status == DraftStatus.CONFIRMED
        assert message == "✅ Transaction confirmed! Added expense of ₹5,000 for Labour."
        assert audit_storage.events[-1].event_type == AuditEventType.DRAFT_CONFIRMED

    @pytest.mark.asyncio
    async def test_confirm_invalid_draft(self, make_flow, audit_storage):
        """Test an invalid draft is not confirmed."""
        flow, _ = make_flow()
        draft = TransactionDraft(amount=5000, type=None)

        confirmed, result, message = await flow.confirm_draft(draft)

        assert confirmed is None
        assert result.is_valid is False
        assert "income or expense" in message
        assert audit_storage.events == []

    @pytest.mark.asyncio
    async def test_reject_draft(self, make_flow, audit_storage):
        """Test rejecting a draft is recorded with the reason."""
        flow, _ = make_flow()
        draft = TransactionDraft(amount=5000, type=TransactionType.EXPENSE, transaction_date=date(2024, 1, 5))

        rejected = await flow.reject_draft(draft, reason="Duplicate entry")

        assert rejected.status == DraftStatus.REJECTED
        event = audit_storage.events[-1]
        assert event.event_type == AuditEventType.DRAFT_REJECTED
        assert event.details["reason"] == "Duplicate entry"
