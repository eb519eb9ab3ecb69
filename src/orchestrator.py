"""
Main Orchestrator for Studio Ledger

This module ties together all the components and defines the
end-to-end flows for:
1. AI analysis with provider failover (image or text → TransactionAnalysis)
2. Chat (message → analysis → reply + editable draft → confirm/reject)
3. Provider settings (save/list/delete, reconfiguring adapters on save)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Providers are tried strictly one after another, in priority order
- A single provider is never retried within one request
- Only a terminal error (nothing configured, or every provider failed)
  ever reaches the caller
- Nothing is persisted without human confirmation
- Every attempt is audited

One AIService is built per user session. There is no module-level
instance; switching users means initializing again (or building a new
service).
"""

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, TypeVar
from uuid import UUID, uuid4

import structlog

from src.audit import AuditLogger, create_correlation_id
from src.config import AppSettings, get_settings
from src.models.result import Err, Ok, Result
from src.models.transaction import (
    DraftStatus,
    ProviderConfig,
    ProviderName,
    ProviderStatus,
    TransactionAnalysis,
    TransactionDraft,
    ValidationResult,
    format_inr,
)
from src.providers import (
    AIServiceError,
    AllProvidersFailedError,
    ClaudeProvider,
    GeminiProvider,
    NoProvidersConfiguredError,
    ProviderAdapter,
    build_text_extraction_prompt,
    normalize_text_analysis,
    parse_structured_output,
)
from src.services.storage import (
    CredentialStoreInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsCredentialStore,
    InMemoryCredentialStore,
)
from src.validation import TransactionValidator

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def default_providers() -> dict[ProviderName, ProviderAdapter]:
    """The fixed adapter registry, one unconfigured adapter per vendor."""
    return {
        ProviderName.GEMINI: GeminiProvider(),
        ProviderName.CLAUDE: ClaudeProvider(),
    }


@dataclass
class ProviderSession:
    """The user an AIService is currently serving."""
    user_id: str
    session_id: UUID = field(default_factory=uuid4)


@dataclass(frozen=True)
class RankedProvider:
    """An available adapter paired with the priority from its settings row."""
    provider: ProviderAdapter
    priority: int


class AIService:
    """
    Orchestrates AI calls across the configured providers.

    Flow for every analyze/chat call:
    1. Fresh read of the user's active provider settings
    2. Keep providers whose adapter is available, ordered by priority
    3. Try each in turn; the first success wins
    4. Raise NoProvidersConfiguredError if none were available,
       AllProvidersFailedError if every one failed
    """

    def __init__(
        self,
        credential_store: CredentialStoreInterface,
        providers: Optional[dict[ProviderName, ProviderAdapter]] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[AppSettings] = None,
    ):
        self._store = credential_store
        self._providers = providers if providers is not None else default_providers()
        self._audit_logger = audit_logger
        self._settings = settings or get_settings().app
        self._session: Optional[ProviderSession] = None

    @property
    def session(self) -> Optional[ProviderSession]:
        return self._session

    @property
    def providers(self) -> dict[ProviderName, ProviderAdapter]:
        return self._providers

    # ── Session ──────────────────────────────────────────────────────

    async def _load_active_configs(self, user_id: str) -> Result:
        try:
            return Ok(await self._store.list_active_provider_configs(user_id))
        except Exception as e:
            return Err(e)

    async def initialize(self, user_id: str) -> None:
        """
        Bind the service to a user and push their stored keys into the adapters.

        Never raises on a settings read failure: the failure is logged
        and the adapters keep whatever keys they had.
        """
        self._session = ProviderSession(user_id=user_id)
        log = logger.bind(user_id=user_id, session_id=str(self._session.session_id))

        result = await self._load_active_configs(user_id)
        if isinstance(result, Err):
            log.warning("provider_settings_load_failed", error=str(result.error))
            if self._audit_logger:
                await self._audit_logger.log_settings_load_failed(user_id, result.error)
            return

        configured = []
        for config in result.value:
            adapter = self._providers.get(config.provider)
            if adapter is None:
                continue
            adapter.set_api_key(config.api_key)
            configured.append(config.provider.value)

        log.info("providers_initialized", providers=configured)
        if self._audit_logger:
            await self._audit_logger.log_providers_initialized(
                user_id=user_id,
                providers=configured,
                correlation_id=self._session.session_id,
            )

    async def get_ranked_available_providers(self) -> list[RankedProvider]:
        """
        Available adapters for the current user, lowest priority first.

        Reads the settings again on every call so priority and activation
        edits apply without re-initializing. Equal priorities keep the
        order the store returned.
        """
        if self._session is None:
            return []

        result = await self._load_active_configs(self._session.user_id)
        if isinstance(result, Err):
            logger.warning(
                "provider_settings_load_failed",
                user_id=self._session.user_id,
                error=str(result.error),
            )
            return []

        ranked = []
        for config in result.value:
            adapter = self._providers.get(config.provider)
            if adapter is not None and adapter.is_available():
                ranked.append(RankedProvider(provider=adapter, priority=config.priority))

        ranked.sort(key=lambda entry: entry.priority)
        return ranked

    # ── Failover ─────────────────────────────────────────────────────

    async def _run_with_failover(
        self,
        operation: str,
        call: Callable[[ProviderAdapter], Awaitable[T]],
    ) -> T:
        correlation_id = create_correlation_id()
        user_id = self._session.user_id if self._session else None
        log = logger.bind(operation=operation, correlation_id=str(correlation_id))

        ranked = await self.get_ranked_available_providers()
        if not ranked:
            log.warning("no_providers_configured", user_id=user_id)
            if self._audit_logger:
                await self._audit_logger.log_no_providers_configured(
                    operation=operation,
                    correlation_id=correlation_id,
                    user_id=user_id,
                )
            raise NoProvidersConfiguredError()

        attempted: list[str] = []
        last_error: Optional[Exception] = None

        for entry in ranked:
            name = entry.provider.name.value
            attempted.append(name)
            try:
                result = await call(entry.provider)
            except Exception as e:
                last_error = e
                log.warning(
                    "provider_attempt_failed",
                    provider=name,
                    priority=entry.priority,
                    error_type=type(e).__name__,
                    error=str(e),
                )
                if self._audit_logger:
                    await self._audit_logger.log_provider_attempt_failed(
                        provider=name,
                        operation=operation,
                        error=e,
                        correlation_id=correlation_id,
                        user_id=user_id,
                    )
                continue

            log.info("provider_succeeded", provider=name, attempts=len(attempted))
            if self._audit_logger:
                await self._audit_logger.log_analysis_completed(
                    provider=name,
                    operation=operation,
                    correlation_id=correlation_id,
                    attempts=len(attempted),
                    user_id=user_id,
                )
            return result

        log.error("all_providers_failed", attempted=attempted, error=str(last_error))
        if self._audit_logger:
            await self._audit_logger.log_all_providers_failed(
                operation=operation,
                attempted=attempted,
                last_error=last_error,
                correlation_id=correlation_id,
                user_id=user_id,
            )
        raise AllProvidersFailedError(last_error, attempted) from last_error

    # ── AI operations ────────────────────────────────────────────────

    async def analyze_transaction(self, image_data_uri: str) -> TransactionAnalysis:
        """Extract a transaction from a data-URI receipt image."""
        return await self._run_with_failover(
            "analyze_transaction",
            lambda provider: provider.analyze_transaction(image_data_uri),
        )

    async def analyze_text_transaction(self, message: str) -> TransactionAnalysis:
        """
        Extract a transaction from a free-text message.

        Uses each provider's chat capability with the extraction prompt,
        then pulls the JSON object out of the reply ourselves. The type
        is left unset when the model gives no usable one.
        """
        prompt = build_text_extraction_prompt(message)

        async def extract(provider: ProviderAdapter) -> TransactionAnalysis:
            text = await provider.chat(prompt)
            raw = parse_structured_output(text, provider=provider.name.value)
            return normalize_text_analysis(raw, message)

        return await self._run_with_failover("analyze_text_transaction", extract)

    async def chat(self, message: str, context: Optional[str] = None) -> str:
        """Free-form chat; returns the first successful raw reply."""
        return await self._run_with_failover(
            "chat",
            lambda provider: provider.chat(message, context),
        )

    def get_provider_status(self) -> list[ProviderStatus]:
        """In-memory availability of every registered adapter."""
        return [
            ProviderStatus(provider=name, available=adapter.is_available())
            for name, adapter in self._providers.items()
        ]

    # ── Provider settings ────────────────────────────────────────────

    async def save_provider_config(self, config: ProviderConfig) -> ProviderConfig:
        """
        Store a provider settings row and apply it immediately.

        An active row's key is pushed into the matching adapter so the
        next request can use it. Storage failures propagate to the caller.
        """
        stored = await self._store.upsert_provider_config(config)
        logger.info("provider_settings_saved", **stored.to_log_dict())

        adapter = self._providers.get(stored.provider)
        if adapter is not None and stored.is_active:
            adapter.set_api_key(stored.api_key)
            if self._audit_logger:
                await self._audit_logger.log_provider_configured(
                    user_id=stored.user_id,
                    provider=stored.provider.value,
                    priority=stored.priority,
                )

        if self._audit_logger:
            await self._audit_logger.log_settings_saved(
                user_id=stored.user_id,
                provider=stored.provider.value,
                is_active=stored.is_active,
                priority=stored.priority,
            )
        return stored

    async def load_provider_configs(self, user_id: str) -> Result:
        """
        Read all of a user's provider settings within the read timeout.

        Returns Ok(list) or Err(exception); a timeout is an Err.
        """
        try:
            configs = await asyncio.wait_for(
                self._store.list_provider_configs(user_id),
                timeout=self._settings.settings_read_timeout_seconds,
            )
        except Exception as e:
            logger.warning(
                "provider_settings_load_failed",
                user_id=user_id,
                error_type=type(e).__name__,
                error=str(e),
            )
            if self._audit_logger:
                await self._audit_logger.log_settings_load_failed(user_id, e)
            return Err(e)
        return Ok(configs)

    async def list_provider_configs(self, user_id: str) -> list[ProviderConfig]:
        """All of a user's provider settings; empty if the read fails."""
        result = await self.load_provider_configs(user_id)
        return result.unwrap_or([])

    async def delete_provider_config(self, config_id: str) -> bool:
        """Delete a settings row. Storage failures propagate to the caller."""
        deleted = await self._store.delete_provider_config(config_id)
        logger.info("provider_settings_deleted", config_id=config_id, deleted=deleted)
        if deleted and self._audit_logger:
            await self._audit_logger.log_settings_deleted(config_id)
        return deleted


@dataclass
class ChatReply:
    """What the assistant says back, plus anything it extracted."""
    content: str
    analysis: Optional[TransactionAnalysis] = None
    draft: Optional[TransactionDraft] = None
    error: Optional[str] = None


class TransactionChatFlow:
    """
    Orchestrates the chat-style transaction entry flow.

    Flow:
    1. Message (optionally with a receipt image) → AI analysis
    2. Analysis → assistant reply + editable draft
    3. Review → user edits the draft (PAUSE - require confirmation)
    4. Confirm → validate and hand the confirmed draft back
       (or Reject → record it)

    Human confirmation (step 4) is MANDATORY.
    The system NEVER auto-saves.
    """

    def __init__(
        self,
        ai_service: AIService,
        validator: Optional[TransactionValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[AppSettings] = None,
    ):
        self._ai_service = ai_service
        self._validator = validator or TransactionValidator()
        self._audit_logger = audit_logger
        self._settings = settings or get_settings().app

    def format_analysis_reply(self, analysis: TransactionAnalysis) -> str:
        """Build the assistant's reply for a successful analysis."""
        parts = ["I've analyzed your transaction."]

        if analysis.amount:
            parts.append(f"I found an amount of {format_inr(analysis.amount)}.")
        else:
            parts.append("I couldn't detect a specific amount.")

        if analysis.type is not None:
            parts.append(f"This appears to be an {analysis.type.value}.")
        else:
            parts.append("Could you clarify if this is income or expense?")

        if analysis.category:
            parts.append(f"I've categorized this as \"{analysis.category}\".")

        if analysis.confidence < self._settings.low_confidence_threshold:
            parts.append("Let me ask a few questions to get more details.")
        else:
            parts.append("The details look good!")

        return " ".join(parts)

    @staticmethod
    def format_error_reply(error: Exception) -> str:
        """Apology shown in the chat when analysis could not complete."""
        detail = str(error).rstrip(".") or type(error).__name__
        return (
            f"Sorry, I encountered an error analyzing your transaction: {detail}. "
            "Please check your AI provider settings in Settings, or try again."
        )

    async def process_message(
        self,
        message: str,
        image_data_uri: Optional[str] = None,
        project_id: Optional[str] = None,
    ) -> ChatReply:
        """
        Analyze a user message and reply.

        Terminal AI errors become an apology reply instead of raising.
        """
        try:
            if image_data_uri:
                analysis = await self._ai_service.analyze_transaction(image_data_uri)
            else:
                analysis = await self._ai_service.analyze_text_transaction(message)
        except AIServiceError as e:
            logger.error("chat_analysis_failed", error_type=type(e).__name__, error=str(e))
            return ChatReply(content=self.format_error_reply(e), error=str(e))

        draft = self._validator.build_draft(analysis, project_id=project_id)
        return ChatReply(
            content=self.format_analysis_reply(analysis),
            analysis=analysis,
            draft=draft,
        )

    def update_draft(self, draft: TransactionDraft, **changes) -> TransactionDraft:
        """Apply user edits to a pending draft."""
        return draft.update(**changes)

    async def confirm_draft(
        self,
        draft: TransactionDraft,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Optional[TransactionDraft], ValidationResult, str]:
        """
        Confirm a draft.

        CRITICAL: This is called ONLY after explicit user confirmation.

        Returns:
            (confirmed_draft, validation_result, message)
            confirmed_draft is None when validation found errors.
        """
        result = self._validator.validate(draft)
        if not result.is_valid:
            return None, result, self._validator.get_user_friendly_summary(result)

        confirmed = draft.update(status=DraftStatus.CONFIRMED)
        if self._audit_logger:
            await self._audit_logger.log_draft_confirmed(
                draft_id=confirmed.draft_id,
                amount=confirmed.amount,
                category=confirmed.category,
                correlation_id=correlation_id,
            )

        message = (
            f"✅ Transaction confirmed! Added {confirmed.type.value} of "
            f"{format_inr(confirmed.amount)} for {confirmed.category}."
        )
        return confirmed, result, message

    async def reject_draft(
        self,
        draft: TransactionDraft,
        reason: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> TransactionDraft:
        """
        Record that the user discarded a draft.
        """
        rejected = draft.update(status=DraftStatus.REJECTED)
        if self._audit_logger:
            await self._audit_logger.log_draft_rejected(
                draft_id=rejected.draft_id,
                reason=reason,
                correlation_id=correlation_id,
            )
        return rejected


def create_app_components(
    use_storage: bool = True,
) -> tuple[AIService, TransactionChatFlow, Optional[GoogleSheetsClient]]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to use Google Sheets for provider settings
                    and the audit log. Set to False to keep everything
                    in memory.

    Returns:
        (ai_service, chat_flow, sheets_client)
    """
    sheets_client = None
    credential_store: CredentialStoreInterface

    if use_storage:
        try:
            sheets_client = GoogleSheetsClient()
            credential_store = GoogleSheetsCredentialStore(sheets_client)
            audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("storage_not_configured", error=str(e))
            sheets_client = None
            credential_store = InMemoryCredentialStore()
            audit_logger = AuditLogger()  # Local-only logging
    else:
        credential_store = InMemoryCredentialStore()
        audit_logger = AuditLogger()  # Local-only logging

    ai_service = AIService(
        credential_store=credential_store,
        audit_logger=audit_logger,
    )
    chat_flow = TransactionChatFlow(
        ai_service=ai_service,
        audit_logger=audit_logger,
    )

    return ai_service, chat_flow, sheets_client
