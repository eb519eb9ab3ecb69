"""
Provider adapter interface.

Every LLM vendor sits behind the same capability contract:
configure a credential, report availability, analyze a receipt
image, and answer a free-form chat prompt.

BOUNDARIES:
- An adapter holds at most one credential at a time
- An adapter NEVER retries; failover is the orchestrator's job
- Vendor/SDK failures surface as ProviderError subclasses
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar, Union

import structlog

from src.models.transaction import ProviderName, TransactionAnalysis
from src.providers.errors import ProviderUnavailableError
from src.providers.normalizer import normalize_analysis
from src.providers.parsing import (
    is_usable_api_key,
    parse_data_uri,
    parse_structured_output,
)
from src.providers.prompts import IMAGE_ANALYSIS_PROMPT, build_chat_prompt

logger = structlog.get_logger(__name__)

H = TypeVar("H")


@dataclass(frozen=True)
class ClientInitialized(Generic[H]):
    """A vendor client handle that was constructed successfully."""
    handle: H


@dataclass(frozen=True)
class ClientFailed:
    """Client construction failed; the adapter reports unavailable."""
    reason: str


@dataclass(frozen=True)
class ClientNotConfigured:
    """No credential has been set yet."""


ClientState = Union[ClientInitialized[Any], ClientFailed, ClientNotConfigured]


class ProviderAdapter(ABC):
    """
    Abstract base for one LLM vendor.

    Subclasses implement the two vendor calls; the receipt-analysis
    algorithm (availability check, data-URI split, prompt, JSON
    extraction, normalization) is shared.
    """

    name: ProviderName

    def __init__(self, api_key: Optional[str] = None):
        self._api_key: Optional[str] = None
        if api_key:
            self.set_api_key(api_key)

    # ── Credential ───────────────────────────────────────────────────

    def set_api_key(self, api_key: str) -> None:
        """Replace the stored credential. Never raises."""
        self._api_key = api_key
        self._on_api_key_changed()

    def _on_api_key_changed(self) -> None:
        """Hook for adapters that hold a constructed client."""

    def is_available(self) -> bool:
        return is_usable_api_key(self._api_key)

    def _require_available(self) -> None:
        if not self.is_available():
            raise ProviderUnavailableError(self.name.value)

    # ── Capabilities ─────────────────────────────────────────────────

    async def analyze_transaction(self, image_data_uri: str) -> TransactionAnalysis:
        """
        Extract a transaction from a data-URI encoded receipt image.

        Raises:
            ProviderUnavailableError: no usable credential
            InvalidImageDataError: no base64 payload in the data URI
            TransportError: the vendor call failed
            NoStructuredOutputError / MalformedOutputError: unusable response
        """
        self._require_available()
        log = logger.bind(provider=self.name.value)

        mime_type, payload = parse_data_uri(image_data_uri, provider=self.name.value)
        log.info("analysis_started", mime_type=mime_type, image_bytes=len(payload))

        text = await self._generate_with_image(IMAGE_ANALYSIS_PROMPT, mime_type, payload)
        log.debug("raw_response", text=text)

        raw = parse_structured_output(text, provider=self.name.value)
        analysis = normalize_analysis(raw)
        log.info(
            "analysis_complete",
            amount=analysis.amount,
            type=analysis.type.value if analysis.type else None,
            category=analysis.category,
            confidence=analysis.confidence,
        )
        return analysis

    async def chat(self, message: str, context: Optional[str] = None) -> str:
        """Send a free-form prompt and return the raw text reply."""
        self._require_available()
        logger.info("chat_request", provider=self.name.value, message_length=len(message))
        return await self._generate_text(build_chat_prompt(message, context))

    # ── Vendor calls ─────────────────────────────────────────────────

    @abstractmethod
    async def _generate_with_image(
        self,
        prompt: str,
        mime_type: str,
        image_base64: str,
    ) -> str:
        """Call the vendor's multimodal endpoint; return response text."""

    @abstractmethod
    async def _generate_text(self, prompt: str) -> str:
        """Call the vendor's text endpoint; return response text."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} available={self.is_available()}>"
