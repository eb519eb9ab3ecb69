"""
Error taxonomy for the AI pipeline.

Per-provider errors (ProviderError and subclasses) trigger failover to
the next provider and are never raised past the orchestration layer on
their own. Only the two terminal errors reach the caller.
"""

from typing import Optional, Sequence


class AIServiceError(Exception):
    """Base exception for the AI transaction pipeline."""
    pass


class ProviderError(AIServiceError):
    """A single provider could not complete a request."""

    def __init__(self, message: str, provider: Optional[str] = None):
        self.provider = provider
        super().__init__(message)


class ProviderUnavailableError(ProviderError):
    """Provider has no usable credential; it is never attempted."""

    def __init__(self, provider: str):
        super().__init__(f"{provider.capitalize()} provider not available", provider)


class InvalidImageDataError(ProviderError):
    """The data URI carried no base64 payload."""
    pass


class NoStructuredOutputError(ProviderError):
    """Model response contained no JSON object."""
    pass


class MalformedOutputError(ProviderError):
    """Model response contained a JSON-looking span that did not parse."""
    pass


class TransportError(ProviderError):
    """Vendor call failed (non-2xx response, network or SDK error)."""

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        self.status_code = status_code
        super().__init__(message, provider)


class NoProvidersConfiguredError(AIServiceError):
    """Terminal: no active, available provider exists for this user."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(
            message
            or "No AI providers configured. Please add your API keys in Settings."
        )


class AllProvidersFailedError(AIServiceError):
    """
    Terminal: every ranked provider was tried and failed.

    Carries the error from the LAST attempted provider only; earlier
    failures are logged, not aggregated. The message is the last
    error's message.
    """

    def __init__(
        self,
        last_error: BaseException,
        attempted: Sequence[str] = (),
    ):
        self.last_error = last_error
        self.attempted = list(attempted)
        super().__init__(str(last_error) or type(last_error).__name__)

    @property
    def provider(self) -> Optional[str]:
        """Name of the last provider attempted."""
        return self.attempted[-1] if self.attempted else None
