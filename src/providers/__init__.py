"""LLM provider adapters package."""

from src.providers.base import (
    ClientFailed,
    ClientInitialized,
    ClientNotConfigured,
    ProviderAdapter,
)
from src.providers.claude import ClaudeProvider
from src.providers.errors import (
    AIServiceError,
    AllProvidersFailedError,
    InvalidImageDataError,
    MalformedOutputError,
    NoProvidersConfiguredError,
    NoStructuredOutputError,
    ProviderError,
    ProviderUnavailableError,
    TransportError,
)
from src.providers.gemini import GeminiProvider
from src.providers.normalizer import normalize_analysis, normalize_text_analysis
from src.providers.parsing import (
    extract_json_object,
    parse_amount,
    parse_data_uri,
    parse_date,
    parse_structured_output,
    parse_vernacular_amount,
)
from src.providers.prompts import build_chat_prompt, build_text_extraction_prompt

__all__ = [
    # Adapters
    "ClaudeProvider",
    "ClientFailed",
    "ClientInitialized",
    "ClientNotConfigured",
    "GeminiProvider",
    "ProviderAdapter",
    # Errors
    "AIServiceError",
    "AllProvidersFailedError",
    "InvalidImageDataError",
    "MalformedOutputError",
    "NoProvidersConfiguredError",
    "NoStructuredOutputError",
    "ProviderError",
    "ProviderUnavailableError",
    "TransportError",
    # Normalization and parsing
    "build_chat_prompt",
    "build_text_extraction_prompt",
    "extract_json_object",
    "normalize_analysis",
    "normalize_text_analysis",
    "parse_amount",
    "parse_data_uri",
    "parse_date",
    "parse_structured_output",
    "parse_vernacular_amount",
]
