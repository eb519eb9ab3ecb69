"""
Gemini provider.

Uses the google-generativeai SDK. The SDK needs a constructed
GenerativeModel handle; building it happens every time the key
changes and a failure leaves the adapter unavailable instead of
raising into the caller.

NOTE: genai.configure() is process-global. We call it right before
each request so the model's async client is created with this
adapter's key, which keeps separate sessions from reusing each
other's credentials.
"""

import base64
import binascii
from typing import Any, Callable, Optional

import google.generativeai as genai
import structlog

from src.config import GeminiSettings, get_settings
from src.models.transaction import ProviderName
from src.providers.base import (
    ClientFailed,
    ClientInitialized,
    ClientNotConfigured,
    ClientState,
    ProviderAdapter,
)
from src.providers.errors import InvalidImageDataError, TransportError

logger = structlog.get_logger(__name__)

ModelFactory = Callable[[str, GeminiSettings], Any]
SdkConfigurer = Callable[[str], None]


def configure_sdk(api_key: str) -> None:
    genai.configure(api_key=api_key)


def build_generative_model(api_key: str, settings: GeminiSettings) -> Any:
    """Configure the SDK and construct a GenerativeModel."""
    configure_sdk(api_key)
    return genai.GenerativeModel(
        model_name=settings.model_name,
        generation_config={
            "temperature": settings.temperature,
            "top_k": settings.top_k,
            "top_p": settings.top_p,
            "max_output_tokens": settings.max_output_tokens,
        },
    )


class GeminiProvider(ProviderAdapter):
    """Adapter for Google Gemini models."""

    name = ProviderName.GEMINI

    def __init__(
        self,
        api_key: Optional[str] = None,
        settings: Optional[GeminiSettings] = None,
        model_factory: Optional[ModelFactory] = None,
        configure: Optional[SdkConfigurer] = None,
    ):
        self._settings = settings or get_settings().gemini
        self._model_factory = model_factory or build_generative_model
        self._configure = configure or configure_sdk
        self._client: ClientState = ClientNotConfigured()
        super().__init__(api_key)

    def _on_api_key_changed(self) -> None:
        self._client = self._initialize_client()

    def _initialize_client(self) -> ClientState:
        if not super().is_available():
            return ClientNotConfigured()
        try:
            model = self._model_factory(self._api_key, self._settings)
        except Exception as e:
            logger.error("client_initialization_failed", provider=self.name.value, error=str(e))
            return ClientFailed(reason=str(e))
        logger.info("client_initialized", provider=self.name.value, model=self._settings.model_name)
        return ClientInitialized(handle=model)

    @property
    def client_state(self) -> ClientState:
        return self._client

    def is_available(self) -> bool:
        return super().is_available() and isinstance(self._client, ClientInitialized)

    async def _generate(self, contents: Any) -> str:
        model = self._client.handle
        try:
            self._configure(self._api_key)
            response = await model.generate_content_async(contents)
            return response.text
        except Exception as e:
            raise TransportError(f"Gemini API error: {e}", self.name.value) from e

    async def _generate_with_image(
        self,
        prompt: str,
        mime_type: str,
        image_base64: str,
    ) -> str:
        try:
            image_bytes = base64.b64decode("".join(image_base64.split()), validate=True)
        except (binascii.Error, ValueError) as e:
            raise InvalidImageDataError(
                f"Invalid image data: payload is not base64 ({e})", self.name.value
            ) from e

        image_part = {"mime_type": mime_type, "data": image_bytes}
        return await self._generate([prompt, image_part])

    async def _generate_text(self, prompt: str) -> str:
        return await self._generate(prompt)
