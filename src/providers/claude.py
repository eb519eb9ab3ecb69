"""
Claude provider.

Talks to the Anthropic messages API over HTTP with httpx. When a
proxy URL is configured the request goes there instead, authenticated
with the proxy's own bearer token; the user's API key still travels
in the `x-api-key` header and is what gates availability.
"""

from typing import Any, Optional

import httpx
import structlog

from src.config import ClaudeSettings, get_settings
from src.models.transaction import ProviderName
from src.providers.base import ProviderAdapter
from src.providers.errors import TransportError

logger = structlog.get_logger(__name__)


class ClaudeProvider(ProviderAdapter):
    """Adapter for Anthropic Claude models."""

    name = ProviderName.CLAUDE

    def __init__(
        self,
        api_key: Optional[str] = None,
        settings: Optional[ClaudeSettings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._settings = settings or get_settings().claude
        self._http_client = http_client
        super().__init__(api_key)

    def _headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "x-api-key": self._api_key or "",
            "anthropic-version": self._settings.anthropic_version,
        }
        if self._settings.proxy_url and self._settings.proxy_token:
            headers["Authorization"] = f"Bearer {self._settings.proxy_token}"
        return headers

    def _request_body(self, content: Any) -> dict:
        return {
            "model": self._settings.model_name,
            "max_tokens": self._settings.max_tokens,
            "messages": [
                {
                    "role": "user",
                    "content": content,
                },
            ],
        }

    async def _post(self, body: dict) -> httpx.Response:
        url = self._settings.endpoint
        if self._http_client is not None:
            return await self._http_client.post(url, json=body, headers=self._headers())
        async with httpx.AsyncClient(timeout=self._settings.request_timeout_seconds) as client:
            return await client.post(url, json=body, headers=self._headers())

    async def _send(self, content: Any) -> str:
        try:
            response = await self._post(self._request_body(content))
        except httpx.HTTPError as e:
            raise TransportError(f"Claude API request failed: {e}", self.name.value) from e

        if response.status_code >= 300:
            raise TransportError(
                f"Claude API error: {response.status_code} - {response.text}",
                self.name.value,
                status_code=response.status_code,
            )

        try:
            data = response.json()
            blocks = data["content"]
        except (ValueError, KeyError, TypeError) as e:
            raise TransportError(
                f"Claude API returned an unexpected payload: {e}", self.name.value
            ) from e

        text = "\n".join(
            block.get("text", "")
            for block in blocks
            if isinstance(block, dict) and block.get("type", "text") == "text"
        )
        logger.debug("raw_response", provider=self.name.value, text=text)
        return text

    async def _generate_with_image(
        self,
        prompt: str,
        mime_type: str,
        image_base64: str,
    ) -> str:
        return await self._send([
            {
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": mime_type,
                    "data": image_base64,
                },
            },
            {
                "type": "text",
                "text": prompt,
            },
        ])

    async def _generate_text(self, prompt: str) -> str:
        return await self._send(prompt)
