"""
Shared fixtures.

No test talks to a real vendor or spreadsheet: providers are scripted
fakes built on the real adapter base class, storage is in memory.
"""

import json
from typing import Optional

import pytest

from src.audit import AuditLogger
from src.config import AppSettings
from src.models.transaction import ProviderConfig, ProviderName
from src.orchestrator import AIService
from src.providers import ProviderAdapter
from src.services.storage import InMemoryAuditStorage, InMemoryCredentialStore

# 1x1 transparent PNG
PNG_DATA_URI = (
    "data:image/png;base64,"
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)


class FakeProvider(ProviderAdapter):
    """
    Adapter whose vendor calls return scripted text (or raise).

    Everything above the vendor call (availability, data-URI parsing,
    JSON extraction, normalization) is the real base-class code.
    """

    def __init__(
        self,
        name: ProviderName,
        api_key: Optional[str] = None,
        reply: str = "",
        error: Optional[Exception] = None,
    ):
        self.name = name
        self.reply = reply
        self.error = error
        self.calls: list[tuple[str, str]] = []
        super().__init__(api_key)

    async def _respond(self, kind: str, prompt: str) -> str:
        self.calls.append((kind, prompt))
        if self.error is not None:
            raise self.error
        return self.reply

    async def _generate_with_image(self, prompt, mime_type, image_base64):
        return await self._respond("image", prompt)

    async def _generate_text(self, prompt):
        return await self._respond("text", prompt)


def analysis_reply(**fields) -> str:
    """A model reply with some chatter around the JSON object."""
    return f"Here is the analysis:\n```json\n{json.dumps(fields)}\n```\nLet me know!"


@pytest.fixture
def app_settings():
    return AppSettings(_env_file=None)


@pytest.fixture
def credential_store():
    return InMemoryCredentialStore()


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage)


@pytest.fixture
def gemini():
    return FakeProvider(ProviderName.GEMINI)


@pytest.fixture
def claude():
    return FakeProvider(ProviderName.CLAUDE)


@pytest.fixture
def service(credential_store, gemini, claude, audit_logger, app_settings):
    return AIService(
        credential_store=credential_store,
        providers={ProviderName.GEMINI: gemini, ProviderName.CLAUDE: claude},
        audit_logger=audit_logger,
        settings=app_settings,
    )


def provider_config(
    provider: ProviderName,
    priority: int = 1,
    api_key: str = "sk-test-key-123456",
    user_id: str = "user-1",
    is_active: bool = True,
) -> ProviderConfig:
    return ProviderConfig(
        user_id=user_id,
        provider=provider,
        api_key=api_key,
        priority=priority,
        is_active=is_active,
    )
