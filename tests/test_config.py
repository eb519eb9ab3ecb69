"""Tests for settings and application wiring."""

import pytest

from src.config import AppSettings, ClaudeSettings, validate_all_settings
from src.models.transaction import ProviderName
from src.orchestrator import AIService, TransactionChatFlow, create_app_components
from src.providers import ClaudeProvider, GeminiProvider


@pytest.fixture
def no_sheets_env(monkeypatch):
    monkeypatch.delenv("GOOGLE_SHEETS_CREDENTIALS_PATH", raising=False)
    monkeypatch.delenv("GOOGLE_SHEETS_SPREADSHEET_ID", raising=False)


class TestSettings:
    """Tests for settings classes."""

    def test_claude_endpoint(self):
        """Test requests go to the proxy when one is configured."""
        assert ClaudeSettings().endpoint == "https://api.anthropic.com/v1/messages"
        proxied = ClaudeSettings(proxy_url="https://proxy.example.com/v1")
        assert proxied.endpoint == "https://proxy.example.com/v1"

    def test_llm_calls_have_no_timeout_by_default(self):
        """Test Claude requests are unbounded unless configured."""
        assert ClaudeSettings().request_timeout_seconds is None

    def test_app_defaults(self, app_settings):
        """Test the thresholds the flows rely on."""
        assert app_settings.settings_read_timeout_seconds == 10.0
        assert app_settings.low_confidence_threshold == 0.7
        assert app_settings.max_upload_size_bytes == 5 * 1024 * 1024
        assert "image/png" in app_settings.supported_image_types_list

    def test_env_override(self, monkeypatch):
        """Test settings read from the environment."""
        monkeypatch.setenv("MAX_UPLOAD_SIZE_MB", "2")
        assert AppSettings(_env_file=None).max_upload_size_mb == 2

    def test_validate_all_settings(self, no_sheets_env):
        """Test a missing spreadsheet configuration is reported, not raised."""
        results = validate_all_settings()
        assert results["app"] is True
        assert results["google_sheets"] is False
        assert "google_sheets_error" in results


class TestCreateAppComponents:
    """Tests for the component factory."""

    def test_without_storage(self):
        """Test in-memory wiring with both vendors registered."""
        ai_service, chat_flow, sheets_client = create_app_components(use_storage=False)

        assert isinstance(ai_service, AIService)
        assert isinstance(chat_flow, TransactionChatFlow)
        assert sheets_client is None
        assert isinstance(ai_service.providers[ProviderName.GEMINI], GeminiProvider)
        assert isinstance(ai_service.providers[ProviderName.CLAUDE], ClaudeProvider)
        assert all(not status.available for status in ai_service.get_provider_status())

    @pytest.mark.asyncio
    async def test_falls_back_when_sheets_unconfigured(self, no_sheets_env):
        """Test a missing spreadsheet configuration falls back to memory."""
        ai_service, _, sheets_client = create_app_components(use_storage=True)

        assert sheets_client is None
        await ai_service.initialize("user-1")
        assert await ai_service.list_provider_configs("user-1") == []
