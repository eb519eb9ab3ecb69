"""
Configuration Management for Studio Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Provider API keys are NOT configuration - they are per-user rows in the
credential store. What lives here is how we talk to each vendor
(model names, endpoints, token limits) and the app-wide thresholds.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GeminiSettings(BaseSettings):
    """Gemini LLM configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        extra="ignore"
    )

    model_name: str = Field(
        default="gemini-2.0-flash-exp",
        description="Gemini model to use"
    )
    max_output_tokens: int = Field(
        default=1024,
        ge=100,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Model temperature"
    )
    top_k: int = Field(default=40, ge=1)
    top_p: float = Field(default=0.95, ge=0.0, le=1.0)


class ClaudeSettings(BaseSettings):
    """
    Claude (Anthropic) configuration.

    Calls can go straight to the vendor endpoint, or through a proxy
    that authenticates with its own bearer token. The user's provider
    API key is forwarded either way.
    """

    model_config = SettingsConfigDict(
        env_prefix="CLAUDE_",
        extra="ignore"
    )

    api_url: str = Field(
        default="https://api.anthropic.com/v1/messages",
        description="Anthropic messages endpoint"
    )
    proxy_url: Optional[str] = Field(
        default=None,
        description="Optional proxy endpoint fronting the messages API"
    )
    proxy_token: Optional[str] = Field(
        default=None,
        description="Bearer token for the proxy (not the provider API key)"
    )
    model_name: str = Field(
        default="claude-3-5-sonnet-20241022",
        description="Claude model to use"
    )
    max_tokens: int = Field(
        default=1024,
        ge=100,
        le=8192,
        description="Maximum tokens in response"
    )
    anthropic_version: str = Field(default="2023-06-01")
    # None means no client-side timeout on LLM calls
    request_timeout_seconds: Optional[float] = Field(
        default=None,
        gt=0,
        description="HTTP timeout for Claude calls (unbounded when unset)"
    )

    @property
    def endpoint(self) -> str:
        """URL that requests are actually sent to."""
        return self.proxy_url or self.api_url


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )

    # Sheet names within the spreadsheet
    provider_settings_sheet_name: str = Field(
        default="ApiSettings",
        description="Name of the sheet holding per-user provider settings"
    )
    audit_sheet_name: str = Field(
        default="AuditLog",
        description="Name of the sheet for audit logs"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Settings page reads are guarded; LLM calls are not
    settings_read_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Abort listing provider settings after this many seconds"
    )

    # Receipt upload limits
    max_upload_size_mb: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Maximum upload file size in MB"
    )
    supported_image_types: str = Field(
        default="image/jpeg,image/png,image/webp,image/heic",
        description="Comma-separated list of accepted image MIME types"
    )

    # Draft review thresholds
    low_confidence_threshold: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Below this, the assistant asks follow-up questions"
    )
    max_transaction_amount: float = Field(
        default=50000000.0,
        description="Amounts above this are flagged for review"
    )
    future_date_tolerance_days: int = Field(
        default=7,
        description="How many days in the future a transaction date can be"
    )

    @property
    def supported_image_types_list(self) -> list[str]:
        """Get accepted MIME types as a list."""
        return [
            mime.strip().lower()
            for mime in self.supported_image_types.split(",")
            if mime.strip()
        ]

    @property
    def max_upload_size_bytes(self) -> int:
        """Get max upload size in bytes."""
        return self.max_upload_size_mb * 1024 * 1024


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sub-settings are loaded lazily to allow partial configuration

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def claude(self) -> ClaudeSettings:
        return ClaudeSettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus a
    `<name>_error` entry for each section that failed.
    """
    results = {}
    settings = get_settings()

    for name in ("gemini", "claude", "google_sheets", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
