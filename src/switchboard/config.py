"""Configuration management for Switchboard."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ApiKeyNotConfiguredError, InvalidModelFormatError, ModelNotConfiguredError

DEFAULT_MODEL = "openai:gpt-4o-mini"
DEFAULT_HOME = Path.home() / ".switchboard"
PROFILE_FILE_NAME = ".user_profile.json"
GOOGLE_TOKEN_FILE_NAME = "google_token.json"
SESSIONS_DIR_NAME = "sessions"
KEYED_PROVIDERS = ("openrouter", "openai", "anthropic", "gemini", "google", "xai", "groq", "mistral", "deepseek")

Topology = Literal["loop", "single"]


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="SWITCHBOARD_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Model
    model: str = Field(default=DEFAULT_MODEL, description="Model in provider:model format")
    api_key: str | None = Field(default=None, description="API key for the LLM provider")
    api_base: str | None = Field(default=None, description="Optional API base URL")
    max_tokens: int = Field(default=1024, description="Maximum tokens for one model response")

    # Turn execution
    turn_timeout_seconds: float = Field(default=60.0, gt=0, description="Wall-clock budget for one turn")
    topology: Topology = Field(default="loop", description="'loop' re-routes after execution, 'single' does not")
    max_route_cycles: int = Field(default=5, ge=1, description="Maximum route/execute cycles in one turn")

    # State
    home: Path | None = Field(default=None, description="Directory for sessions, profile and tokens")
    session_store: Literal["memory", "file"] = Field(default="memory", description="Session store backend")
    compact_after_exchanges: int = Field(default=5, ge=0, description="Summarize history beyond this; 0 disables")
    memory_enabled: bool = Field(default=False, description="Learn user facts after each turn")

    # Skills
    strict_operation_names: bool = Field(default=False, description="Fail on duplicate operation names")
    skills_manifest: Path | None = Field(default=None, description="YAML manifest of extra skill factories")
    disabled_skills: set[str] = Field(default_factory=set, description="Skill names to keep out of the registry")

    # Integrations
    tavily_api_key: str | None = Field(default=None, description="Web search API key")
    google_client_id: str | None = Field(default=None, description="Google OAuth client id")
    google_client_secret: str | None = Field(default=None, description="Google OAuth client secret")

    # Logging
    log_level: str = Field(default="INFO", description="Log level")

    def resolve_home(self) -> Path:
        home = self.home if self.home is not None else DEFAULT_HOME
        return home.expanduser().resolve()

    @property
    def profile_path(self) -> Path:
        return self.resolve_home() / PROFILE_FILE_NAME

    @property
    def sessions_dir(self) -> Path:
        return self.resolve_home() / SESSIONS_DIR_NAME

    @property
    def google_token_path(self) -> Path:
        return self.resolve_home() / GOOGLE_TOKEN_FILE_NAME

    @property
    def provider(self) -> str:
        provider, _, _ = self.model.partition(":")
        return provider.casefold()

    def has_google_token(self) -> bool:
        """Check the OAuth token on disk; a login can complete between two turns."""
        return self.google_token_path.is_file()

    def integration_enabled(self, name: str) -> bool:
        lowered = name.casefold()
        if lowered == "web_search":
            return bool(self.tavily_api_key)
        if lowered == "google":
            return bool(self.google_client_id and self.google_client_secret)
        if lowered == "gmail":
            return self.integration_enabled("google") and self.has_google_token()
        return False

    def validate_model(self) -> None:
        """Raise a configuration error when the model cannot be used."""
        if not self.model or not self.model.strip():
            raise ModelNotConfiguredError("Model not configured. Set SWITCHBOARD_MODEL (e.g., 'openai:gpt-4o-mini').")
        provider, separator, name = self.model.partition(":")
        if not separator or not provider.strip() or not name.strip():
            raise InvalidModelFormatError(f"Model must be in provider:model format, got {self.model!r}")
        if provider.casefold() in KEYED_PROVIDERS and not self.api_key:
            raise ApiKeyNotConfiguredError(f"API key for provider {provider!r} is missing. Set SWITCHBOARD_API_KEY.")


def get_settings(**overrides: object) -> Settings:
    """Get application settings.

    Args:
        **overrides: Field values that take precedence over env and .env

    Returns:
        Settings instance
    """
    return Settings(**overrides)  # type: ignore[arg-type]
