"""Application-wide configuration loading and validation."""

from __future__ import annotations

from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from relay.errors import ConfigurationError


class Settings(BaseSettings):
    """Centralized environment configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    log_level: str = Field(default="INFO")

    # HTTP / WebSocket listener
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8081)

    # Speech recognition (Azure Cognitive Services)
    azure_speech_key: str | None = Field(default=None)
    azure_speech_region: str | None = Field(
        default=None,
        validation_alias=AliasChoices("azure_speech_region", "azure_region"),
    )
    speech_language: str = Field(default="en-US", description="BCP-47 recognition language.")

    # Downstream automation webhook (n8n)
    n8n_webhook_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("n8n_webhook_url", "n8n_webhook"),
        description="Endpoint receiving finalized transcripts. Unset disables forwarding.",
    )
    n8n_webhook_token: str | None = Field(default=None)
    webhook_timeout_seconds: float = Field(default=10.0, gt=0)
    transcript_debounce_seconds: float = Field(
        default=2.0,
        ge=0.0,
        description="Minimum spacing between forwarded transcripts of one call.",
    )

    # TwiML voice webhook
    greeting_text: str = Field(
        default="Hi! My name is Gio from Trend Micro Support. How can I assist you today?"
    )
    greeting_voice: str = Field(default="Polly.Matthew")
    stream_pause_seconds: int = Field(
        default=60,
        description="How long Twilio keeps the call open while the media stream runs.",
    )

    def require_speech_credentials(self) -> None:
        """Raise if the speech service cannot be reached with this configuration."""

        missing = []
        if not self.azure_speech_key:
            missing.append("AZURE_SPEECH_KEY")
        if not self.azure_speech_region:
            missing.append("AZURE_SPEECH_REGION")
        if missing:
            raise ConfigurationError(f"Missing required settings: {', '.join(missing)}")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    return Settings()
