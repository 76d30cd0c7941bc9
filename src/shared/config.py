"""
Application configuration using Pydantic Settings.
Loads from environment variables and .env file.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # MongoDB (profile, skills, jobs, matching history, app settings)
    mongodb_uri: str = Field(default="mongodb://localhost:27017")
    mongodb_database: str = Field(default="job_match")

    # Credential store
    credentials_path: Path = Field(
        default=Path.home() / ".config" / "job-match" / "credentials.yaml",
        description="YAML file holding provider API keys",
    )
    # Fallbacks used when the credential file has no key for a provider
    anthropic_api_key: SecretStr = Field(default=SecretStr(""))
    openrouter_api_key: SecretStr = Field(default=SecretStr(""))

    # Provider defaults
    default_provider: str = Field(default="anthropic")
    default_anthropic_model: str = Field(default="claude-sonnet-4-5-20250929")
    default_openrouter_model: str = Field(default="meta-llama/llama-3.3-70b-instruct:free")

    # Provider transport
    anthropic_timeout: float = Field(default=30.0, description="Seconds before an Anthropic call is cancelled")
    openrouter_timeout: float = Field(
        default=60.0, description="Seconds before an OpenRouter call is cancelled (free models are slower)"
    )
    openrouter_base_url: str = Field(default="https://openrouter.ai/api/v1")
    openrouter_models_url: str = Field(default="https://openrouter.ai/api/v1/models")
    openrouter_referer: str = Field(default="https://github.com/JobMatchChecker")
    openrouter_app_title: str = Field(default="Job Match Checker")
    model_cache_ttl_seconds: float = Field(default=3600.0)

    # Matching policy
    match_max_tokens: int = Field(default=2000)
    match_temperature: Optional[float] = Field(default=None)
    match_delay_seconds: float = Field(
        default=0.5, description="Pause between provider calls in bulk/selected runs"
    )

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="text")

    def default_model_for(self, provider: str) -> str:
        """Compiled-in default model for a provider name."""
        if provider == "openrouter":
            return self.default_openrouter_model
        return self.default_anthropic_model


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
