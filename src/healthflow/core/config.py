"""
Configuration management for HealthFlow.

This module provides centralized configuration using Pydantic Settings
for environment-based configuration management.
"""

from typing import Optional

import os
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AzureOpenAISettings(BaseSettings):
    """Azure OpenAI configuration settings."""

    model_config = SettingsConfigDict(env_prefix="AZURE_OPENAI_")

    endpoint: str = Field(default="", description="Azure OpenAI endpoint URL")
    api_key: str = Field(default="", description="Azure OpenAI API key")
    api_version: str = Field(default="2024-12-01-preview", description="Azure OpenAI API version")
    deployment_name: str = Field(default="gpt-4o-mini", description="Azure OpenAI chat deployment name")

    @field_validator("endpoint")
    @classmethod
    def validate_endpoint(cls, v: str) -> str:
        """Validate Azure OpenAI endpoint format."""
        if v and not (v.startswith("https://") and ".openai.azure.com" in v):
            raise ValueError("Invalid Azure OpenAI endpoint format. Must be: https://xxx.openai.azure.com/")
        return v


class OpenAISettings(BaseSettings):
    """Model sampling settings shared by extraction and summary calls."""

    model_config = SettingsConfigDict(env_prefix="OPENAI_")

    max_tokens: int = Field(default=2000, description="Maximum tokens for responses")
    temperature: float = Field(default=0.2, description="Temperature for model responses")

    @field_validator("temperature")
    @classmethod
    def validate_temperature(cls, v: float) -> float:
        """Validate temperature."""
        if not 0.0 <= v <= 2.0:
            raise ValueError("Temperature must be between 0.0 and 2.0")
        return v


class RetrySettings(BaseSettings):
    """Backoff settings for calls to the AI service."""

    model_config = SettingsConfigDict(env_prefix="RETRY_")

    max_retries: int = Field(default=5, description="Maximum attempts per AI call")
    initial_delay_seconds: float = Field(
        default=2.0, description="Delay before the second attempt; doubles after each failure"
    )

    @field_validator("max_retries")
    @classmethod
    def validate_max_retries(cls, v: int) -> int:
        """Validate max retries is reasonable."""
        if not 1 <= v <= 10:
            raise ValueError("max_retries must be between 1 and 10")
        return v

    @field_validator("initial_delay_seconds")
    @classmethod
    def validate_initial_delay(cls, v: float) -> float:
        if v < 0:
            raise ValueError("initial_delay_seconds cannot be negative")
        return v


class StoreSettings(BaseSettings):
    """Record store configuration settings."""

    model_config = SettingsConfigDict(env_prefix="STORE_")

    path: str = Field(default="./storage", description="Directory holding the key-value store")
    key: str = Field(default="healthflow_v1_records", description="Key of the serialized records blob")
    dedup_window_seconds: float = Field(
        default=30.0,
        description="Commits closer than this to an existing history entry are dropped",
    )

    @field_validator("dedup_window_seconds")
    @classmethod
    def validate_dedup_window(cls, v: float) -> float:
        if v < 0:
            raise ValueError("dedup_window_seconds cannot be negative")
        return v


class EmailSettings(BaseSettings):
    """Simulated prescription email settings."""

    model_config = SettingsConfigDict(env_prefix="EMAIL_")

    sender: str = Field(default="pawaramanai@gmail.com", description="Sender address shown on receipts")
    simulated_delay_seconds: float = Field(default=2.5, description="Artificial transmission delay")


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = Field(default="INFO", description="Logging level")
    format: str = Field(default="json", description="Log format (json or text)")

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate logging level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        if v.lower() not in ("json", "text"):
            raise ValueError("Log format must be 'json' or 'text'")
        return v.lower()


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Application settings
    app_name: str = Field(default="HealthFlow", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    app_env: str = Field(default="development", description="Application environment")
    debug: bool = Field(default=False, description="Debug mode")
    port: int = Field(default=8000, description="Application port")
    host: str = Field(default="0.0.0.0", description="Application host")

    # Sub-settings
    azure_openai: AzureOpenAISettings = Field(default_factory=AzureOpenAISettings)
    openai: OpenAISettings = Field(default_factory=OpenAISettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    email: EmailSettings = Field(default_factory=EmailSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, v: str) -> str:
        """Validate application environment."""
        valid_envs = ["development", "staging", "production", "testing"]
        if v.lower() not in valid_envs:
            raise ValueError(f"App environment must be one of: {valid_envs}")
        return v.lower()

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate port number."""
        if not 1 <= v <= 65535:
            raise ValueError("Port must be between 1 and 65535")
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == "production"


# Global settings instance (loaded after attempting to read .env)
_settings: Optional[Settings] = None


def _load_env_file_if_available() -> None:
    """Best-effort load of .env by searching current and parent directories.

    Already-set environment variables are never overridden.
    """
    try:
        from dotenv import load_dotenv  # type: ignore
    except ImportError:
        return

    cwd = Path(os.getcwd()).resolve()
    for parent in [cwd, *cwd.parents]:
        candidate = parent / ".env"
        if candidate.exists():
            load_dotenv(dotenv_path=str(candidate), override=False)
            break


def get_settings() -> Settings:
    """Get application settings instance (lazy-init with .env discovery)."""
    global _settings
    if _settings is None:
        _load_env_file_if_available()
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
