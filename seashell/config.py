"""Configuration management using Pydantic Settings."""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Shell settings loaded from SEASHELL_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SEASHELL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    prompt: str = "$ "

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"
    log_format: Literal["json", "console"] = "console"

    # Completion
    max_suggestions: int = 100

    # History
    history_limit: int = 1000

    # Pipelines
    chunk_size: int = 65536


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (for testing)."""
    global _settings
    _settings = None
