"""
Service configuration.

Values come from the environment or a ``.env`` file next to this module.
Without ``OPENAI_API_KEY`` the extraction service runs in mock mode.
"""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven settings for the prospectus service."""

    # Completion model used for extraction
    openai_api_key: str | None = None
    openai_model: str = "gpt-4.1-mini"
    max_output_tokens: int = 1200

    # Uploaded prospectuses are kept in this database
    database_url: str = "sqlite:///./skogsanalys.db"

    # Browser origins of the frontend
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    sql_debug: bool = False
    debug: bool = False

    model_config = SettingsConfigDict(
        env_file=Path(__file__).parent / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )


@lru_cache
def get_settings() -> Settings:
    """Settings are read once per process."""
    return Settings()
