"""
Configuration settings for the assessment toolkit.

Uses Pydantic Settings for environment variable management with .env file support.
All variables are prefixed with TOOLKIT_ (e.g. TOOLKIT_LOG_LEVEL=DEBUG).
"""
from __future__ import annotations

from functools import lru_cache
from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="TOOLKIT_",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )

    # ========================================
    # Attempt Sessions
    # ========================================
    session_storage_prefix: str = Field(
        default="pie:testAttemptSession:",
        description="Storage key prefix for attempt sessions (version segment is appended)",
    )
    anonymous_device_id_key: str = Field(
        default="pie:anonymousDeviceId:v1",
        description="Storage key holding the anonymous device id for guests",
    )

    # ========================================
    # Section Content
    # ========================================
    default_content_view: str = Field(
        default="candidate",
        description="Rubric block view rendered when none is requested",
    )

    # ========================================
    # Tools
    # ========================================
    default_tools: str = Field(
        default="",
        description="Comma-separated tools allowed by default (empty allows all placed tools)",
    )
    blocked_tools: str = Field(
        default="",
        description="Comma-separated tools blocked for every level",
    )

    def get_tools_config(self) -> dict[str, Any]:
        """Raw tools config (policy only) built from the comma-separated settings."""
        return {
            "policy": {
                "allowed": [t.strip() for t in self.default_tools.split(",") if t.strip()],
                "blocked": [t.strip() for t in self.blocked_tools.split(",") if t.strip()],
            },
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
