"""Centralised engine settings loaded from environment / .env file."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    """All runtime configuration for the arousal engine.

    Values are read from environment variables first, then from a *.env*
    file at the project root.  Every variable lives in the flat
    ``AROUSAL_`` namespace, e.g. ``AROUSAL_REASONING_ENDPOINT``.
    """

    model_config = SettingsConfigDict(
        env_prefix="AROUSAL_",
        env_file=str(_PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # ── Smoothing ─────────────────────────────────────────────
    history_window: int = Field(5, ge=1)
    smoothing_min_readings: int = Field(3, ge=1)

    # ── External reasoning ────────────────────────────────────
    reasoning_enabled: bool = False
    reasoning_endpoint: str = ""
    reasoning_api_key: str = ""
    reasoning_timeout_seconds: float = Field(10.0, gt=0)
    reasoning_cache_seconds: float = Field(2.0, ge=0)

    # ── API server ────────────────────────────────────────────
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    cors_origins: str = "*"  # comma-separated origins, or "*" for all


@lru_cache
def get_settings() -> Settings:
    """Return a cached :class:`Settings` singleton."""
    return Settings()
