"""
DealDesk — Centralized configuration.

Loads all settings from .env and validates required keys.
This module is the foundation for every other module in the project.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load .env from project root (two levels up from src/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # Telegram
    TELEGRAM_BOT_TOKEN: str

    # Security
    ALLOWED_USER_IDS: list[int] = []

    # Apper hosted tables; empty URL/keys leave the client uninitialized
    APPER_BASE_URL: str = ""
    APPER_PROJECT_ID: str = ""
    APPER_PUBLIC_KEY: str = ""
    APPER_TIMEOUT_SECONDS: float = 10.0

    # Quotes list paging
    QUOTE_PAGE_SIZE: int = 50

    LOG_LEVEL: str = "INFO"

    @field_validator("ALLOWED_USER_IDS", mode="before")
    @classmethod
    def parse_user_ids(cls, v: str | list[int]) -> list[int]:
        if isinstance(v, list):
            return v
        if isinstance(v, str) and v.strip():
            return [int(uid.strip()) for uid in v.split(",") if uid.strip()]
        return []

    @field_validator("APPER_BASE_URL", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return (v or "").rstrip("/")

    @property
    def apper_configured(self) -> bool:
        return bool(self.APPER_BASE_URL and self.APPER_PROJECT_ID and self.APPER_PUBLIC_KEY)


def _load_settings() -> Settings:
    """Load settings from environment, validating required keys."""
    token = os.getenv("TELEGRAM_BOT_TOKEN", "")

    if not token or token.startswith("your-"):
        print("ERROR: TELEGRAM_BOT_TOKEN is missing or not set in .env", file=sys.stderr)
        sys.exit(1)

    return Settings(
        TELEGRAM_BOT_TOKEN=token,
        ALLOWED_USER_IDS=os.getenv("ALLOWED_USER_IDS", ""),
        APPER_BASE_URL=os.getenv("APPER_BASE_URL", ""),
        APPER_PROJECT_ID=os.getenv("APPER_PROJECT_ID", ""),
        APPER_PUBLIC_KEY=os.getenv("APPER_PUBLIC_KEY", ""),
        APPER_TIMEOUT_SECONDS=os.getenv("APPER_TIMEOUT_SECONDS", "10"),
        QUOTE_PAGE_SIZE=os.getenv("QUOTE_PAGE_SIZE", "50"),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
    )


# Singleton, imported by all other modules as:
#   from src.config import settings
settings = _load_settings()
