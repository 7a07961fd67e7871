"""
Tooth Time — Centralized configuration.

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

    # Security. The first ID also receives due-reminders
    ALLOWED_USER_IDS: list[int] = []

    # SQLite key-value snapshot
    DATABASE_PATH: str = "data/tooth_time.db"

    # Polling cadence for the schedule tick
    TICK_SECONDS: int = 15

    # Empty → host local time
    TIMEZONE: str = ""

    # Default display names for a fresh plan
    FRIEND_NAME: str = "Aishuu ♥️♥️"
    CHARACTER_NAME: str = "Toofi"

    @field_validator("ALLOWED_USER_IDS", mode="before")
    @classmethod
    def parse_user_ids(cls, v: str | list[int]) -> list[int]:
        if isinstance(v, list):
            return v
        if isinstance(v, str) and v.strip():
            return [int(uid.strip()) for uid in v.split(",") if uid.strip()]
        return []

    @field_validator("TICK_SECONDS", mode="before")
    @classmethod
    def parse_tick(cls, v: str | int) -> int:
        seconds = int(v)
        if seconds <= 0:
            raise ValueError("TICK_SECONDS must be positive")
        return seconds

    @property
    def notify_chat_id(self) -> int | None:
        """Chat that receives due-reminders, or None when nobody is allowed."""
        return self.ALLOWED_USER_IDS[0] if self.ALLOWED_USER_IDS else None


def _load_settings() -> Settings:
    """Load settings from environment, validating required keys."""
    token = os.getenv("TELEGRAM_BOT_TOKEN", "")

    if not token or token.startswith("your-"):
        print("ERROR: TELEGRAM_BOT_TOKEN is missing or not set in .env", file=sys.stderr)
        sys.exit(1)

    return Settings(
        TELEGRAM_BOT_TOKEN=token,
        ALLOWED_USER_IDS=os.getenv("ALLOWED_USER_IDS", ""),
        DATABASE_PATH=os.getenv("DATABASE_PATH", "data/tooth_time.db"),
        TICK_SECONDS=os.getenv("TICK_SECONDS", "15"),
        TIMEZONE=os.getenv("TIMEZONE", ""),
        FRIEND_NAME=os.getenv("FRIEND_NAME", "Aishuu ♥️♥️"),
        CHARACTER_NAME=os.getenv("CHARACTER_NAME", "Toofi"),
    )


# Singleton — imported by all other modules as:
#   from src.config import settings
settings = _load_settings()
