"""
Tooth Time — Key-Value Database.

A single SQLite table of string keys to JSON strings.
The plan snapshot and the notification permission each live under one
well-known key; nothing else is stored.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from enum import Enum
from pathlib import Path

logger = logging.getLogger(__name__)


class WriteResult(Enum):
    OK = "ok"
    FAILED = "failed"


class KeyValueDB:
    """SQLite-backed key-value storage for JSON documents."""

    def __init__(self, db_path: str | None = None) -> None:
        if db_path is None:
            from src.config import settings
            db_path = settings.DATABASE_PATH

        self._db_path = db_path
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        """Create the kv table if it doesn't exist."""
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS kv (
                    key   TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)
        logger.debug("Key-value table initialized at %s", self._db_path)

    def get_raw(self, key: str) -> str | None:
        """Return the stored string for key, or None if absent."""
        with self._connect() as conn:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        if row is None:
            return None
        return row["value"]

    def get_json(self, key: str):
        """Return the decoded JSON document for key, or None if absent.

        Raises ValueError (json.JSONDecodeError) on a corrupt document.
        """
        raw = self.get_raw(key)
        if raw is None:
            return None
        return json.loads(raw)

    def set_json(self, key: str, value) -> WriteResult:
        """Store value as JSON under key. Never raises on storage errors."""
        try:
            payload = json.dumps(value, ensure_ascii=False)
            with self._connect() as conn:
                conn.execute(
                    "INSERT INTO kv (key, value) VALUES (?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                    (key, payload),
                )
        except (sqlite3.Error, TypeError, ValueError) as exc:
            logger.warning("Failed to write key '%s': %s", key, exc)
            return WriteResult.FAILED
        return WriteResult.OK

    def delete(self, key: str) -> WriteResult:
        """Remove key. Missing keys are not an error."""
        try:
            with self._connect() as conn:
                conn.execute("DELETE FROM kv WHERE key = ?", (key,))
        except sqlite3.Error as exc:
            logger.warning("Failed to delete key '%s': %s", key, exc)
            return WriteResult.FAILED
        return WriteResult.OK
