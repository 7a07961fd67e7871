"""Shared test fixtures and configuration.

Sets up fake environment variables so src.config doesn't sys.exit(),
and provides common fixtures like a temp DB and a fixed clock.
"""

import os

# Patch env vars BEFORE any src imports
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "fake-token-for-tests")
os.environ.setdefault("ALLOWED_USER_IDS", "12345")
os.environ.setdefault("DATABASE_PATH", "data/test_tooth_time.db")
os.environ.setdefault("TIMEZONE", "")

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.ports.notification_port import NotificationPermission


class FakeClock:
    """Settable clock returning aware UTC datetimes."""

    def __init__(self, moment: datetime) -> None:
        self.moment = moment

    def set(self, hhmm: str, day: str = "2026-02-07") -> None:
        self.moment = datetime.fromisoformat(f"{day}T{hhmm}:00+00:00")

    def __call__(self) -> datetime:
        return self.moment


@pytest.fixture
def tmp_db_path(tmp_path):
    """Return a temporary SQLite DB path."""
    return str(tmp_path / "test_tooth_time.db")


@pytest.fixture
def kv_db(tmp_db_path):
    """Return a KeyValueDB instance backed by a temp file."""
    from src.data.db import KeyValueDB
    return KeyValueDB(db_path=tmp_db_path)


@pytest.fixture
def plan_store(kv_db):
    """Return a PlanStore over the temp DB with stock defaults."""
    from src.data.models import default_plan
    from src.data.plan_store import PlanStore
    return PlanStore(kv_db, default_factory=default_plan)


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 2, 7, 10, 0, tzinfo=timezone.utc))


@pytest.fixture
def notifier():
    """A NotificationPort double that has been granted permission."""
    fake = MagicMock()
    fake.permission.return_value = NotificationPermission.GRANTED
    fake.request_permission = AsyncMock(return_value=NotificationPermission.GRANTED)
    fake.revoke_permission = AsyncMock(return_value=NotificationPermission.DENIED)
    fake.notify = AsyncMock()
    return fake


@pytest.fixture
def service(plan_store, notifier, clock):
    """A ReminderService on UTC wall-clock time."""
    from src.core.reminder_service import ReminderService
    return ReminderService(plan_store, notifier, tz=timezone.utc, clock=clock)
