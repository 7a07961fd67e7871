"""Telegram notification adapter — implements NotificationPort.

Wraps a telegram.Bot instance to satisfy the NotificationPort protocol.
Reminders go to a single chat; the user opts in with /notify and out with
/mute, and that choice is kept in the key-value DB across restarts.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import TYPE_CHECKING

from telegram import Bot

from src.ports.notification_port import NotificationPermission

if TYPE_CHECKING:
    from src.data.db import KeyValueDB

logger = logging.getLogger(__name__)

PERMISSION_KEY = "notification_permission"


class TelegramNotifier:
    """Telegram implementation of NotificationPort."""

    def __init__(self, bot: Bot, chat_id: int | None, db: KeyValueDB) -> None:
        self._bot = bot
        self._chat_id = chat_id
        self._db = db

    def permission(self) -> NotificationPermission:
        if self._chat_id is None:
            return NotificationPermission.UNSUPPORTED
        try:
            stored = self._db.get_json(PERMISSION_KEY)
            return NotificationPermission(stored) if stored else NotificationPermission.DEFAULT
        except (sqlite3.Error, ValueError) as exc:
            logger.warning("Stored notification permission unreadable: %s", exc)
            return NotificationPermission.DEFAULT

    async def request_permission(self) -> NotificationPermission:
        return self._set_permission(NotificationPermission.GRANTED)

    async def revoke_permission(self) -> NotificationPermission:
        return self._set_permission(NotificationPermission.DENIED)

    def _set_permission(self, state: NotificationPermission) -> NotificationPermission:
        if self._chat_id is None:
            return NotificationPermission.UNSUPPORTED
        self._db.set_json(PERMISSION_KEY, state.value)
        logger.info("Notification permission set to %s", state.value)
        return state

    async def notify(self, title: str, body: str) -> None:
        if self._chat_id is None:
            return
        await self._bot.send_message(chat_id=self._chat_id, text=f"{title}\n{body}")
