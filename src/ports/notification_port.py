"""Notification port — abstract interface for reminding the user.

Core modules depend on this protocol, never on a specific messaging provider.
"""

from __future__ import annotations

from enum import Enum
from typing import Protocol


class NotificationPermission(Enum):
    UNSUPPORTED = "unsupported"
    DEFAULT = "default"
    DENIED = "denied"
    GRANTED = "granted"


class NotificationPort(Protocol):
    """Abstract notification interface used by core modules."""

    def permission(self) -> NotificationPermission: ...

    async def request_permission(self) -> NotificationPermission: ...

    async def revoke_permission(self) -> NotificationPermission: ...

    async def notify(self, title: str, body: str) -> None: ...
