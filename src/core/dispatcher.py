"""Due-item notification dispatcher.

On every tick, looks for the first item due right now and sends at most one
reminder per minute stamp ("<date>_<HH:MM>"), no matter how many items are
due together or how often the schedule is recomputed within that minute.

Delivery is best-effort: an unsupported, unauthorized or failing channel is
reported through DispatchResult and never raised or retried.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from src.core.actions import stamp_notified
from src.ports.notification_port import NotificationPermission

if TYPE_CHECKING:
    from src.core.schedule import ScheduleItem
    from src.data.models import Plan
    from src.ports.notification_port import NotificationPort

logger = logging.getLogger(__name__)


class DispatchResult(Enum):
    SENT = "sent"
    NOTHING_DUE = "nothing_due"
    ALREADY_NOTIFIED = "already_notified"
    UNAVAILABLE = "unavailable"
    DENIED = "denied"
    FAILED = "failed"


@dataclass
class DispatchOutcome:
    plan: Plan
    result: DispatchResult
    item: ScheduleItem | None = None


def notification_text(plan: Plan, item: ScheduleItem) -> tuple[str, str]:
    """(title, body) of the reminder for a due item."""
    return f"{plan.character_name} 🦷", f"{item.title} TIME! TAP DONE ✅"


async def dispatch_due(
    plan: Plan,
    schedule: list[ScheduleItem],
    now: str,
    today: str,
    notifier: NotificationPort,
) -> DispatchOutcome:
    """Send the reminder for this minute, if one is owed.

    The returned plan carries the new lastNotifiedAtMinute stamp whenever an
    attempt was made, whether or not the channel accepted it.
    """
    due = next((it for it in schedule if it.mins == 0), None)
    if due is None:
        return DispatchOutcome(plan, DispatchResult.NOTHING_DUE)

    stamp = f"{today}_{now}"
    if plan.last_notified_at_minute == stamp:
        return DispatchOutcome(plan, DispatchResult.ALREADY_NOTIFIED, due)

    stamped = stamp_notified(plan, stamp)

    permission = notifier.permission()
    if permission is NotificationPermission.UNSUPPORTED:
        return DispatchOutcome(stamped, DispatchResult.UNAVAILABLE, due)
    if permission is not NotificationPermission.GRANTED:
        logger.debug("Skipping reminder for %s: permission %s", due.id, permission.value)
        return DispatchOutcome(stamped, DispatchResult.DENIED, due)

    title, body = notification_text(plan, due)
    try:
        await notifier.notify(title, body)
    except Exception as exc:
        logger.warning("Reminder for %s not delivered: %s", due.id, exc)
        return DispatchOutcome(stamped, DispatchResult.FAILED, due)

    logger.info("Reminder sent for %s at %s", due.id, stamp)
    return DispatchOutcome(stamped, DispatchResult.SENT, due)
