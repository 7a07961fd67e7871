"""
Tooth Time — UI-Agnostic Reminder Service.

Orchestrates the pure pieces: sample the clock, derive the schedule,
dispatch due reminders, and apply user actions as plan transitions that
are committed to the store. Each UI adapter (Telegram today) calls this
service and renders what it returns in its own way.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import TYPE_CHECKING, Callable

from src.core import actions
from src.core.dispatcher import DispatchOutcome, dispatch_due
from src.core.schedule import derive
from src.core.time_utils import time_of_day

if TYPE_CHECKING:
    from src.core.schedule import ScheduleItem
    from src.data.models import Plan
    from src.data.plan_store import PlanStore
    from src.ports.notification_port import NotificationPermission, NotificationPort

logger = logging.getLogger(__name__)


@dataclass
class Snapshot:
    """Everything a UI needs to render one frame."""

    clock: str                    # HH:MM
    today: str                    # ISO date
    plan: Plan
    schedule: list[ScheduleItem]

    @property
    def top(self) -> ScheduleItem | None:
        return self.schedule[0] if self.schedule else None


class ReminderService:
    """Single-actor facade over the plan store, clock and notifier."""

    def __init__(
        self,
        store: PlanStore,
        notifier: NotificationPort,
        tz: tzinfo | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._notifier = notifier
        self._tz = tz
        self._clock = clock or (lambda: datetime.now(self._tz).astimezone(self._tz))

    @property
    def plan(self) -> Plan:
        return self._store.plan

    def now(self) -> datetime:
        """Current moment, in the configured zone when the clock is aware."""
        moment = self._clock()
        if moment.tzinfo is not None:
            moment = moment.astimezone(self._tz)
        return moment

    def today(self) -> str:
        return self.now().date().isoformat()

    def snapshot(self) -> Snapshot:
        moment = self.now()
        clock = time_of_day(moment, self._tz)
        today = moment.date().isoformat()
        plan = self._store.plan
        return Snapshot(clock, today, plan, derive(plan, clock, today, self._tz))

    def schedule(self) -> list[ScheduleItem]:
        return self.snapshot().schedule

    async def tick(self) -> DispatchOutcome:
        """One periodic recompute: derive, dispatch, persist a new stamp."""
        snap = self.snapshot()
        outcome = await dispatch_due(
            snap.plan, snap.schedule, snap.clock, snap.today, self._notifier,
        )
        if outcome.plan is not snap.plan:
            self._store.commit(outcome.plan)
        return outcome

    def _apply(self, transition: Callable[[Plan], Plan]) -> Plan:
        new_plan = transition(self._store.plan)
        if new_plan is not self._store.plan:
            self._store.commit(new_plan)
        return new_plan

    # --- Completion ---

    def mark_taken(self, med_id: str) -> Plan:
        moment = self.now()
        return self._apply(lambda p: actions.mark_interval_taken(p, med_id, moment))

    def mark_done(self, section: str, done_key: str) -> Plan:
        today = self.today()
        return self._apply(lambda p: actions.mark_timed_done(p, section, done_key, today))

    def bump_streak(self) -> Plan:
        today = self.today()
        return self._apply(lambda p: actions.bump_streak(p, today))

    def reset_all(self) -> Plan:
        """Forget everything and start over; the intro shows again."""
        return self._store.reset()

    # --- Settings ---

    def set_friend_name(self, name: str) -> Plan:
        return self._apply(lambda p: actions.set_friend_name(p, name))

    def set_character_name(self, name: str) -> Plan:
        return self._apply(lambda p: actions.set_character_name(p, name))

    def set_every_hours(self, med_id: str, hours: int) -> Plan:
        return self._apply(lambda p: actions.set_every_hours(p, med_id, hours))

    def set_start_time(self, med_id: str, hhmm: str) -> Plan:
        return self._apply(lambda p: actions.set_start_time(p, med_id, hhmm))

    def set_slot_time(self, section: str, index: int, hhmm: str) -> Plan:
        return self._apply(lambda p: actions.set_slot_time(p, section, index, hhmm))

    def set_enabled(self, item: str, enabled: bool) -> Plan:
        return self._apply(lambda p: actions.set_enabled(p, item, enabled))

    def toggle_dark_mode(self) -> Plan:
        return self._apply(actions.toggle_dark_mode)

    def dismiss_intro(self) -> Plan:
        return self._apply(actions.dismiss_intro)

    # --- Notifications ---

    def notification_status(self) -> NotificationPermission:
        return self._notifier.permission()

    async def request_notifications(self) -> NotificationPermission:
        return await self._notifier.request_permission()

    async def mute_notifications(self) -> NotificationPermission:
        return await self._notifier.revoke_permission()
