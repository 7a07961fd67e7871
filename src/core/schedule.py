"""Schedule deriver — pure business logic.

Turns the stored plan plus the current time of day into the list of
upcoming items, each with its wait in minutes, sorted soonest first.
The list is rebuilt from scratch on every tick and never persisted.

No I/O: this module only transforms data.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from src.core.time_utils import MinuteOfDay, parse_timestamp, time_of_day

if TYPE_CHECKING:
    from datetime import tzinfo

    from src.data.models import FixedTimeTask, IntervalMedication, Plan

logger = logging.getLogger(__name__)

# Upper bound on the next-slot search when lastTaken is unset
_MAX_ADVANCE_STEPS = 50

_SOON_MINUTES = 20

# Task name -> (title, subtitle while not done), in construction order
_TASK_LABELS: dict[str, tuple[str, str]] = {
    "corsodyl": ("CORSODYL", "AM/PM"),
    "rinse": ("SALT RINSE", "3X/DAY"),
}

DONE_SUBTITLE = "DONE ✅"


@dataclass
class ScheduleItem:
    """One upcoming dose or task slot."""

    id: str                       # "paracetamol" or "<task>_<HH:MM>"
    title: str
    subtitle: str
    when: str                     # HH:MM next due
    mins: int                     # 0..1439 minutes until due
    type: str                     # "pill" | "timed"
    done_key: str | None = None   # timed only: "<date>_<HH:MM>"
    section: str | None = None    # timed only: owning task name
    done: bool = False


def next_interval_dose(
    now: str,
    start: str,
    every_hours: int,
    last_taken: str | None,
    tz: tzinfo | None = None,
) -> tuple[str, int]:
    """Return (next HH:MM, minutes until it) for an interval medication.

    With a last dose on record the next dose is its time of day plus the
    interval; the calendar date of the last dose is not considered. Without
    one, slots are stepped forward from `start` until the next slot falls
    within one interval of now.
    """
    every_min = every_hours * 60
    now_m = MinuteOfDay.parse(now)

    if last_taken:
        taken_at = MinuteOfDay.parse(time_of_day(parse_timestamp(last_taken), tz))
        nxt = taken_at + every_min
        return str(nxt), now_m.until(nxt)

    candidate = MinuteOfDay.parse(start)
    steps = 0
    while now_m.until(candidate) > every_min and steps < _MAX_ADVANCE_STEPS:
        candidate = candidate + every_min
        steps += 1
    if steps == _MAX_ADVANCE_STEPS:
        logger.debug("Next-dose search hit the step cap for start=%s every=%sh", start, every_hours)
    return str(candidate), now_m.until(candidate)


def _medication_item(
    name: str, med: IntervalMedication, now: str, tz: tzinfo | None,
) -> ScheduleItem:
    when, mins = next_interval_dose(now, med.start, med.every_hours, med.last_taken, tz)
    return ScheduleItem(
        id=name,
        title=name.upper(),
        subtitle=f"EVERY {med.every_hours}H",
        when=when,
        mins=mins,
        type="pill",
    )


def _task_items(name: str, task: FixedTimeTask, now: str, today: str) -> list[ScheduleItem]:
    title, pending_subtitle = _TASK_LABELS[name]
    now_m = MinuteOfDay.parse(now)
    items = []
    for slot in task.times:
        key = f"{today}_{slot}"
        done = bool(task.done.get(key))
        items.append(ScheduleItem(
            id=f"{name}_{slot}",
            title=title,
            subtitle=DONE_SUBTITLE if done else pending_subtitle,
            when=slot,
            mins=now_m.until(MinuteOfDay.parse(slot)),
            type="timed",
            done_key=key,
            section=name,
            done=done,
        ))
    return items


def derive(plan: Plan, now: str, today: str, tz: tzinfo | None = None) -> list[ScheduleItem]:
    """Build the upcoming schedule for `now` (HH:MM) on `today` (ISO date).

    Ties in `mins` keep construction order: paracetamol, ibuprofen, then
    corsodyl and rinse slots in their configured order.
    """
    items: list[ScheduleItem] = []

    for name in ("paracetamol", "ibuprofen"):
        med = getattr(plan, name)
        if med.enabled:
            items.append(_medication_item(name, med, now, tz))

    for name in _TASK_LABELS:
        task = getattr(plan, name)
        if task.enabled:
            items.extend(_task_items(name, task, now, today))

    items.sort(key=lambda it: it.mins)
    return items


def badge(mins: int) -> str:
    """Urgency label shown next to an item."""
    if mins == 0:
        return "NOW"
    if mins <= _SOON_MINUTES:
        return "SOON"
    return "OK"


def mood(schedule: list[ScheduleItem]) -> str:
    """Mascot mood for the soonest item: "ouch", "proud" or "chill"."""
    if not schedule:
        return "chill"
    top = schedule[0]
    if top.mins == 0:
        return "ouch"
    if top.mins <= _SOON_MINUTES:
        return "proud"
    return "chill"
