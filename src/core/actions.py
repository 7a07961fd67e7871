"""Plan transitions — pure business logic.

Every user action is a function from the current plan to a new plan.
Inputs are never mutated; nested records that change are copied with
dataclasses.replace so the previous snapshot stays intact.

No I/O: persisting the result is the caller's job.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime

from src.core.time_utils import is_valid_hhmm
from src.data.models import FIXED_TIME_TASKS, INTERVAL_MEDICATIONS, Plan

logger = logging.getLogger(__name__)


def _check_medication(med_id: str) -> None:
    if med_id not in INTERVAL_MEDICATIONS:
        raise ValueError(f"Unknown medication: {med_id!r}")


def _check_task(section: str) -> None:
    if section not in FIXED_TIME_TASKS:
        raise ValueError(f"Unknown task: {section!r}")


def _check_hhmm(hhmm: str) -> None:
    if not is_valid_hhmm(hhmm):
        raise ValueError(f"Not a 24-hour HH:MM time: {hhmm!r}")


# ---------------------------------------------------------------------------
# Completion & streak
# ---------------------------------------------------------------------------


def bump_streak(plan: Plan, today: str) -> Plan:
    """Count today towards the streak, at most once per calendar day."""
    if plan.last_streak_date == today:
        return plan
    return replace(plan, streak=(plan.streak or 0) + 1, last_streak_date=today)


def mark_interval_taken(plan: Plan, med_id: str, now: datetime) -> Plan:
    """Record a dose of med_id taken at `now` and bump the streak."""
    _check_medication(med_id)
    med = replace(getattr(plan, med_id), last_taken=now.isoformat())
    logger.info("%s taken at %s", med_id, med.last_taken)
    return bump_streak(replace(plan, **{med_id: med}), now.date().isoformat())


def mark_timed_done(plan: Plan, section: str, done_key: str, today: str) -> Plan:
    """Tick off one slot of a fixed-time task and bump the streak.

    Repeating the call for an already-done slot leaves the done-map as is.
    """
    _check_task(section)
    task = getattr(plan, section)
    task = replace(task, done={**task.done, done_key: True})
    logger.info("%s slot %s done", section, done_key)
    return bump_streak(replace(plan, **{section: task}), today)


# ---------------------------------------------------------------------------
# Settings edits
# ---------------------------------------------------------------------------


def set_friend_name(plan: Plan, name: str) -> Plan:
    return replace(plan, friend_name=name)


def set_character_name(plan: Plan, name: str) -> Plan:
    return replace(plan, character_name=name)


def set_every_hours(plan: Plan, med_id: str, hours: int) -> Plan:
    """Change a medication's dosing interval. Hours must be positive."""
    _check_medication(med_id)
    if hours <= 0:
        raise ValueError(f"Interval must be a positive number of hours: {hours}")
    return replace(plan, **{med_id: replace(getattr(plan, med_id), every_hours=hours)})


def set_start_time(plan: Plan, med_id: str, hhmm: str) -> Plan:
    _check_medication(med_id)
    _check_hhmm(hhmm)
    return replace(plan, **{med_id: replace(getattr(plan, med_id), start=hhmm)})


def set_slot_time(plan: Plan, section: str, index: int, hhmm: str) -> Plan:
    """Move one slot of a fixed-time task. The slot count never changes."""
    _check_task(section)
    _check_hhmm(hhmm)
    task = getattr(plan, section)
    if not 0 <= index < len(task.times):
        raise ValueError(f"{section} has no slot #{index + 1}")
    times = list(task.times)
    times[index] = hhmm
    return replace(plan, **{section: replace(task, times=times)})


def set_enabled(plan: Plan, item: str, enabled: bool) -> Plan:
    """Switch a medication or task on or off."""
    if item not in INTERVAL_MEDICATIONS and item not in FIXED_TIME_TASKS:
        raise ValueError(f"Unknown item: {item!r}")
    return replace(plan, **{item: replace(getattr(plan, item), enabled=enabled)})


def toggle_dark_mode(plan: Plan) -> Plan:
    return replace(plan, dark_mode=not plan.dark_mode)


def dismiss_intro(plan: Plan) -> Plan:
    return replace(plan, intro_seen=True)


def stamp_notified(plan: Plan, stamp: str) -> Plan:
    return replace(plan, last_notified_at_minute=stamp)
