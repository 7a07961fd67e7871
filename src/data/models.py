"""
Tooth Time — Data Models.

The plan is the single piece of state this app keeps: names, per-item
schedule parameters, completion markers and the streak counter. It is
persisted as one JSON document whose keys mirror the camelCase layout
below, so snapshots stay readable by hand.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from src.core.time_utils import is_valid_hhmm, parse_timestamp

INTERVAL_MEDICATIONS: tuple[str, ...] = ("paracetamol", "ibuprofen")

# Task name -> fixed number of daily slots
FIXED_TIME_TASKS: dict[str, int] = {"corsodyl": 2, "rinse": 3}


class CorruptPlanError(ValueError):
    """Raised when a stored snapshot can't be turned back into a Plan."""


@dataclass
class IntervalMedication:
    """A dose repeated every `every_hours` from `start` or the last dose."""

    enabled: bool
    every_hours: int
    start: str                      # HH:MM nominal first dose of the day
    last_taken: str | None = None   # ISO timestamp, None if never taken


@dataclass
class FixedTimeTask:
    """An action due at fixed times of day, ticked off per calendar date."""

    enabled: bool
    times: list[str]                                       # HH:MM, fixed length
    done: dict[str, bool] = field(default_factory=dict)    # "<date>_<HH:MM>" -> True


@dataclass
class Plan:
    """Root persisted entity. Replaced wholesale on every change."""

    friend_name: str
    character_name: str
    paracetamol: IntervalMedication
    ibuprofen: IntervalMedication
    rinse: FixedTimeTask
    corsodyl: FixedTimeTask
    streak: int = 0
    last_streak_date: str | None = None          # ISO date of the last bump
    last_notified_at_minute: str | None = None   # "<date>_<HH:MM>"
    intro_seen: bool = False
    dark_mode: bool = False


def default_plan(
    friend_name: str = "Aishuu ♥️♥️",
    character_name: str = "Toofi",
) -> Plan:
    """Build a fresh plan with the stock dental-recovery schedule."""
    return Plan(
        friend_name=friend_name,
        character_name=character_name,
        paracetamol=IntervalMedication(enabled=True, every_hours=6, start="08:00"),
        ibuprofen=IntervalMedication(enabled=True, every_hours=8, start="09:00"),
        rinse=FixedTimeTask(enabled=True, times=["10:30", "15:30", "21:30"]),
        corsodyl=FixedTimeTask(enabled=True, times=["09:30", "21:00"]),
    )


# ---------------------------------------------------------------------------
# Snapshot (de)serialization
# ---------------------------------------------------------------------------


def plan_to_dict(plan: Plan) -> dict:
    """Render a plan in its persisted camelCase shape."""
    data: dict = {
        "friendName": plan.friend_name,
        "characterName": plan.character_name,
    }
    for name in INTERVAL_MEDICATIONS:
        med: IntervalMedication = getattr(plan, name)
        data[name] = {
            "enabled": med.enabled,
            "everyHours": med.every_hours,
            "start": med.start,
            "lastTaken": med.last_taken,
        }
    for name in ("rinse", "corsodyl"):
        task: FixedTimeTask = getattr(plan, name)
        data[name] = {
            "enabled": task.enabled,
            "times": list(task.times),
            "done": dict(task.done),
        }
    data.update(
        streak=plan.streak,
        lastStreakDate=plan.last_streak_date,
        lastNotifiedAtMinute=plan.last_notified_at_minute,
        introSeen=plan.intro_seen,
        darkMode=plan.dark_mode,
    )
    return data


def plan_from_dict(data: dict, defaults: Plan | None = None) -> Plan:
    """Rebuild a plan from its persisted shape.

    Keys missing from older snapshots fall back to `defaults`. Values of the
    wrong type, or slot lists that break the fixed-length/HH:MM invariant,
    raise CorruptPlanError.
    """
    if not isinstance(data, dict):
        raise CorruptPlanError(f"Snapshot is not an object: {type(data).__name__}")
    base = plan_to_dict(defaults or default_plan())
    merged = {**base, **data}

    try:
        meds = {
            name: _medication_from_dict(name, {**base[name], **merged[name]})
            for name in INTERVAL_MEDICATIONS
        }
        tasks = {
            name: _task_from_dict(name, {**base[name], **merged[name]})
            for name in FIXED_TIME_TASKS
        }
    except (TypeError, KeyError) as exc:
        raise CorruptPlanError(f"Malformed schedule entry: {exc}") from exc

    return Plan(
        friend_name=_expect(merged["friendName"], str, "friendName"),
        character_name=_expect(merged["characterName"], str, "characterName"),
        paracetamol=meds["paracetamol"],
        ibuprofen=meds["ibuprofen"],
        rinse=tasks["rinse"],
        corsodyl=tasks["corsodyl"],
        streak=_expect_int(merged["streak"] or 0, "streak"),
        last_streak_date=_expect_optional(merged["lastStreakDate"], "lastStreakDate"),
        last_notified_at_minute=_expect_optional(
            merged["lastNotifiedAtMinute"], "lastNotifiedAtMinute",
        ),
        intro_seen=_expect(merged["introSeen"], bool, "introSeen"),
        dark_mode=_expect(merged["darkMode"], bool, "darkMode"),
    )


def _medication_from_dict(name: str, raw: dict) -> IntervalMedication:
    start = _expect(raw["start"], str, f"{name}.start")
    if not is_valid_hhmm(start):
        raise CorruptPlanError(f"{name}.start is not HH:MM: {start!r}")
    last_taken = _expect_optional(raw["lastTaken"], f"{name}.lastTaken")
    if last_taken is not None:
        try:
            parse_timestamp(last_taken)
        except ValueError as exc:
            raise CorruptPlanError(f"{name}.lastTaken is not a timestamp: {last_taken!r}") from exc
    return IntervalMedication(
        enabled=_expect(raw["enabled"], bool, f"{name}.enabled"),
        every_hours=_expect_int(raw["everyHours"], f"{name}.everyHours"),
        start=start,
        last_taken=last_taken,
    )


def _task_from_dict(name: str, raw: dict) -> FixedTimeTask:
    times = _expect(raw["times"], list, f"{name}.times")
    if len(times) != FIXED_TIME_TASKS[name]:
        raise CorruptPlanError(
            f"{name}.times must have {FIXED_TIME_TASKS[name]} slots, got {len(times)}"
        )
    for slot in times:
        if not isinstance(slot, str) or not is_valid_hhmm(slot):
            raise CorruptPlanError(f"{name}.times has a bad slot: {slot!r}")
    done = raw.get("done") or {}
    if not isinstance(done, dict):
        raise CorruptPlanError(f"{name}.done is not an object")
    return FixedTimeTask(
        enabled=_expect(raw["enabled"], bool, f"{name}.enabled"),
        times=list(times),
        done={str(k): bool(v) for k, v in done.items()},
    )


def _expect(value, kind: type, label: str):
    if not isinstance(value, kind):
        raise CorruptPlanError(f"{label} should be {kind.__name__}, got {value!r}")
    return value


def _expect_int(value, label: str) -> int:
    # bool is an int subclass; a flag where a number belongs is corruption
    if isinstance(value, bool) or not isinstance(value, int):
        raise CorruptPlanError(f"{label} should be int, got {value!r}")
    return value


def _expect_optional(value, label: str) -> str | None:
    if value is None:
        return None
    return _expect(value, str, label)
