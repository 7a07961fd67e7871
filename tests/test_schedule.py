"""Tests for src.core.schedule — deriving the upcoming schedule."""

from dataclasses import replace
from datetime import timezone

from src.core.schedule import (
    DONE_SUBTITLE,
    ScheduleItem,
    badge,
    derive,
    mood,
    next_interval_dose,
)
from src.data.models import FixedTimeTask, IntervalMedication, default_plan

TODAY = "2026-02-07"


def _only(plan, **changes):
    """Default plan with every item disabled except those passed in."""
    off = {
        "paracetamol": replace(plan.paracetamol, enabled=False),
        "ibuprofen": replace(plan.ibuprofen, enabled=False),
        "rinse": replace(plan.rinse, enabled=False),
        "corsodyl": replace(plan.corsodyl, enabled=False),
    }
    off.update(changes)
    return replace(plan, **off)


# ---------------------------------------------------------------------------
# Interval medications
# ---------------------------------------------------------------------------


class TestNextIntervalDose:
    def test_due_exactly_at_start(self):
        assert next_interval_dose("08:00", "08:00", 6, None) == ("08:00", 0)

    def test_advances_past_start(self):
        assert next_interval_dose("10:00", "08:00", 6, None) == ("14:00", 240)

    def test_before_start_waits_for_start(self):
        # 07:00 → 08:00 is within one 6h interval
        assert next_interval_dose("07:00", "08:00", 6, None) == ("08:00", 60)

    def test_wraps_past_midnight(self):
        assert next_interval_dose("23:00", "08:00", 6, None) == ("02:00", 180)

    def test_last_taken_uses_time_of_day_only(self):
        today = next_interval_dose("09:00", "08:00", 6, "2026-02-07T08:00:00+00:00", timezone.utc)
        yesterday = next_interval_dose("09:00", "08:00", 6, "2026-02-06T08:00:00+00:00", timezone.utc)
        assert today == ("14:00", 300)
        assert yesterday == today

    def test_last_taken_ignores_start(self):
        assert next_interval_dose("12:00", "08:00", 8, "2026-02-07T11:15:00+00:00", timezone.utc) == (
            "19:15", 435,
        )

    def test_zero_interval_terminates(self):
        when, mins = next_interval_dose("10:00", "08:00", 0, None)
        assert when == "08:00"
        assert mins == 1320


class TestDeriveMedications:
    def test_pill_item_shape(self):
        plan = default_plan()
        plan = _only(plan, paracetamol=plan.paracetamol)
        [item] = derive(plan, "10:00", TODAY)
        assert item == ScheduleItem(
            id="paracetamol",
            title="PARACETAMOL",
            subtitle="EVERY 6H",
            when="14:00",
            mins=240,
            type="pill",
        )

    def test_disabled_medication_is_skipped(self):
        plan = default_plan()
        plan = replace(plan, ibuprofen=replace(plan.ibuprofen, enabled=False))
        ids = [it.id for it in derive(plan, "10:00", TODAY)]
        assert "ibuprofen" not in ids
        assert "paracetamol" in ids


# ---------------------------------------------------------------------------
# Fixed-time tasks
# ---------------------------------------------------------------------------


class TestDeriveTasks:
    def test_pending_slot(self):
        plan = default_plan()
        plan = _only(plan, rinse=FixedTimeTask(enabled=True, times=["10:30", "15:30", "21:30"]))
        items = derive(plan, "10:00", TODAY)
        first = items[0]
        assert first.id == "rinse_10:30"
        assert first.mins == 30
        assert first.subtitle == "3X/DAY"
        assert first.done is False
        assert first.done_key == f"{TODAY}_10:30"
        assert first.section == "rinse"
        assert first.type == "timed"

    def test_done_slot_stays_with_same_mins(self):
        plan = default_plan()
        done = {f"{TODAY}_10:30": True}
        plan = _only(plan, rinse=FixedTimeTask(enabled=True, times=["10:30", "15:30", "21:30"], done=done))
        first = derive(plan, "10:00", TODAY)[0]
        assert first.mins == 30
        assert first.done is True
        assert first.subtitle == DONE_SUBTITLE

    def test_done_flag_from_other_day_is_ignored(self):
        plan = default_plan()
        done = {"2026-02-06_10:30": True}
        plan = _only(plan, rinse=FixedTimeTask(enabled=True, times=["10:30", "15:30", "21:30"], done=done))
        assert derive(plan, "10:00", TODAY)[0].done is False

    def test_due_now_has_zero_mins(self):
        plan = default_plan()
        plan = _only(plan, corsodyl=plan.corsodyl)
        assert derive(plan, "09:30", TODAY)[0].mins == 0

    def test_missed_slot_wraps_to_tomorrow(self):
        plan = default_plan()
        plan = _only(plan, corsodyl=plan.corsodyl)
        items = derive(plan, "09:31", TODAY)
        assert [it.when for it in items] == ["21:00", "09:30"]
        assert items[-1].mins == 1439

    def test_corsodyl_labels(self):
        plan = default_plan()
        plan = _only(plan, corsodyl=plan.corsodyl)
        item = derive(plan, "09:00", TODAY)[0]
        assert item.title == "CORSODYL"
        assert item.subtitle == "AM/PM"


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------


class TestDeriveOrdering:
    def test_sorted_ascending(self):
        items = derive(default_plan(), "10:00", TODAY)
        mins = [it.mins for it in items]
        assert mins == sorted(mins)
        assert len(items) == 2 + 2 + 3

    def test_ties_keep_construction_order(self):
        plan = default_plan()
        plan = replace(
            plan,
            paracetamol=IntervalMedication(enabled=True, every_hours=6, start="12:00"),
            ibuprofen=IntervalMedication(enabled=True, every_hours=8, start="12:00"),
            corsodyl=FixedTimeTask(enabled=True, times=["12:00", "21:00"]),
            rinse=FixedTimeTask(enabled=True, times=["12:00", "15:30", "21:30"]),
        )
        items = derive(plan, "12:00", TODAY)
        due_now = [it.id for it in items if it.mins == 0]
        assert due_now == ["paracetamol", "ibuprofen", "corsodyl_12:00", "rinse_12:00"]

    def test_empty_when_everything_disabled(self):
        assert derive(_only(default_plan()), "10:00", TODAY) == []


# ---------------------------------------------------------------------------
# Display helpers
# ---------------------------------------------------------------------------


class TestBadgeAndMood:
    def test_badge(self):
        assert badge(0) == "NOW"
        assert badge(20) == "SOON"
        assert badge(21) == "OK"

    def _item(self, mins):
        return ScheduleItem(id="x", title="X", subtitle="", when="00:00", mins=mins, type="pill")

    def test_mood(self):
        assert mood([]) == "chill"
        assert mood([self._item(0)]) == "ouch"
        assert mood([self._item(15)]) == "proud"
        assert mood([self._item(90)]) == "chill"
