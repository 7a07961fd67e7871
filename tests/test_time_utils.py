"""Tests for src.core.time_utils — minute-of-day arithmetic."""

from datetime import datetime, timedelta, timezone

import pytest

from src.core.time_utils import (
    MinuteOfDay,
    add_minutes,
    is_valid_hhmm,
    minutes_between,
    parse_timestamp,
    pretty_in,
    time_of_day,
)


class TestMinuteOfDay:
    def test_parse_and_render(self):
        assert MinuteOfDay.parse("08:05").value == 8 * 60 + 5
        assert str(MinuteOfDay.parse("08:05")) == "08:05"

    def test_midnight_and_last_minute(self):
        assert MinuteOfDay.parse("00:00").value == 0
        assert MinuteOfDay.parse("23:59").value == 1439

    @pytest.mark.parametrize("bad", ["", "0800", "24:00", "12:60", "ab:cd", "8:5", "-1:00"])
    def test_malformed_raises(self, bad):
        with pytest.raises(ValueError):
            MinuteOfDay.parse(bad)

    def test_out_of_range_value_rejected(self):
        with pytest.raises(ValueError):
            MinuteOfDay(1440)

    def test_addition_wraps_past_midnight(self):
        assert str(MinuteOfDay.parse("22:00") + 180) == "01:00"

    def test_subtraction_wraps_before_midnight(self):
        assert str(MinuteOfDay.parse("01:00") - 120) == "23:00"

    def test_until_is_forward_distance(self):
        assert MinuteOfDay.parse("23:00").until(MinuteOfDay.parse("01:00")) == 120
        assert MinuteOfDay.parse("01:00").until(MinuteOfDay.parse("23:00")) == 1320


class TestMinutesBetween:
    def test_same_time_is_zero(self):
        for t in ("00:00", "08:00", "12:34", "23:59"):
            assert minutes_between(t, t) == 0

    def test_later_same_day(self):
        assert minutes_between("10:00", "10:30") == 30

    def test_earlier_wraps_to_tomorrow(self):
        assert minutes_between("10:00", "09:59") == 1439

    def test_always_in_range(self):
        samples = ["00:00", "00:01", "06:30", "12:00", "18:45", "23:59"]
        for a in samples:
            for b in samples:
                assert 0 <= minutes_between(a, b) <= 1439


class TestAddMinutes:
    def test_forward(self):
        assert add_minutes("08:00", 360) == "14:00"

    def test_wraps_forward(self):
        assert add_minutes("21:30", 180) == "00:30"

    def test_negative_delta(self):
        assert add_minutes("00:15", -30) == "23:45"

    def test_large_negative_delta(self):
        assert add_minutes("00:00", -1440 * 3 - 1) == "23:59"

    @pytest.mark.parametrize("delta", [0, 1, 59, 1439, 1440, 5000, -1, -725, -10000])
    def test_inverse(self, delta):
        assert add_minutes(add_minutes("13:37", delta), -delta) == "13:37"


class TestPrettyIn:
    def test_now(self):
        assert pretty_in(0) == "NOW!"

    def test_minutes(self):
        assert pretty_in(1) == "1 MIN"
        assert pretty_in(59) == "59 MIN"

    def test_whole_hours(self):
        assert pretty_in(60) == "1H"
        assert pretty_in(240) == "4H"

    def test_hours_and_minutes(self):
        assert pretty_in(125) == "2H 5M"
        assert pretty_in(1439) == "23H 59M"


class TestTimestamps:
    def test_is_valid_hhmm(self):
        assert is_valid_hhmm("21:30") is True
        assert is_valid_hhmm("25:00") is False

    def test_parse_timestamp_accepts_z_suffix(self):
        ts = parse_timestamp("2026-02-07T08:00:00.000Z")
        assert ts.tzinfo is not None
        assert ts.hour == 8

    def test_parse_timestamp_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_timestamp("yesterday")

    def test_time_of_day_converts_to_target_zone(self):
        moment = datetime(2026, 2, 7, 8, 0, tzinfo=timezone.utc)
        plus_two = timezone(timedelta(hours=2))
        assert time_of_day(moment, timezone.utc) == "08:00"
        assert time_of_day(moment, plus_two) == "10:00"

    def test_time_of_day_naive_is_taken_as_is(self):
        assert time_of_day(datetime(2026, 2, 7, 6, 5)) == "06:05"
