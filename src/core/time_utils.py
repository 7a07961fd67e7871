"""Time-of-day arithmetic on a 24-hour wheel — pure business logic.

Every time in the schedule is a minute of the day (0..1439). Calendar
dates never enter this module; they live in the done-keys and stamps.

No I/O: this module only transforms data.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, tzinfo

MINUTES_PER_DAY = 1440


@dataclass(frozen=True, order=True)
class MinuteOfDay:
    """A minute of the day in [0, 1439] with wrap-around arithmetic."""

    value: int

    def __post_init__(self) -> None:
        if not 0 <= self.value < MINUTES_PER_DAY:
            raise ValueError(f"Minute of day out of range: {self.value}")

    @classmethod
    def parse(cls, hhmm: str) -> MinuteOfDay:
        """Parse a 24-hour "HH:MM" string.

        Raises ValueError on malformed input.
        """
        if not isinstance(hhmm, str) or ":" not in hhmm:
            raise ValueError(f"No colon in time: {hhmm!r}")
        hour_part, minute_part = hhmm.split(":", 1)
        if not (hour_part.isdigit() and minute_part.isdigit() and len(minute_part) == 2):
            raise ValueError(f"Malformed time: {hhmm!r}")
        hour, minute = int(hour_part), int(minute_part)
        if not (0 <= hour <= 23 and 0 <= minute <= 59):
            raise ValueError(f"Hour/minute out of range: {hhmm!r}")
        return cls(hour * 60 + minute)

    @classmethod
    def wrap(cls, total: int) -> MinuteOfDay:
        """Fold any integer minute count onto the wheel."""
        return cls(((total % MINUTES_PER_DAY) + MINUTES_PER_DAY) % MINUTES_PER_DAY)

    def __add__(self, minutes: int) -> MinuteOfDay:
        return MinuteOfDay.wrap(self.value + minutes)

    def __sub__(self, minutes: int) -> MinuteOfDay:
        return MinuteOfDay.wrap(self.value - minutes)

    def until(self, other: MinuteOfDay) -> int:
        """Minutes from self forward to the next occurrence of other (0..1439)."""
        return (other.value - self.value) % MINUTES_PER_DAY

    def __str__(self) -> str:
        return f"{self.value // 60:02d}:{self.value % 60:02d}"


def minutes_between(from_hhmm: str, to_hhmm: str) -> int:
    """Minutes from from_hhmm until the next to_hhmm at or after it."""
    return MinuteOfDay.parse(from_hhmm).until(MinuteOfDay.parse(to_hhmm))


def add_minutes(hhmm: str, delta: int) -> str:
    """Return the "HH:MM" reached by moving hhmm by delta minutes."""
    return str(MinuteOfDay.parse(hhmm) + delta)


def pretty_in(mins: int) -> str:
    """Format a wait for display: "NOW!", "25 MIN", "2H", "2H 5M"."""
    if mins == 0:
        return "NOW!"
    if mins < 60:
        return f"{mins} MIN"
    hours, rest = divmod(mins, 60)
    return f"{hours}H {rest}M" if rest else f"{hours}H"


def is_valid_hhmm(hhmm: str) -> bool:
    try:
        MinuteOfDay.parse(hhmm)
    except ValueError:
        return False
    return True


def time_of_day(moment: datetime, tz: tzinfo | None = None) -> str:
    """"HH:MM" of a datetime, converted to tz (host local if None) when aware."""
    if moment.tzinfo is not None:
        moment = moment.astimezone(tz)
    return f"{moment.hour:02d}:{moment.minute:02d}"


def parse_timestamp(raw: str) -> datetime:
    """Parse an ISO-8601 timestamp as stored in lastTaken.

    Accepts a trailing "Z" for UTC. Raises ValueError on malformed input.
    """
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    return datetime.fromisoformat(raw)
