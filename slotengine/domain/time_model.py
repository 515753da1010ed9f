"""
Time value types for the slot engine.

Dates are pendulum ``Date`` objects, wall-clock times are integers counting
minutes since midnight, and "now" is obtained from an injected ``Clock`` so
past-slot filtering can be tested without touching the system clock.
"""

from dataclasses import dataclass
from typing import Iterator, List, Protocol

import pendulum
from pendulum import Date, DateTime

from .exceptions import InvalidDateRangeError, InvalidInputError

DEFAULT_TIMEZONE = "Europe/Skopje"

MINUTES_PER_DAY = 24 * 60


def parse_date(value: str) -> Date:
    """
    Parse a ``YYYY-MM-DD`` string into a pendulum Date.

    Raises:
        InvalidInputError: If the string is not a valid calendar date
    """
    if isinstance(value, Date):
        return value

    try:
        return pendulum.from_format(str(value).strip(), "YYYY-MM-DD").date()
    except (ValueError, TypeError) as exc:
        raise InvalidInputError(
            f"Invalid date '{value}'. Use YYYY-MM-DD"
        ) from exc


def format_date(value: Date) -> str:
    return value.format("YYYY-MM-DD")


def parse_time(value: str) -> int:
    """
    Parse ``HH:MM`` or ``HH:MM:SS`` into minutes since midnight.

    Seconds are accepted but dropped; ``24:00`` is allowed as an end of day.

    Raises:
        InvalidInputError: If the string is not a valid wall-clock time
    """
    parts = str(value).strip().split(":")

    if len(parts) not in (2, 3) or not all(p.isdigit() for p in parts):
        raise InvalidInputError(f"Invalid time '{value}'. Use HH:MM or HH:MM:SS")

    hours, minutes = int(parts[0]), int(parts[1])
    seconds = int(parts[2]) if len(parts) == 3 else 0

    if hours == 24 and minutes == 0 and seconds == 0:
        return MINUTES_PER_DAY

    if not (0 <= hours <= 23 and 0 <= minutes <= 59 and 0 <= seconds <= 59):
        raise InvalidInputError(f"Invalid time '{value}'. Use HH:MM or HH:MM:SS")

    return hours * 60 + minutes


def format_time(minutes: int) -> str:
    """Format minutes since midnight as ``HH:MM``."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def day_of_week(value: Date) -> int:
    """Weekday number used by weekly rules: 0=Sunday, 6=Saturday."""
    return value.isoweekday() % 7


def iter_dates(start_date: Date, end_date: Date) -> Iterator[Date]:
    """Yield every calendar date from start_date to end_date inclusive."""
    if start_date > end_date:
        raise InvalidDateRangeError(
            f"startDate {format_date(start_date)} must be before or equal to "
            f"endDate {format_date(end_date)}"
        )

    current = start_date
    while current <= end_date:
        yield current
        current = current.add(days=1)


@dataclass(frozen=True, order=True)
class MinuteInterval:
    """
    Half-open wall-clock interval ``[start, end)`` in minutes since midnight.

    Invariant: start must be before end.
    """
    start: int
    end: int

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(
                f"Start time {format_time(self.start)} must be before "
                f"end time {format_time(self.end)}"
            )

    @classmethod
    def parse(cls, start: str, end: str) -> "MinuteInterval":
        return cls(start=parse_time(start), end=parse_time(end))

    def overlaps(self, other: "MinuteInterval") -> bool:
        """Check if this interval overlaps with another."""
        return self.start < other.end and other.start < self.end

    def contains(self, other: "MinuteInterval") -> bool:
        return self.start <= other.start and other.end <= self.end

    def intersect(self, other: "MinuteInterval") -> "MinuteInterval | None":
        """
        Calculate the intersection of two intervals.
        Returns None if there is no overlap.
        """
        if not self.overlaps(other):
            return None

        return MinuteInterval(start=max(self.start, other.start), end=min(self.end, other.end))

    def subtract(self, holes: List["MinuteInterval"]) -> List["MinuteInterval"]:
        """
        Remove the given intervals from this one, yielding disjoint pieces.

        Example:
        Window: 09:00 - 17:00
        Holes: [12:00-13:00]
        Result: [09:00-12:00, 13:00-17:00]
        """
        pieces: List[MinuteInterval] = []
        current_start = self.start

        for hole in sorted(holes):
            if not self.overlaps(hole):
                continue

            # Clip the hole to this interval
            hole_start = max(hole.start, self.start)
            hole_end = min(hole.end, self.end)

            if current_start < hole_start:
                pieces.append(MinuteInterval(start=current_start, end=hole_start))

            current_start = max(current_start, hole_end)

        if current_start < self.end:
            pieces.append(MinuteInterval(start=current_start, end=self.end))

        return pieces

    def to_payload(self) -> dict:
        return {"start": format_time(self.start), "end": format_time(self.end)}

    def __str__(self) -> str:
        return f"{format_time(self.start)} - {format_time(self.end)}"


class Clock(Protocol):
    """Source of the current instant, resolved in a business timezone."""

    def now(self, timezone: str) -> DateTime:
        """Return the current moment expressed in the given timezone."""


class SystemClock:
    """Clock backed by the system time."""

    def now(self, timezone: str) -> DateTime:
        return pendulum.now(timezone)


class FixedClock:
    """Clock frozen at a given instant, used for deterministic results."""

    def __init__(self, instant: DateTime):
        self.instant = instant

    def now(self, timezone: str) -> DateTime:
        return self.instant.in_timezone(timezone)


def minutes_into_day(moment: DateTime) -> float:
    """Wall-clock position of ``moment`` in minutes, keeping seconds as a fraction."""
    return moment.hour * 60 + moment.minute + moment.second / 60


def local_datetime(value: Date, minutes: int, timezone: str) -> DateTime:
    """Build the instant for a business-local date and wall-clock minute."""
    days, minutes = divmod(minutes, MINUTES_PER_DAY)
    day = value.add(days=days)
    return pendulum.datetime(
        day.year, day.month, day.day, minutes // 60, minutes % 60, tz=timezone
    )
