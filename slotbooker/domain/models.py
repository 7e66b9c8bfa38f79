"""
Domain models for schedules, busy intervals and bookable slots.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

from pendulum import DateTime

# Index 0 is Sunday, matching the weekday numbering used by the schedule.
WEEKDAY_KEYS = ("SUN", "MON", "TUE", "WED", "THU", "FRI", "SAT")

WEEKDAY_NAMES = {
    "MON": "Monday",
    "TUE": "Tuesday",
    "WED": "Wednesday",
    "THU": "Thursday",
    "FRI": "Friday",
    "SAT": "Saturday",
    "SUN": "Sunday",
}


def to_iso_utc(dt: DateTime) -> str:
    """Format an instant as UTC ISO-8601 with millisecond precision."""
    return dt.in_timezone("UTC").format("YYYY-MM-DD[T]HH:mm:ss.SSS[Z]")


def weekday_key(day: date) -> str:
    """Return the schedule key (MON..SUN) for a calendar day."""
    return WEEKDAY_KEYS[day.isoweekday() % 7]


@dataclass(frozen=True)
class HourRange:
    """
    A configured working-hour window ``[start_hour, end_hour)``.

    Values come straight from configuration and are not validated; a token
    that did not parse is stored as ``NaN``.
    """
    start_hour: float
    end_hour: float

    def is_usable(self) -> bool:
        """Whether both bounds are whole hours on a 24-hour clock."""
        for hour in (self.start_hour, self.end_hour):
            if isinstance(hour, float) and (math.isnan(hour) or not hour.is_integer()):
                return False
            if not 0 <= hour <= 24:
                return False
        return True

    def __str__(self) -> str:
        return f"{self.start_hour:g}:00-{self.end_hour:g}:00"


@dataclass
class WeekdaySchedule:
    """Per-weekday working-hour ranges, keyed MON..SUN."""
    ranges: Dict[str, List[HourRange]] = field(default_factory=dict)

    def ranges_for(self, day: date) -> List[HourRange]:
        return list(self.ranges.get(weekday_key(day), []))

    def format_day(self, key: str) -> str:
        day_ranges = self.ranges.get(key) or []
        if not day_ranges:
            return "Not available"
        return ", ".join(str(r) for r in day_ranges)


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable time range with start and end datetime.

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def duration_ms(self) -> int:
        """Return the duration in whole milliseconds."""
        return round((self.end - self.start).total_seconds() * 1000)

    def to_dict(self) -> Dict[str, str]:
        return {"start": to_iso_utc(self.start), "end": to_iso_utc(self.end)}


@dataclass(frozen=True)
class BusyInterval:
    """
    Time occupied by an existing calendar event.

    Unlike ``TimeRange`` no ordering is enforced: remote events are taken as
    they were written.
    """
    start: DateTime
    end: DateTime
    summary: Optional[str] = None


@dataclass(frozen=True)
class EventDescriptor:
    """Start, end and summary decoded from one calendar object; each may be missing."""
    start: Optional[DateTime] = None
    end: Optional[DateTime] = None
    summary: Optional[str] = None

    @property
    def is_usable(self) -> bool:
        return self.start is not None and self.end is not None


@dataclass(frozen=True)
class CalendarObject:
    """Raw calendar object as returned by the remote store."""
    url: str
    data: Optional[str]
    etag: Optional[str] = None
