"""
Core business logic for calculating bookable time slots.

Pure domain logic without any external dependencies (no API calls, no I/O):
the same inputs always produce the same ordered output.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import List, Sequence, Tuple

import pendulum
from pendulum import DateTime

from .models import BusyInterval, HourRange, TimeRange

logger = logging.getLogger(__name__)

# Candidate starts always snap to this grid, whatever the slot length.
SCAN_STEP = timedelta(minutes=30)


def is_blocked(start: DateTime, end: DateTime, busy: BusyInterval) -> bool:
    """
    Three-way overlap test between a candidate and a busy interval.

    A candidate ending exactly at a busy start, or starting exactly at a
    busy end, is not blocked.
    """
    starts_inside = busy.start <= start < busy.end
    ends_inside = busy.start < end <= busy.end
    contains = start <= busy.start and end >= busy.end
    return starts_inside or ends_inside or contains


class SlotCalculator:
    """
    Calculates free fixed-length slots for one day.

    Algorithm, per working-hour range in configured order:
    1. Anchor the range to the target day in the local timezone
    2. Walk candidate starts from the range start in 30 minute steps
    3. Keep candidates that fit in the range and touch no busy interval
    """

    def __init__(self, timezone: str = "UTC"):
        self.timezone = timezone

    def find_available_slots(
        self,
        day: date,
        working_ranges: Sequence[HourRange],
        busy_intervals: Sequence[BusyInterval],
        slot_length_hours: float,
    ) -> List[TimeRange]:
        """
        Find all free slots of ``slot_length_hours`` on ``day``.

        Args:
            day: Calendar day to generate slots for
            working_ranges: Configured working-hour ranges for that weekday
            busy_intervals: Busy intervals already projected onto the day
            slot_length_hours: Slot length in hours (e.g. 0.5, 1, 1.5)

        Returns:
            Slots ordered by range, then by start time
        """
        if not slot_length_hours or not slot_length_hours > 0:
            return []

        slot_length = timedelta(hours=slot_length_hours)
        slots: List[TimeRange] = []

        for working_range in working_ranges:
            bounds = self._anchor_range(day, working_range)
            if bounds is None:
                continue
            range_start, range_end = bounds
            slots.extend(
                self._scan_range(range_start, range_end, busy_intervals, slot_length)
            )

        return slots

    def _anchor_range(self, day: date, working_range: HourRange) -> Tuple[DateTime, DateTime] | None:
        """Place a configured hour range on ``day``; ``None`` if it cannot be placed."""
        if not working_range.is_usable():
            logger.warning("Ignoring unusable working-hour range %s", working_range)
            return None

        midnight = pendulum.datetime(day.year, day.month, day.day, tz=self.timezone)
        return (
            self._at_hour(midnight, int(working_range.start_hour)),
            self._at_hour(midnight, int(working_range.end_hour)),
        )

    @staticmethod
    def _at_hour(midnight: DateTime, hour: int) -> DateTime:
        if hour == 24:
            return midnight.add(days=1)
        return midnight.set(hour=hour, minute=0, second=0, microsecond=0)

    def _scan_range(
        self,
        range_start: DateTime,
        range_end: DateTime,
        busy_intervals: Sequence[BusyInterval],
        slot_length: timedelta,
    ) -> List[TimeRange]:
        """
        Walk the half-hour grid across one range, collecting free candidates.

        Example (slot 1h, busy 09:00-10:00, range 08:00-12:00):
        08:00 ok, 08:30 blocked, 09:00 blocked, 09:30 blocked,
        10:00 ok, 10:30 ok, 11:00 ok
        """
        free: List[TimeRange] = []
        candidate_start = range_start

        while candidate_start + slot_length <= range_end:
            candidate_end = candidate_start + slot_length

            if not any(is_blocked(candidate_start, candidate_end, busy) for busy in busy_intervals):
                free.append(TimeRange(start=candidate_start, end=candidate_end))

            candidate_start = candidate_start + SCAN_STEP

        return free
