"""
Projection of raw calendar objects onto the busy intervals of a single day.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, List, Tuple

import pendulum
from pendulum import DateTime

from .event_parser import EventParser
from .models import BusyInterval, CalendarObject

logger = logging.getLogger(__name__)


def day_bounds(day: date, timezone: str = "UTC") -> Tuple[DateTime, DateTime]:
    """Return the instants of 00:00:00.000 and 23:59:59.999 on ``day``."""
    day_start = pendulum.datetime(day.year, day.month, day.day, tz=timezone)
    day_end = day_start.set(hour=23, minute=59, second=59, microsecond=999000)
    return day_start.in_timezone("UTC"), day_end.in_timezone("UTC")


def overlaps_day(start: DateTime, end: DateTime, day_start: DateTime, day_end: DateTime) -> bool:
    starts_on_day = day_start <= start <= day_end
    ends_on_day = day_start <= end <= day_end
    spans_day = start <= day_start and end >= day_end
    return starts_on_day or ends_on_day or spans_day


class BusyProjector:
    """
    Turns fetched calendar objects into the busy intervals of a target day.

    Each object is processed inside its own failure boundary: one malformed
    record is logged and skipped, never aborting the whole day.
    """

    def __init__(self, parser: EventParser, timezone: str = "UTC"):
        self.parser = parser
        self.timezone = timezone

    def project(self, day: date, objects: Iterable[CalendarObject]) -> List[BusyInterval]:
        day_start, day_end = day_bounds(day, self.timezone)
        busy: List[BusyInterval] = []
        total = 0

        for calendar_object in objects:
            total += 1
            try:
                interval = self._project_one(calendar_object, day_start, day_end)
            except Exception:
                logger.exception("Error processing calendar object %s", calendar_object.url)
                continue

            if interval is not None:
                busy.append(interval)

        logger.info("Projected %d of %d calendar objects onto %s", len(busy), total, day.isoformat())
        return busy

    def _project_one(
        self,
        calendar_object: CalendarObject,
        day_start: DateTime,
        day_end: DateTime,
    ) -> BusyInterval | None:
        if not calendar_object.data:
            logger.debug("Calendar object %s has no data", calendar_object.url)
            return None

        descriptor = self.parser.extract(calendar_object.data)
        if not descriptor.is_usable:
            logger.info("Skipping %s: event is missing start or end time", calendar_object.url)
            return None

        if not overlaps_day(descriptor.start, descriptor.end, day_start, day_end):
            logger.debug(
                "Event %s (%s - %s) does not touch %s, skipping",
                calendar_object.url,
                descriptor.start,
                descriptor.end,
                day_start.date(),
            )
            return None

        return BusyInterval(start=descriptor.start, end=descriptor.end, summary=descriptor.summary)
