"""
Application service computing the bookable slots of a day.

The service coordinates fetching raw calendar objects via a calendar reader
adapter and delegates event decoding, day projection and slot generation to
the domain layer. The reader is described by a small protocol so tests and
the CLI mock mode can plug in stand-ins.
"""

from __future__ import annotations

import logging
import re
from datetime import date
from typing import List, Protocol, Sequence

from ..config import AppConfig
from ..domain.busy_projector import BusyProjector
from ..domain.event_parser import EventParser
from ..domain.exceptions import CalendarFetchError, InvalidInput, InvalidSlotLength
from ..domain.models import CalendarObject, TimeRange, weekday_key
from ..domain.slot_calculator import SlotCalculator

logger = logging.getLogger(__name__)

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class CalendarReaderProtocol(Protocol):
    """Protocol describing the calendar reader behaviour needed by the service."""

    async def fetch_objects_for_day(self, day: date, timezone: str) -> List[CalendarObject]:
        """Return the raw calendar objects relevant to ``day``."""


def parse_request_date(value: str) -> date:
    """Parse a ``YYYY-MM-DD`` request parameter."""
    if not _DATE_PATTERN.match(value or ""):
        raise InvalidInput("Invalid date format. Use YYYY-MM-DD.")
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise InvalidInput("Invalid date. Please provide a valid date.") from exc


class AvailabilityService:
    """
    Computes free slots for a day from configuration and the remote calendar.

    Nothing is cached: every call reads configuration and fetches the
    calendar afresh.
    """

    def __init__(
        self,
        config: AppConfig,
        calendar_reader: CalendarReaderProtocol,
        slot_calculator: SlotCalculator | None = None,
        projector: BusyProjector | None = None,
    ) -> None:
        self._config = config
        self._calendar_reader = calendar_reader
        self._slot_calculator = slot_calculator or SlotCalculator(timezone=config.timezone)
        self._projector = projector or BusyProjector(
            parser=EventParser(local_timezone=config.timezone),
            timezone=config.timezone,
        )

    @property
    def allowed_slot_lengths(self) -> Sequence[float]:
        return self._config.slot_lengths

    async def get_available_slots(self, day: date, slot_length: float) -> List[TimeRange]:
        """
        Return the ordered free slots of ``slot_length`` hours on ``day``.

        Raises:
            InvalidSlotLength: If the length is not configured
            CalendarFetchError: If remote data cannot be fetched or processed
        """
        allowed = self.allowed_slot_lengths
        if slot_length not in allowed:
            raise InvalidSlotLength(
                "Invalid slot length. Allowed values: " + ", ".join(f"{length:g}" for length in allowed)
            )

        working_ranges = self._config.schedule.ranges_for(day)
        if not working_ranges:
            logger.info("No availability configured for %s (%s)", day.isoformat(), weekday_key(day))
            return []

        try:
            objects = await self._calendar_reader.fetch_objects_for_day(day, self._config.timezone)
            busy = self._projector.project(day, objects)
            slots = self._slot_calculator.find_available_slots(
                day=day,
                working_ranges=working_ranges,
                busy_intervals=busy,
                slot_length_hours=slot_length,
            )
        except CalendarFetchError:
            raise
        except Exception as exc:
            logger.error("Error computing availability for %s: %s", day.isoformat(), exc)
            raise CalendarFetchError(f"Failed to fetch calendar events: {exc}") from exc

        logger.info(
            "Found %d free %gh slots on %s (%d busy intervals)",
            len(slots),
            slot_length,
            day.isoformat(),
            len(busy),
        )
        return slots
