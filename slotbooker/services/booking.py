"""
Booking of meetings: availability re-check, room creation, calendar entry.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Dict, List, Optional, Protocol

import pendulum
from pendulum import DateTime

from ..domain.event_builder import EventParams, build_event_ics, new_event_uid
from ..domain.exceptions import (
    CalendarWriteFailed,
    CrossDayBooking,
    InvalidInput,
    RoomCreationFailed,
    SlotbookerError,
    SlotUnavailable,
)
from ..domain.models import to_iso_utc
from .availability import AvailabilityService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MeetingRoom:
    """A meeting room as reported by the meeting-room API."""
    id: str
    url: str
    start: str = ""
    end: str = ""
    room_id: str = ""
    name: str = ""


class RoomClientProtocol(Protocol):
    """Meeting-room API used to open a video room for the booking."""

    async def create_room(
        self,
        name: str,
        start: DateTime,
        end: DateTime,
        description: str = "",
        password_protected: bool = False,
        password: str = "",
    ) -> MeetingRoom:
        """Create a room or raise ``RoomCreationFailed``."""


class CalendarWriterProtocol(Protocol):
    """Remote calendar write access."""

    async def create_calendar_object(self, ics_content: str, uid: str) -> str:
        """Store a calendar object and return its identifier."""


@dataclass
class BookingRequest:
    title: str
    start: str  # ISO-8601
    duration: float  # hours
    description: Optional[str] = None
    participants: List[str] = field(default_factory=list)


@dataclass
class BookingResult:
    success: bool
    meeting_url: Optional[str] = None
    meeting_id: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"success": self.success}
        if self.meeting_url is not None:
            body["meetingUrl"] = self.meeting_url
        if self.meeting_id is not None:
            body["meetingId"] = self.meeting_id
        if self.error is not None:
            body["error"] = self.error
        return body


class BookingService:
    """
    Books a meeting in four linear steps, no retries:

    1. Validate the requested start
    2. Re-compute availability and require an exact slot match
    3. Create the meeting room
    4. Write the calendar event

    A failed room creation stops before anything is written to the calendar.
    A failed calendar write leaves the already created room in place.
    Concurrent bookings of the same slot are not serialized.
    """

    def __init__(
        self,
        availability_service: AvailabilityService,
        room_client: RoomClientProtocol,
        calendar_writer: CalendarWriterProtocol,
        timezone: str = "UTC",
    ) -> None:
        self._availability = availability_service
        self._room_client = room_client
        self._calendar_writer = calendar_writer
        self._timezone = timezone

    async def book_meeting(self, request: BookingRequest) -> BookingResult:
        """Book ``request`` and report the outcome; never raises for booking failures."""
        try:
            start = self._parse_start(request.start)
            end = await self._check_availability(start, request.duration)

            logger.info(
                "Creating meeting room %r from %s to %s",
                request.title,
                to_iso_utc(start),
                to_iso_utc(end),
            )
            room = await self._create_room(request, start, end)

            try:
                await self.create_calendar_event(
                    EventParams(
                        title=request.title,
                        start=start,
                        end=end,
                        description=request.description or "",
                        participant_emails=list(request.participants or []),
                    )
                )
            except CalendarWriteFailed:
                logger.error("Room %s was created but the calendar event could not be written", room.id)
                raise

            return BookingResult(success=True, meeting_url=room.url, meeting_id=room.id)

        except SlotbookerError as exc:
            logger.warning("Booking %r failed: %s", request.title, exc)
            return BookingResult(success=False, error=str(exc), error_code=exc.code)
        except Exception as exc:
            logger.exception("Error booking meeting")
            return BookingResult(success=False, error=f"Failed to book meeting: {exc}", error_code="error")

    async def create_calendar_event(self, params: EventParams) -> str:
        """Write ``params`` to the remote calendar and return the event identifier."""
        uid = new_event_uid()
        ics_content = build_event_ics(params, uid=uid)
        try:
            return await self._calendar_writer.create_calendar_object(ics_content, uid)
        except CalendarWriteFailed:
            raise
        except Exception as exc:
            raise CalendarWriteFailed(f"Failed to create calendar event: {exc}") from exc

    def _parse_start(self, value: str) -> DateTime:
        try:
            parsed = pendulum.parse(value, tz=self._timezone)
        except Exception as exc:
            raise InvalidInput("Invalid start time") from exc
        if not isinstance(parsed, DateTime):
            raise InvalidInput("Invalid start time")
        return parsed

    async def _check_availability(self, start: DateTime, duration: float) -> DateTime:
        """Require an exact free slot at ``start`` and return the booking end."""
        local_start = start.in_timezone(self._timezone)
        # Rejects lengths outside the configured set before any arithmetic on them.
        slots = await self._availability.get_available_slots(local_start.date(), duration)

        end = start + timedelta(hours=duration)
        requested_start = to_iso_utc(start)
        requested_ms = round(duration * 60 * 60 * 1000)
        if not any(
            to_iso_utc(slot.start) == requested_start and slot.duration_ms() == requested_ms
            for slot in slots
        ):
            raise SlotUnavailable("The requested time slot is no longer available")

        if local_start.date() != end.in_timezone(self._timezone).date():
            raise CrossDayBooking("The start date and end date are not the same")
        return end

    async def _create_room(self, request: BookingRequest, start: DateTime, end: DateTime) -> MeetingRoom:
        try:
            return await self._room_client.create_room(
                request.title,
                start,
                end,
                description=request.description or "",
            )
        except RoomCreationFailed:
            raise
        except Exception as exc:
            raise RoomCreationFailed(f"Failed to create meeting room: {exc}") from exc
