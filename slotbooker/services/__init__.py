"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability import AvailabilityService, CalendarReaderProtocol, parse_request_date
from .booking import (
    BookingRequest,
    BookingResult,
    BookingService,
    CalendarWriterProtocol,
    MeetingRoom,
    RoomClientProtocol,
)

__all__ = [
    "AvailabilityService",
    "BookingRequest",
    "BookingResult",
    "BookingService",
    "CalendarReaderProtocol",
    "CalendarWriterProtocol",
    "MeetingRoom",
    "RoomClientProtocol",
    "parse_request_date",
]
