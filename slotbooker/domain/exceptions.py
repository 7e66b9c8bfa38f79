"""
Domain-specific exception hierarchy for the slot booking application.
"""


class SlotbookerError(Exception):
    """Base class for all application-level errors."""

    code = "error"


class InvalidSlotLength(SlotbookerError):
    """Raised when a requested slot length is not one of the configured lengths."""

    code = "invalid_slot_length"


class InvalidInput(SlotbookerError):
    """Raised when a booking request carries an unparseable start time."""

    code = "invalid_input"


class CrossDayBooking(SlotbookerError):
    """Raised when a booking would start and end on different days."""

    code = "cross_day_booking"


class SlotUnavailable(SlotbookerError):
    """Raised when the requested slot is not among the computed free slots."""

    code = "slot_unavailable"


class CalendarFetchError(SlotbookerError):
    """Raised when calendar data cannot be fetched or processed."""

    code = "calendar_fetch_error"


class CalendarWriteFailed(SlotbookerError):
    """Raised when an event cannot be written to the remote calendar."""

    code = "calendar_write_failed"


class RoomCreationFailed(SlotbookerError):
    """Raised when the meeting-room API reports an error."""

    code = "room_creation_failed"


class ExtractionFallback(SlotbookerError):
    """Internal signal: the structured parser gave up, use pattern extraction."""

    code = "extraction_fallback"
