"""
Domain layer - Pure business logic without external dependencies.
"""

from .busy_projector import BusyProjector
from .event_parser import EventParser
from .models import BusyInterval, CalendarObject, EventDescriptor, HourRange, TimeRange, WeekdaySchedule
from .slot_calculator import SlotCalculator

__all__ = [
    "BusyInterval",
    "BusyProjector",
    "CalendarObject",
    "EventDescriptor",
    "EventParser",
    "HourRange",
    "SlotCalculator",
    "TimeRange",
    "WeekdaySchedule",
]
