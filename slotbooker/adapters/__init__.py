"""
Adapters layer - External integrations (CalDAV store, kMeet API).
"""

from .caldav_client import CalDAVClient, CalendarInfo
from .kmeet_client import KMeetClient
from .mock_clients import MockCalendarClient, MockMeetingClient

__all__ = ["CalDAVClient", "CalendarInfo", "KMeetClient", "MockCalendarClient", "MockMeetingClient"]
