"""
Mock calendar and meeting-room clients for running without remote services.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from pendulum import DateTime

from ..domain.exceptions import RoomCreationFailed
from ..domain.models import CalendarObject
from ..services.booking import MeetingRoom
from .caldav_client import CalendarInfo


class MockCalendarClient:
    """
    Mock client that serves calendar objects from memory.

    Objects come from raw iCalendar strings and, optionally, from the
    ``*.ics`` files of a directory. Like an unscoped CalDAV query, every
    object is returned for every day; day filtering is left to the caller.
    Created events are stored and served by later fetches.
    """

    def __init__(self, payloads: Optional[Sequence[str]] = None, data_dir: Optional[Path] = None):
        """
        Initialize the mock client.

        Args:
            payloads: Raw iCalendar payloads to serve
            data_dir: Optional directory of ``.ics`` files to load
        """
        self.objects: List[CalendarObject] = [
            CalendarObject(url=f"mock://calendar/{index}.ics", data=payload)
            for index, payload in enumerate(payloads or [])
        ]
        self.created: Dict[str, str] = {}
        self.fetch_calls: List[date] = []
        if data_dir is not None:
            self._load_directory(data_dir)

    def _load_directory(self, data_dir: Path) -> None:
        """Load calendar objects from ``.ics`` files."""
        if not data_dir.exists():
            return
        for path in sorted(data_dir.glob("*.ics")):
            self.objects.append(
                CalendarObject(url=f"mock://calendar/{path.name}", data=path.read_text(encoding="utf-8"))
            )

    async def fetch_objects_for_day(self, day: date, timezone: str = "UTC") -> List[CalendarObject]:
        self.fetch_calls.append(day)
        return list(self.objects)

    async def create_calendar_object(self, ics_content: str, uid: str) -> str:
        event_id = uid.split("@", 1)[0]
        self.created[event_id] = ics_content
        self.objects.append(CalendarObject(url=f"mock://calendar/{event_id}.ics", data=ics_content))
        return event_id

    def test_connection(self) -> List[CalendarInfo]:
        """Mock connection test."""
        return [CalendarInfo(url="mock://calendar/", display_name="Mock Calendar")]


class MockMeetingClient:
    """
    Mock meeting-room API recording every room it is asked to create.
    """

    def __init__(self, error_message: Optional[str] = None):
        """
        Args:
            error_message: When set, every call fails with this API error
        """
        self.error_message = error_message
        self.rooms: List[MeetingRoom] = []

    async def create_room(
        self,
        name: str,
        start: DateTime,
        end: DateTime,
        description: str = "",
        password_protected: bool = False,
        password: str = "",
    ) -> MeetingRoom:
        if self.error_message:
            raise RoomCreationFailed(f"Failed to create meeting room: {self.error_message}")

        number = len(self.rooms) + 1
        room = MeetingRoom(
            id=f"mock-{number}",
            url=f"https://kmeet.infomaniak.com/mock-{number}",
            start=start.to_iso8601_string(),
            end=end.to_iso8601_string(),
            room_id=f"room-{number}",
            name=name,
        )
        self.rooms.append(room)
        return room
