"""
CalDAV client for reading and writing calendar objects.
"""

from __future__ import annotations

import asyncio
import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from datetime import date
from typing import List, Optional
from urllib.parse import urljoin

import requests
from pendulum import DateTime

from ..config import CalDAVConfig
from ..domain.busy_projector import day_bounds
from ..domain.exceptions import CalendarFetchError, CalendarWriteFailed
from ..domain.models import CalendarObject

logger = logging.getLogger(__name__)

DAV_NS = "DAV:"
CALDAV_NS = "urn:ietf:params:xml:ns:caldav"

PROPFIND_CALENDARS = """<?xml version="1.0" encoding="utf-8"?>
<d:propfind xmlns:d="DAV:" xmlns:c="urn:ietf:params:xml:ns:caldav">
  <d:prop>
    <d:displayname/>
    <d:resourcetype/>
  </d:prop>
</d:propfind>"""

CALENDAR_QUERY = """<?xml version="1.0" encoding="utf-8"?>
<c:calendar-query xmlns:d="DAV:" xmlns:c="urn:ietf:params:xml:ns:caldav">
  <d:prop>
    <d:getetag/>
    <c:calendar-data/>
  </d:prop>
  <c:filter>
    <c:comp-filter name="VCALENDAR">
      <c:comp-filter name="VEVENT">{time_range}</c:comp-filter>
    </c:comp-filter>
  </c:filter>
</c:calendar-query>"""

TIME_RANGE = '<c:time-range start="{start}" end="{end}"/>'


@dataclass(frozen=True)
class CalendarInfo:
    """A calendar collection found on the server."""
    url: str
    display_name: str = ""


def _caldav_timestamp(dt: DateTime) -> str:
    return dt.in_timezone("UTC").format("YYYYMMDD[T]HHmmss[Z]")


class CalDAVClient:
    """
    Client for a CalDAV calendar store using HTTP Basic authentication.

    Reads go through ``calendar-query`` REPORTs, writes are plain PUTs of
    iCalendar payloads.
    """

    def __init__(
        self,
        config: CalDAVConfig,
        session: Optional[requests.Session] = None,
        timeout: int = 30,
    ):
        """
        Initialize the CalDAV client.

        Args:
            config: Server URL, credentials and calendar name
            session: Optional preconfigured requests session
            timeout: Per-request timeout in seconds
        """
        self.config = config
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.auth = (config.username, config.password)

    def _request(self, method: str, url: str, body: str | None = None, headers: dict | None = None) -> requests.Response:
        all_headers = {"Content-Type": "application/xml; charset=utf-8"}
        all_headers.update(headers or {})
        response = self.session.request(
            method,
            url,
            data=body.encode("utf-8") if body is not None else None,
            headers=all_headers,
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response

    @staticmethod
    def _ok_props(response_element: ET.Element) -> List[ET.Element]:
        props = []
        for propstat in response_element.findall(f"{{{DAV_NS}}}propstat"):
            status = propstat.findtext(f"{{{DAV_NS}}}status") or ""
            prop = propstat.find(f"{{{DAV_NS}}}prop")
            if prop is not None and " 200 " in f"{status} ":
                props.append(prop)
        return props

    def list_calendars(self) -> List[CalendarInfo]:
        """List the calendar collections below the configured URL."""
        response = self._request("PROPFIND", self.config.url, PROPFIND_CALENDARS, {"Depth": "1"})
        root = ET.fromstring(response.content)

        calendars: List[CalendarInfo] = []
        for element in root.findall(f"{{{DAV_NS}}}response"):
            href = element.findtext(f"{{{DAV_NS}}}href")
            if not href:
                continue
            for prop in self._ok_props(element):
                resource_type = prop.find(f"{{{DAV_NS}}}resourcetype")
                if resource_type is None or resource_type.find(f"{{{CALDAV_NS}}}calendar") is None:
                    continue
                calendars.append(
                    CalendarInfo(
                        url=urljoin(self.config.url, href),
                        display_name=prop.findtext(f"{{{DAV_NS}}}displayname") or "",
                    )
                )
        return calendars

    def find_calendar(self) -> CalendarInfo:
        """Return the calendar named in the config, or the first one found."""
        calendars = self.list_calendars()
        logger.info("Found %d calendars", len(calendars))

        for calendar in calendars:
            if calendar.display_name == self.config.calendar_name:
                return calendar
        if calendars:
            return calendars[0]
        raise CalendarFetchError("No calendar found")

    def _query_objects(
        self,
        calendar: CalendarInfo,
        start: DateTime | None = None,
        end: DateTime | None = None,
    ) -> List[CalendarObject]:
        time_range = ""
        if start is not None and end is not None:
            time_range = TIME_RANGE.format(start=_caldav_timestamp(start), end=_caldav_timestamp(end))

        response = self._request(
            "REPORT",
            calendar.url,
            CALENDAR_QUERY.format(time_range=time_range),
            {"Depth": "1"},
        )
        root = ET.fromstring(response.content)

        objects: List[CalendarObject] = []
        for element in root.findall(f"{{{DAV_NS}}}response"):
            href = element.findtext(f"{{{DAV_NS}}}href") or ""
            for prop in self._ok_props(element):
                objects.append(
                    CalendarObject(
                        url=urljoin(calendar.url, href),
                        data=prop.findtext(f"{{{CALDAV_NS}}}calendar-data"),
                        etag=prop.findtext(f"{{{DAV_NS}}}getetag"),
                    )
                )
        return objects

    def fetch_objects(self, day: date, timezone: str = "UTC") -> List[CalendarObject]:
        """
        Fetch the calendar objects for ``day``.

        A time-range query is tried first; when it fails or comes back empty
        the whole calendar is fetched instead.

        Raises:
            CalendarFetchError: If the calendar cannot be read
        """
        logger.info("Fetching calendar events for %s", day.isoformat())
        try:
            calendar = self.find_calendar()
            logger.info("Using calendar: %s (%s)", calendar.display_name or "Unnamed", calendar.url)

            start, end = day_bounds(day, timezone)
            try:
                objects = self._query_objects(calendar, start, end)
                logger.info("Found %d events with time-range query", len(objects))
                if objects:
                    return objects
            except (requests.exceptions.RequestException, ET.ParseError) as exc:
                logger.warning("Time-range query failed, falling back to full query: %s", exc)

            objects = self._query_objects(calendar)
            logger.info("Found %d events with full calendar query", len(objects))
            return objects

        except CalendarFetchError:
            raise
        except (requests.exceptions.RequestException, ET.ParseError) as exc:
            raise CalendarFetchError(f"Failed to fetch calendar events: {exc}") from exc

    async def fetch_objects_for_day(self, day: date, timezone: str = "UTC") -> List[CalendarObject]:
        return await asyncio.to_thread(self.fetch_objects, day, timezone)

    def create_object(self, ics_content: str, uid: str) -> str:
        """
        Store an iCalendar payload as a new object in the target calendar.

        Returns:
            The object's file name stem, used as event identifier

        Raises:
            CalendarWriteFailed: If the object cannot be written
        """
        event_id = uid.split("@", 1)[0]
        try:
            calendar = self.find_calendar()
            url = urljoin(calendar.url.rstrip("/") + "/", f"{event_id}.ics")
            self._request(
                "PUT",
                url,
                ics_content,
                {"Content-Type": "text/calendar; charset=utf-8", "If-None-Match": "*"},
            )
        except (CalendarFetchError, requests.exceptions.RequestException, ET.ParseError) as exc:
            logger.error("Error creating calendar event: %s", exc)
            raise CalendarWriteFailed(f"Failed to create calendar event: {exc}") from exc

        logger.info("Created calendar event %s", event_id)
        return event_id

    async def create_calendar_object(self, ics_content: str, uid: str) -> str:
        return await asyncio.to_thread(self.create_object, ics_content, uid)

    def test_connection(self) -> List[CalendarInfo]:
        """
        Test the connection and credentials by listing calendars.

        Raises:
            CalendarFetchError: If the connection test fails
        """
        try:
            return self.list_calendars()
        except (requests.exceptions.RequestException, ET.ParseError) as exc:
            raise CalendarFetchError(f"CalDAV connection failed: {exc}") from exc
