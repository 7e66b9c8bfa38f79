"""
Builds the iCalendar payload written to the remote calendar for a booking.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

import pendulum
from icalendar import Calendar, Event, vCalAddress
from pendulum import DateTime

PRODID = "-//Calendar Service//Meeting//EN"
ORGANIZER = "mailto:no-reply@calendar.service"
UID_DOMAIN = "calendar.service"


@dataclass
class EventParams:
    """Data for one calendar event to be created."""
    title: str
    start: DateTime
    end: DateTime
    description: str = ""
    participant_emails: List[str] = field(default_factory=list)


def _as_utc(dt: DateTime) -> datetime:
    """Whole-second UTC datetime, serialized by icalendar with a trailing Z."""
    utc = dt.in_timezone("UTC")
    return datetime(utc.year, utc.month, utc.day, utc.hour, utc.minute, utc.second, tzinfo=timezone.utc)


def new_event_uid() -> str:
    return f"event-{uuid.uuid4().hex}@{UID_DOMAIN}"


def build_event_ics(
    params: EventParams,
    uid: Optional[str] = None,
    now: Optional[DateTime] = None,
) -> str:
    """
    Render a single-VEVENT calendar for ``params``.

    Attendees are invited as required participants whose response is
    still pending.
    """
    stamp = _as_utc(now or pendulum.now("UTC"))

    calendar = Calendar()
    calendar.add("prodid", PRODID)
    calendar.add("version", "2.0")
    calendar.add("calscale", "GREGORIAN")
    calendar.add("method", "REQUEST")

    event = Event()
    event.add("dtstart", _as_utc(params.start))
    event.add("dtend", _as_utc(params.end))
    event.add("dtstamp", stamp)
    event.add("organizer", vCalAddress(ORGANIZER))
    event.add("uid", uid or new_event_uid())
    event.add("created", stamp)
    event.add("description", params.description or "")
    event.add("last-modified", stamp)
    event.add("sequence", 0)
    event.add("status", "CONFIRMED")
    event.add("summary", params.title)
    event.add("transp", "OPAQUE")

    for email in params.participant_emails:
        event.add(
            "attendee",
            vCalAddress(f"mailto:{email}"),
            parameters={"ROLE": "REQ-PARTICIPANT", "PARTSTAT": "NEEDS-ACTION"},
        )

    calendar.add_component(event)
    return calendar.to_ical().decode("utf-8")
