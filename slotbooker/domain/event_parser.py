"""
Decoding of raw calendar objects into event descriptors.

Remote stores regularly hand out payloads that are truncated, re-encoded or
produced by non-compliant clients. Decoding therefore runs in two stages:

1. Structured: parse the payload with ``icalendar`` and read the first VEVENT.
2. Fallback: pull DTSTART, DTEND and SUMMARY out of the raw text with
   regular expressions, each field independently optional.

Every instant is normalized to UTC before it leaves this module. Floating
times (no zone information) are read in the configured local timezone.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime, timezone as datetime_timezone
from typing import Optional

import pendulum
from icalendar import Calendar
from pendulum import DateTime

from .exceptions import ExtractionFallback
from .models import EventDescriptor

logger = logging.getLogger(__name__)

_COMPACT_UTC = re.compile(r"^\d{8}T\d{6}Z$")
_COMPACT_LOCAL = re.compile(r"^\d{8}T\d{6}$")
_EXTENDED_UTC = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z$")

_PROPERTY_PATTERN = r"^[ \t]*{name}(?P<params>;[^:\r\n]*)?:(?P<value>[^\r\n]*)"
_DTSTART = re.compile(_PROPERTY_PATTERN.format(name="DTSTART"), re.MULTILINE)
_DTEND = re.compile(_PROPERTY_PATTERN.format(name="DTEND"), re.MULTILINE)
_SUMMARY = re.compile(_PROPERTY_PATTERN.format(name="SUMMARY"), re.MULTILINE)
_TZID = re.compile(r";TZID=([^;:]+)")


def _excerpt(raw: str, length: int = 100) -> str:
    return raw[:length].replace("\r", "").replace("\n", "\\n")


def _resolve_zone(tzid: Optional[str], default: str) -> str:
    if tzid:
        candidate = tzid.strip().strip('"')
        try:
            pendulum.timezone(candidate)
            return candidate
        except Exception:
            logger.debug("Unknown TZID %r, using %s", candidate, default)
    return default


def parse_ical_date(token: str, local_timezone: str = "UTC") -> Optional[DateTime]:
    """
    Decode a DTSTART/DTEND value token into a UTC instant.

    Supported shapes:
        20250602T080000Z      compact UTC
        20250602T080000       compact local time (``local_timezone``)
        2025-06-02T08:00:00Z  extended ISO UTC

    Any other shape yields ``None``.
    """
    token = token.strip()
    try:
        if _COMPACT_UTC.match(token) or _COMPACT_LOCAL.match(token):
            zone = "UTC" if token.endswith("Z") else local_timezone
            parsed = pendulum.datetime(
                int(token[0:4]),
                int(token[4:6]),
                int(token[6:8]),
                int(token[9:11]),
                int(token[11:13]),
                int(token[13:15]),
                tz=zone,
            )
            return parsed.in_timezone("UTC")

        if _EXTENDED_UTC.match(token):
            return pendulum.parse(token).in_timezone("UTC")
    except ValueError as exc:
        logger.warning("Invalid date value %r: %s", token, exc)
        return None

    logger.warning("Unrecognized date format: %r", token)
    return None


def to_utc(value, local_timezone: str = "UTC") -> DateTime:
    """Normalize a decoded iCalendar date/datetime to a UTC instant."""
    if isinstance(value, datetime):
        if value.tzinfo is None or value.utcoffset() is None:
            local = pendulum.instance(value.replace(tzinfo=None), tz=local_timezone)
            return local.in_timezone("UTC")
        return pendulum.instance(value.astimezone(datetime_timezone.utc))

    if isinstance(value, date):
        # All-day values start at local midnight.
        return pendulum.datetime(value.year, value.month, value.day, tz=local_timezone).in_timezone("UTC")

    raise TypeError(f"Unsupported date value: {value!r}")


class EventParser:
    """Extracts an ``EventDescriptor`` from raw calendar object text."""

    def __init__(self, local_timezone: str = "UTC"):
        self.local_timezone = local_timezone

    def extract(self, raw: Optional[str]) -> EventDescriptor:
        if not raw:
            return EventDescriptor()

        try:
            return self._extract_structured(raw)
        except ExtractionFallback as signal:
            logger.info("Falling back to pattern extraction: %s", signal)
        except Exception as exc:
            logger.warning("Could not parse calendar data (%s): %s", exc, _excerpt(raw, 150))

        return self._extract_by_pattern(raw)

    def _extract_structured(self, raw: str) -> EventDescriptor:
        if "BEGIN:VEVENT" not in raw or "END:VEVENT" not in raw:
            raise ExtractionFallback(f"incomplete calendar data: {_excerpt(raw)}...")

        calendar = Calendar.from_ical(raw)
        events = calendar.walk("VEVENT")
        if not events:
            raise ExtractionFallback("no VEVENT found")

        event = events[0]
        start = event.get("DTSTART")
        end = event.get("DTEND")
        if start is None or end is None:
            raise ExtractionFallback("VEVENT is missing DTSTART or DTEND")

        summary = event.get("SUMMARY")
        descriptor = EventDescriptor(
            start=to_utc(start.dt, self.local_timezone),
            end=to_utc(end.dt, self.local_timezone),
            summary=str(summary) if summary is not None else None,
        )
        logger.debug(
            "Extracted event %r from %s to %s",
            descriptor.summary,
            descriptor.start,
            descriptor.end,
        )
        return descriptor

    def _extract_by_pattern(self, raw: str) -> EventDescriptor:
        # Skip VTIMEZONE blocks, their DTSTART lines precede the event.
        offset = raw.find("BEGIN:VEVENT")
        body = raw[offset:] if offset >= 0 else raw

        start = self._match_date(_DTSTART, body)
        end = self._match_date(_DTEND, body)

        summary = None
        summary_match = _SUMMARY.search(body)
        if summary_match and summary_match.group("value"):
            summary = summary_match.group("value").strip()

        logger.debug("Pattern extraction results: start=%s end=%s summary=%r", start, end, summary)
        return EventDescriptor(start=start, end=end, summary=summary)

    def _match_date(self, pattern: re.Pattern, body: str) -> Optional[DateTime]:
        match = pattern.search(body)
        if not match or not match.group("value").strip():
            return None

        tzid = None
        params = match.group("params")
        if params:
            tzid_match = _TZID.search(params)
            if tzid_match:
                tzid = tzid_match.group(1)

        return parse_ical_date(match.group("value"), _resolve_zone(tzid, self.local_timezone))
