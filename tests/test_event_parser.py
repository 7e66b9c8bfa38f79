"""
Tests for calendar object decoding.
"""

import pendulum
import pytest

from slotbooker.domain.event_parser import EventParser, parse_ical_date

WELL_FORMED = (
    "BEGIN:VCALENDAR\r\n"
    "VERSION:2.0\r\n"
    "PRODID:-//Test//EN\r\n"
    "BEGIN:VEVENT\r\n"
    "UID:standup@example.com\r\n"
    "DTSTAMP:20250601T120000Z\r\n"
    "DTSTART:20250602T080000Z\r\n"
    "DTEND:20250602T090000Z\r\n"
    "SUMMARY:Standup\r\n"
    "END:VEVENT\r\n"
    "END:VCALENDAR\r\n"
)


def _calendar(*event_lines: str) -> str:
    lines = ["BEGIN:VCALENDAR", "VERSION:2.0", "PRODID:-//Test//EN", "BEGIN:VEVENT", "UID:x@example.com"]
    lines += list(event_lines)
    lines += ["END:VEVENT", "END:VCALENDAR", ""]
    return "\r\n".join(lines)


class TestStructuredExtraction:
    """Payloads the iCalendar parser understands."""

    def test_well_formed_event(self):
        descriptor = EventParser().extract(WELL_FORMED)

        assert descriptor.start == pendulum.datetime(2025, 6, 2, 8, 0, tz="UTC")
        assert descriptor.end == pendulum.datetime(2025, 6, 2, 9, 0, tz="UTC")
        assert descriptor.summary == "Standup"
        assert descriptor.is_usable

    def test_tzid_is_converted_to_utc(self):
        raw = _calendar(
            "DTSTART;TZID=Europe/Berlin:20250602T100000",
            "DTEND;TZID=Europe/Berlin:20250602T110000",
        )

        descriptor = EventParser().extract(raw)

        assert descriptor.start == pendulum.datetime(2025, 6, 2, 8, 0, tz="UTC")
        assert descriptor.end == pendulum.datetime(2025, 6, 2, 9, 0, tz="UTC")

    def test_floating_time_is_read_in_local_timezone(self):
        raw = _calendar("DTSTART:20250602T100000", "DTEND:20250602T110000")

        descriptor = EventParser(local_timezone="Europe/Berlin").extract(raw)

        assert descriptor.start == pendulum.datetime(2025, 6, 2, 8, 0, tz="UTC")

    def test_all_day_event_starts_at_local_midnight(self):
        raw = _calendar("DTSTART;VALUE=DATE:20250602", "DTEND;VALUE=DATE:20250603")

        descriptor = EventParser().extract(raw)

        assert descriptor.start == pendulum.datetime(2025, 6, 2, tz="UTC")
        assert descriptor.end == pendulum.datetime(2025, 6, 3, tz="UTC")

    def test_only_first_event_is_read(self):
        raw = WELL_FORMED.replace(
            "END:VCALENDAR",
            "BEGIN:VEVENT\r\nUID:late@example.com\r\nDTSTAMP:20250601T120000Z\r\n"
            "DTSTART:20250602T150000Z\r\nDTEND:20250602T160000Z\r\nEND:VEVENT\r\nEND:VCALENDAR",
        )

        descriptor = EventParser().extract(raw)

        assert descriptor.start == pendulum.datetime(2025, 6, 2, 8, 0, tz="UTC")


class TestFallbackExtraction:
    """Payloads that need the pattern based fallback."""

    def test_bare_lines_without_event_markers(self):
        raw = "DTSTART:20250602T080000Z\nDTEND:20250602T090000Z\nSUMMARY:Raw\n"

        descriptor = EventParser().extract(raw)

        assert descriptor.is_usable
        assert descriptor.start == pendulum.datetime(2025, 6, 2, 8, 0, tz="UTC")
        assert descriptor.end == pendulum.datetime(2025, 6, 2, 9, 0, tz="UTC")
        assert descriptor.summary == "Raw"

    def test_indented_lines(self):
        raw = "  DTSTART:20250602T080000Z\n\tDTEND:20250602T090000Z\n  SUMMARY:Indented\n"

        descriptor = EventParser().extract(raw)

        assert descriptor.start == pendulum.datetime(2025, 6, 2, 8, 0, tz="UTC")
        assert descriptor.end == pendulum.datetime(2025, 6, 2, 9, 0, tz="UTC")
        assert descriptor.summary == "Indented"

    def test_prefixed_property_names_are_not_matched(self):
        raw = "X-ORIG-DTSTART:20250602T070000Z\nDTSTART:20250602T080000Z\nDTEND:20250602T090000Z\n"

        descriptor = EventParser().extract(raw)

        assert descriptor.start == pendulum.datetime(2025, 6, 2, 8, 0, tz="UTC")

    def test_truncated_payload(self):
        raw = (
            "BEGIN:VCALENDAR\r\nBEGIN:VEVENT\r\n"
            "DTSTART:20250602T080000Z\r\nDTEND:20250602T090000Z\r\nSUMM"
        )

        descriptor = EventParser().extract(raw)

        assert descriptor.start == pendulum.datetime(2025, 6, 2, 8, 0, tz="UTC")
        assert descriptor.end == pendulum.datetime(2025, 6, 2, 9, 0, tz="UTC")
        assert descriptor.summary is None

    def test_extended_iso_tokens(self):
        raw = "DTSTART:2025-06-02T08:00:00Z\nDTEND:2025-06-02T09:30:00Z"

        descriptor = EventParser().extract(raw)

        assert descriptor.end == pendulum.datetime(2025, 6, 2, 9, 30, tz="UTC")

    def test_local_tokens_use_local_timezone(self):
        raw = "DTSTART:20250602T100000\nDTEND:20250602T110000\n"

        descriptor = EventParser(local_timezone="Europe/Berlin").extract(raw)

        assert descriptor.start == pendulum.datetime(2025, 6, 2, 8, 0, tz="UTC")
        assert descriptor.end == pendulum.datetime(2025, 6, 2, 9, 0, tz="UTC")

    def test_timezone_block_is_skipped(self):
        raw = (
            "BEGIN:VCALENDAR\nBEGIN:VTIMEZONE\nTZID:Europe/Berlin\nBEGIN:STANDARD\n"
            "DTSTART:19701025T030000\nEND:STANDARD\nEND:VTIMEZONE\n"
            "BEGIN:VEVENT\nDTSTART:20250602T080000Z\nDTEND:20250602T090000Z\n"
        )

        descriptor = EventParser().extract(raw)

        assert descriptor.start == pendulum.datetime(2025, 6, 2, 8, 0, tz="UTC")

    def test_event_without_end_is_not_usable(self):
        raw = _calendar("DTSTAMP:20250601T120000Z", "DTSTART:20250602T080000Z")

        descriptor = EventParser().extract(raw)

        assert descriptor.start == pendulum.datetime(2025, 6, 2, 8, 0, tz="UTC")
        assert descriptor.end is None
        assert not descriptor.is_usable

    def test_unparseable_payload_yields_nothing(self):
        descriptor = EventParser().extract("BEGIN:VEVENT\nthis is not a calendar\nEND:VEVENT")

        assert not descriptor.is_usable

    def test_empty_payload(self):
        assert not EventParser().extract("").is_usable
        assert not EventParser().extract(None).is_usable


class TestParseIcalDate:
    """Tests for single date tokens."""

    def test_compact_utc(self):
        assert parse_ical_date("20230915T143000Z") == pendulum.datetime(2023, 9, 15, 14, 30, tz="UTC")

    def test_compact_local(self):
        parsed = parse_ical_date("20230915T143000", "America/New_York")

        assert parsed == pendulum.datetime(2023, 9, 15, 18, 30, tz="UTC")
        assert parsed.timezone_name == "UTC"

    def test_extended_utc(self):
        assert parse_ical_date("2023-09-15T14:30:00Z") == pendulum.datetime(2023, 9, 15, 14, 30, tz="UTC")

    @pytest.mark.parametrize("token", ["20230915", "tomorrow", "2023-09-15T14:30:00+02:00", "20231315T000000Z"])
    def test_unsupported_or_invalid_tokens(self, token):
        assert parse_ical_date(token) is None
