"""
Tests for the command line interface in mock mode.
"""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from slotbooker.cli.app import app

runner = CliRunner()

MEETING_9_TO_10 = (
    "BEGIN:VCALENDAR\r\nVERSION:2.0\r\nPRODID:-//Test//EN\r\n"
    "BEGIN:VEVENT\r\nUID:busy@example.com\r\nDTSTAMP:20250601T000000Z\r\n"
    "DTSTART:20250602T090000Z\r\nDTEND:20250602T100000Z\r\nSUMMARY:Review\r\n"
    "END:VEVENT\r\nEND:VCALENDAR\r\n"
)


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(
        "timezone: UTC\n"
        "caldav:\n"
        "  url: https://dav.example.com/\n"
        "  username: me\n"
        "  password: hunter2\n"
        "  calendar_name: Work\n"
        "availability:\n"
        "  mon: 8-12\n"
        "  slot_lengths: \"0.5,1\"\n"
        "logging:\n"
        "  level: ERROR\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def mock_data(tmp_path: Path) -> Path:
    directory = tmp_path / "events"
    directory.mkdir()
    (directory / "review.ics").write_text(MEETING_9_TO_10, encoding="utf-8")
    return directory


def _args(config_file: Path, mock_data: Path, *extra: str):
    return [*extra, "--config", str(config_file), "--mock", "--mock-data", str(mock_data)]


def test_slots_json(config_file, mock_data):
    result = runner.invoke(app, _args(config_file, mock_data, "slots", "2025-06-02", "--json"))

    assert result.exit_code == 0
    body = json.loads(result.stdout)
    assert [slot["start"] for slot in body] == [
        "2025-06-02T08:00:00.000Z",
        "2025-06-02T10:00:00.000Z",
        "2025-06-02T10:30:00.000Z",
        "2025-06-02T11:00:00.000Z",
    ]
    assert body[0]["end"] == "2025-06-02T09:00:00.000Z"


def test_slots_on_unavailable_day(config_file, mock_data):
    result = runner.invoke(app, _args(config_file, mock_data, "slots", "2025-06-01", "--json"))

    assert result.exit_code == 0
    assert json.loads(result.stdout) == []


def test_slots_invalid_date(config_file, mock_data):
    result = runner.invoke(app, _args(config_file, mock_data, "slots", "02.06.2025", "--json"))

    assert result.exit_code == 1
    assert json.loads(result.stdout) == {"error": "Invalid date format. Use YYYY-MM-DD."}


def test_slots_invalid_length(config_file, mock_data):
    result = runner.invoke(app, _args(config_file, mock_data, "slots", "2025-06-02", "--length", "2", "--json"))

    assert result.exit_code == 1
    assert json.loads(result.stdout) == {"error": "Invalid slot length. Allowed values: 0.5, 1"}


def test_book_json(config_file, mock_data):
    result = runner.invoke(
        app,
        _args(
            config_file,
            mock_data,
            "book",
            "Sync",
            "--start",
            "2025-06-02T10:00:00.000Z",
            "--duration",
            "1",
            "-p",
            "a@x.io",
            "--json",
        ),
    )

    assert result.exit_code == 0
    assert json.loads(result.stdout) == {
        "success": True,
        "meetingUrl": "https://kmeet.infomaniak.com/mock-1",
        "meetingId": "mock-1",
    }


def test_book_busy_slot(config_file, mock_data):
    result = runner.invoke(
        app,
        _args(config_file, mock_data, "book", "Sync", "--start", "2025-06-02T09:00:00Z", "--json"),
    )

    assert result.exit_code == 1
    assert json.loads(result.stdout) == {
        "success": False,
        "error": "The requested time slot is no longer available",
    }


def test_show_config_masks_password(config_file):
    result = runner.invoke(app, ["show-config", "--config", str(config_file)])

    assert result.exit_code == 0
    assert "***MASKED***" in result.stdout
    assert "hunter2" not in result.stdout
    assert "Monday" in result.stdout


def test_missing_config_file(tmp_path):
    result = runner.invoke(app, ["show-config", "--config", str(tmp_path / "nope.yaml")])

    assert result.exit_code == 1


def test_connection_in_mock_mode(config_file):
    result = runner.invoke(app, ["test-connection", "--config", str(config_file), "--mock"])

    assert result.exit_code == 0
    assert "CalDAV connection successful" in result.stdout
    assert "Mock Calendar (mock://calendar/)" in result.stdout
