"""
Tests for the kMeet room client using a fake HTTP session.
"""

import asyncio

import pendulum
import pytest
import requests

from slotbooker.adapters.kmeet_client import KMeetClient
from slotbooker.config import MeetingConfig
from slotbooker.domain.exceptions import RoomCreationFailed

START = pendulum.datetime(2025, 6, 2, 8, 0, tz="UTC")
END = pendulum.datetime(2025, 6, 2, 9, 0, tz="UTC")


class FakeResponse:
    def __init__(self, payload=None, status_code=200, text=""):
        self._payload = payload
        self.status_code = status_code
        self.text = text

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


class FakeSession:
    def __init__(self, response):
        self._response = response
        self.calls = []

    def request(self, method, url, headers=None, json=None, timeout=None):
        self.calls.append({"method": method, "url": url, "headers": headers, "json": json})
        if isinstance(self._response, Exception):
            raise self._response
        return self._response


def _client(response):
    session = FakeSession(response)
    config = MeetingConfig(api_token="token", calendar_id="42")
    return KMeetClient(config, session=session), session


def test_payload_uses_room_timezone_wall_clock():
    client, _ = _client(None)

    payload = client.build_room_payload("Sync", START, END, description="Weekly")

    assert payload["starting_at"] == "2025-06-02 10:00:00"
    assert payload["ending_at"] == "2025-06-02 11:00:00"
    assert payload["timezone"] == "Europe/Berlin"
    assert payload["hostname"] == "meet.infomaniak.com"
    assert payload["options"]["subject"] == "Sync"
    assert payload["calendar_id"] == "42"
    assert payload["password_protected"] is False


def test_create_room():
    response = FakeResponse(
        {"result": {"id": 7, "url": "https://kmeet.infomaniak.com/abc", "room_id": "abc", "name": "Sync"}}
    )
    client, session = _client(response)

    room = asyncio.run(client.create_room("Sync", START, END))

    assert room.id == "7"
    assert room.url == "https://kmeet.infomaniak.com/abc"
    call = session.calls[0]
    assert call["method"] == "POST"
    assert call["url"] == "https://api.infomaniak.com/1/kmeet/rooms"
    assert call["headers"]["Authorization"] == "Bearer token"


def test_error_body():
    client, _ = _client(FakeResponse({"result": "error", "error": {"code": "forbidden", "message": "Access denied"}}))

    with pytest.raises(RoomCreationFailed, match="Failed to create meeting room: Access denied"):
        client.create_meeting_room("Sync", START, END)


def test_http_error():
    client, _ = _client(FakeResponse(status_code=500, text="Internal Server Error"))

    with pytest.raises(RoomCreationFailed, match="API error: 500 Internal Server Error"):
        client.create_meeting_room("Sync", START, END)


def test_connection_error():
    client, _ = _client(requests.exceptions.ConnectionError("refused"))

    with pytest.raises(RoomCreationFailed, match="API request failed: refused"):
        client.create_meeting_room("Sync", START, END)


def test_response_without_room():
    client, _ = _client(FakeResponse({"result": {}}))

    with pytest.raises(RoomCreationFailed, match="no room"):
        client.create_meeting_room("Sync", START, END)


def test_invalid_json():
    client, _ = _client(FakeResponse(None))

    with pytest.raises(RoomCreationFailed, match="Invalid API response"):
        client.create_meeting_room("Sync", START, END)
