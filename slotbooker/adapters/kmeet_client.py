"""
Infomaniak kMeet API client for creating meeting rooms.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

import requests
from pendulum import DateTime

from ..config import MeetingConfig
from ..domain.exceptions import RoomCreationFailed
from ..services.booking import MeetingRoom

logger = logging.getLogger(__name__)


class KMeetClient:
    """
    Client for the kMeet room API.

    Every call is a single attempt; failures are reported, never retried.
    """

    ROOMS_PATH = "/1/kmeet/rooms"

    def __init__(
        self,
        config: MeetingConfig,
        session: Optional[requests.Session] = None,
        timeout: int = 30,
    ):
        """
        Initialize the kMeet client.

        Args:
            config: API token, endpoint and room defaults
            session: Optional preconfigured requests session
            timeout: Request timeout in seconds
        """
        self.config = config
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = {
            "Authorization": f"Bearer {config.api_token}",
            "Content-Type": "application/json",
        }

    def _api_request(self, method: str, path: str, body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.config.api_endpoint}{path}"
        logger.info("Making %s request to %s", method, path)

        try:
            response = self.session.request(method, url, headers=self.headers, json=body, timeout=self.timeout)
        except requests.exceptions.RequestException as exc:
            raise RoomCreationFailed(f"API request failed: {exc}") from exc

        if not response.ok:
            logger.error("API error: %s %s", response.status_code, response.text)
            raise RoomCreationFailed(f"API error: {response.status_code} {response.text}")

        try:
            return response.json()
        except ValueError as exc:
            raise RoomCreationFailed(f"Invalid API response: {exc}") from exc

    def _format_date(self, dt: DateTime) -> str:
        return dt.in_timezone(self.config.timezone).format("YYYY-MM-DD HH:mm:ss")

    def build_room_payload(
        self,
        name: str,
        start: DateTime,
        end: DateTime,
        description: str = "",
        password_protected: bool = False,
        password: str = "",
    ) -> Dict[str, Any]:
        """Request body for ``POST /1/kmeet/rooms``; times are wall clock in the room timezone."""
        return {
            "starting_at": self._format_date(start),
            "ending_at": self._format_date(end),
            "timezone": self.config.timezone,
            "hostname": self.config.hostname,
            "options": {
                "subject": name,
                "start_audio_muted": False,
                "enable_recording": False,
                "enable_moderator_video": True,
                "start_audio_only": False,
                "lobby_enabled": False,
                "password_enabled": password_protected,
                "e2ee_enabled": False,
            },
            "description": description or "",
            "password_protected": password_protected,
            "password": password or "",
            "calendar_id": self.config.calendar_id,
        }

    def create_meeting_room(
        self,
        name: str,
        start: DateTime,
        end: DateTime,
        description: str = "",
        password_protected: bool = False,
        password: str = "",
    ) -> MeetingRoom:
        """
        Create a kMeet room.

        Raises:
            RoomCreationFailed: On transport errors or an API-level error body
        """
        payload = self.build_room_payload(name, start, end, description, password_protected, password)
        logger.debug("Creating meeting room with payload: %s", {**payload, "password": "***"})

        try:
            data = self._api_request("POST", self.ROOMS_PATH, payload)
        except RoomCreationFailed as exc:
            raise RoomCreationFailed(f"Failed to create meeting room: {exc}") from exc

        error = data.get("error")
        if error:
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise RoomCreationFailed(f"Failed to create meeting room: {message}")

        result = data.get("result") or {}
        if "id" not in result or "url" not in result:
            raise RoomCreationFailed("Failed to create meeting room: response carries no room")

        return MeetingRoom(
            id=str(result["id"]),
            url=result["url"],
            start=result.get("start_at", ""),
            end=result.get("end_at", ""),
            room_id=str(result.get("room_id", "")),
            name=result.get("name", name),
        )

    async def create_room(
        self,
        name: str,
        start: DateTime,
        end: DateTime,
        description: str = "",
        password_protected: bool = False,
        password: str = "",
    ) -> MeetingRoom:
        return await asyncio.to_thread(
            self.create_meeting_room,
            name,
            start,
            end,
            description,
            password_protected,
            password,
        )
