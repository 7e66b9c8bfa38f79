"""
Configuration management using Pydantic models.

The configuration is built once at process start (from a YAML file or from
the environment) and handed to the services explicitly.
"""

from __future__ import annotations

import math
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator

from .domain.models import WEEKDAY_NAMES, HourRange, WeekdaySchedule

DAY_FIELDS = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")

MASKED = "***MASKED***"


def _to_number(token: str, cast=float) -> float:
    """Convert a config token to a number, ``NaN`` when it does not parse."""
    try:
        return cast(token.strip())
    except (TypeError, ValueError):
        return math.nan


def parse_time_ranges(range_string: Optional[str]) -> List[HourRange]:
    """
    Parse ranges like ``"8-10,14-17"`` into hour ranges.

    No bounds checking happens here; malformed hours become ``NaN`` and are
    ignored later when slots are generated.
    """
    if not range_string:
        return []

    ranges: List[HourRange] = []
    for chunk in range_string.split(","):
        parts = chunk.split("-")
        start = _to_number(parts[0], int)
        end = _to_number(parts[1], int) if len(parts) > 1 else math.nan
        ranges.append(HourRange(start_hour=start, end_hour=end))
    return ranges


def parse_slot_lengths(length_string: Optional[str]) -> List[float]:
    """Parse slot lengths like ``"0.5,1"`` into hours, defaulting to one hour."""
    if not length_string:
        return [1.0]
    return [_to_number(token) for token in length_string.split(",")]


class CalDAVConfig(BaseModel):
    """Connection settings for the remote CalDAV store."""
    url: str = ""
    username: str = ""
    password: str = ""
    calendar_name: str = ""


class AvailabilityConfig(BaseModel):
    """Raw weekly availability as written in the config file."""
    mon: str = ""
    tue: str = ""
    wed: str = ""
    thu: str = ""
    fri: str = ""
    sat: str = ""
    sun: str = ""
    slot_lengths: str = "1"

    @field_validator(*DAY_FIELDS, "slot_lengths", mode="before")
    @classmethod
    def coerce_to_string(cls, value: Any) -> str:
        """Accept YAML numbers and lists (``[0.5, 1]``) as well as plain strings."""
        if value is None:
            return ""
        if isinstance(value, (list, tuple)):
            return ",".join(str(item) for item in value)
        return str(value)

    def to_schedule(self) -> WeekdaySchedule:
        return WeekdaySchedule(
            ranges={day.upper(): parse_time_ranges(getattr(self, day)) for day in DAY_FIELDS}
        )

    def allowed_slot_lengths(self) -> List[float]:
        return parse_slot_lengths(self.slot_lengths)


class MeetingConfig(BaseModel):
    """Settings for the kMeet meeting-room API."""
    api_token: str = ""
    api_endpoint: str = "https://api.infomaniak.com"
    calendar_id: str = ""
    timezone: str = "Europe/Berlin"
    hostname: str = "meet.infomaniak.com"


class LoggingConfig(BaseModel):
    """Logging settings."""
    level: str = "INFO"
    write_debug_files: bool = False
    log_dir: str = "logs"


class AppConfig(BaseModel):
    """Application configuration."""
    caldav: CalDAVConfig = Field(default_factory=CalDAVConfig)
    availability: AvailabilityConfig = Field(default_factory=AvailabilityConfig)
    meeting: MeetingConfig = Field(default_factory=MeetingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    timezone: str = "UTC"

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the timezone is a known IANA name."""
        try:
            pendulum.timezone(value)
        except Exception as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @property
    def schedule(self) -> WeekdaySchedule:
        return self.availability.to_schedule()

    @property
    def slot_lengths(self) -> List[float]:
        return self.availability.allowed_slot_lengths()

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        return cls(**data)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AppConfig":
        """
        Build the configuration from ``CALENDAR_*`` / ``KSUITE_*`` variables.
        """
        env = os.environ if environ is None else environ

        availability = {day: env.get(f"CALENDAR_AVAILABLE_{day.upper()}", "") for day in DAY_FIELDS}
        availability["slot_lengths"] = env.get("CALENDAR_SLOTS_LENGTH") or "1"

        return cls(
            caldav=CalDAVConfig(
                url=env.get("CALENDAR_CALDAV_URL", ""),
                username=env.get("CALENDAR_CALDAV_USER", ""),
                password=env.get("CALENDAR_CALDAV_PASSWORD", ""),
                calendar_name=env.get("CALENDAR_CALDAV_CALENDARNAME", ""),
            ),
            availability=AvailabilityConfig(**availability),
            meeting=MeetingConfig(
                api_token=env.get("KSUITE_API_TOKEN", ""),
                calendar_id=env.get("KSUITE_CALENDAR_ID", ""),
            ),
            logging=LoggingConfig(
                write_debug_files=env.get("WRITE_DEBUG_FILES") == "true",
            ),
            timezone=env.get("CALENDAR_TIMEZONE") or "UTC",
        )

    def describe(self) -> Dict[str, Any]:
        """Summary suitable for display, with the password masked."""
        schedule = self.schedule
        return {
            "url": self.caldav.url,
            "username": self.caldav.username,
            "password": MASKED if self.caldav.password else "",
            "calendar_name": self.caldav.calendar_name,
            "timezone": self.timezone,
            "availability": {
                WEEKDAY_NAMES[key]: schedule.format_day(key) for key in WEEKDAY_NAMES
            },
            "slot_lengths": self.slot_lengths,
        }


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """
    Load the YAML config when one exists, otherwise read the environment.
    """
    path = config_path or get_default_config_path()
    if config_path is not None or path.exists():
        return AppConfig.load_from_yaml(path)
    return AppConfig.from_env()
