from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from basedai.tools.base import Tool, ToolDescriptor, ToolInvocation, ToolParameter

FALLBACK_TIMEZONE = "UTC"

CITY_TIMEZONES: dict[str, str] = {
    "new york": "America/New_York",
    "los angeles": "America/Los_Angeles",
    "denver": "America/Denver",
    "phoenix": "America/Phoenix",
    "dayton": "America/New_York",
    "houston": "America/Chicago",
    "dallas": "America/Chicago",
    "san antonio": "America/Chicago",
    "san francisco": "America/Los_Angeles",
    "seattle": "America/Los_Angeles",
    "minneapolis": "America/Chicago",
    "washington dc": "America/New_York",
    "detroit": "America/Detroit",
    "boulder": "America/Denver",
    "cleveland": "America/New_York",
    "portland": "America/Los_Angeles",
    "albuquerque": "America/Denver",
    "salt lake city": "America/Denver",
    "sacramento": "America/Los_Angeles",
    "oklahoma city": "America/Chicago",
    "charleston": "America/New_York",
    "new orleans": "America/Chicago",
    "tampa": "America/New_York",
    "austin": "America/Chicago",
    "columbus": "America/New_York",
    "cincinnati": "America/New_York",
    "chicago": "America/Chicago",
    "london": "Europe/London",
    "paris": "Europe/Paris",
    "berlin": "Europe/Berlin",
    "tokyo": "Asia/Tokyo",
    "sydney": "Australia/Sydney",
    "utc": "UTC",
}


def resolve_timezone(location: str) -> str:
    """City name first, then the text as an IANA zone id, then UTC."""
    city_zone = CITY_TIMEZONES.get(location.strip().lower())
    if city_zone:
        return city_zone
    try:
        return ZoneInfo(location.strip()).key
    except (ZoneInfoNotFoundError, ValueError, OSError):
        return FALLBACK_TIMEZONE


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DateTimeTool(Tool):
    descriptor = ToolDescriptor(
        name="get_date_time",
        description=(
            "Retrieves the current date and time. If no location is provided, uses the server's default timezone. "
            "Otherwise, accepts a city name (e.g., 'New York', 'London') or IANA timezone ID "
            "(e.g., 'America/New_York', 'Europe/London'). Do not send States, Provinces, or Countries. "
            "Supports common cities; falls back to UTC if unrecognized."
        ),
        optional_parameters=(
            ToolParameter(
                name="location",
                description=(
                    "Optional city name or IANA timezone ID for the desired timezone. "
                    "Do not send States, Provinces, or Countries."
                ),
            ),
        ),
    )

    def __init__(self, default_timezone: str = FALLBACK_TIMEZONE, clock: Callable[[], datetime] = _utcnow) -> None:
        self.default_timezone = default_timezone
        self.clock = clock

    async def execute(self, invocation: ToolInvocation) -> str:
        location = invocation.arguments.get("location")
        zone_id = resolve_timezone(location) if location else self.default_timezone
        now = self.clock().astimezone(ZoneInfo(zone_id))
        return f"{now:%Y-%m-%d %H:%M:%S} in {zone_id} timezone"
