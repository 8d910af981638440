"""Timezone conversion helpers.

Every timestamp that enters or leaves the service passes through here so the
rest of the code only ever sees timezone-aware UTC datetimes.
"""

from datetime import UTC, datetime
from zoneinfo import ZoneInfo


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(tz=UTC)


def to_utc(value: datetime) -> datetime:
    """Normalise a datetime to UTC, treating naive values as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def parse_timestamp(raw: str) -> datetime:
    """Parse an ISO-8601 string (a trailing ``Z`` is accepted) into UTC."""
    cleaned = raw.strip()
    if cleaned.endswith(("Z", "z")):
        cleaned = f"{cleaned[:-1]}+00:00"
    return to_utc(datetime.fromisoformat(cleaned))


def isoformat_utc(value: datetime | None) -> str | None:
    """Format a datetime as an ISO-8601 UTC string, passing ``None`` through."""
    if value is None:
        return None
    return to_utc(value).isoformat()


def to_local(value: datetime, timezone_name: str) -> datetime:
    """Convert a datetime to the named IANA timezone."""
    return to_utc(value).astimezone(ZoneInfo(timezone_name))
