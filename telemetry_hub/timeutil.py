"""
Telemetry Hub - Timestamp Helpers

All timestamps are kept as naive UTC datetimes in the store and rendered
as ISO-8601 with a trailing ``Z`` on the wire.
"""

from datetime import datetime, time, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp into a naive UTC datetime.

    Timestamps without an offset are taken as UTC.

    Raises:
        ValueError: If the value is not a valid ISO-8601 timestamp
    """
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        try:
            parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
        except OverflowError as e:
            raise ValueError(f"timestamp out of range: {value!r}") from e
    return parsed


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.isoformat() + "Z"


def parse_time_of_day(value: str) -> time:
    """Parse ``HH:MM`` or ``HH:MM:SS`` into a time.

    Raises:
        ValueError: If the value is not a valid time of day
    """
    parts = value.strip().split(":")
    if len(parts) not in (2, 3) or not all(p.isdigit() for p in parts):
        raise ValueError(f"invalid time of day: {value!r}")
    return time(*(int(p) for p in parts))


def format_time_of_day(value: time) -> str:
    return value.strftime("%H:%M:%S")
