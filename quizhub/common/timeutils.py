"""Timestamp helpers. Timestamps are stored as naive UTC datetimes."""
from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Current time as a naive UTC datetime, matching the stored columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Render a stored timestamp as ISO-8601 with an explicit UTC offset."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def parse_iso(value: str) -> datetime:
    """
    Parse an ISO-8601 timestamp into a naive UTC datetime.

    Accepts a trailing ``Z`` (e.g. ``2025-08-15T10:00:00.000Z``). Values
    without an offset are read as UTC.

    Raises:
        ValueError: if the value is not a valid timestamp
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError("timestamp must be a non-empty string")
    text = value.strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed
