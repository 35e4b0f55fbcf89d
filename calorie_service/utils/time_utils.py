# utils/time_utils.py
from datetime import datetime, date, timedelta, timezone
from typing import Optional

ONE_MICROSECOND = timedelta(microseconds=1)


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (the storage convention)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def next_timestamp(latest: Optional[datetime]) -> datetime:
    """
    Timestamp for a new row that must sort strictly after ``latest``.

    Clock readings can repeat (or step backwards) between two writes, so the
    reading is bumped one microsecond past the latest stored value when needed.
    """
    now = utcnow()
    if latest is not None and now <= latest:
        return latest + ONE_MICROSECOND
    return now


def to_iso(value: datetime) -> str:
    """Serialize a naive UTC datetime as ``YYYY-MM-DDTHH:MM:SS.ffffffZ``."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def parse_iso(value: str) -> datetime:
    """
    Parse an ISO-8601 timestamp into a naive UTC datetime.

    Accepts a trailing ``Z``, explicit offsets and offset-less values (taken
    as UTC). Raises ValueError on malformed input.
    """
    text = value.strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_day(value: str) -> date:
    """Parse a ``YYYY-MM-DD`` calendar day. Raises ValueError otherwise."""
    return datetime.strptime(value.strip(), "%Y-%m-%d").date()
