"""Timestamp helpers shared by services and the data store."""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Current instant as an aware UTC datetime."""
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def to_iso(value: datetime) -> str:
    """Serialize a datetime with fixed width so stored timestamps sort lexically."""
    return ensure_utc(value).isoformat(timespec="microseconds")


def parse_iso(value: str) -> datetime:
    """Parse a stored timestamp (accepts a trailing "Z")."""
    return ensure_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
