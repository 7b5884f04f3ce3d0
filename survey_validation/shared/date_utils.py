"""Shared date utilities.

Timestamps are stored as naive UTC datetimes so the same columns compare
correctly on SQLite and PostgreSQL. Conversion to the local calendar day
happens only when a "today" boundary is needed.
"""

from __future__ import annotations

from datetime import UTC, datetime, time, timedelta
from zoneinfo import ZoneInfo


def utc_now() -> datetime:
    """Current time as a naive UTC datetime."""
    return datetime.now(UTC).replace(tzinfo=None)


def to_iso(value: datetime | None) -> str | None:
    """Render a stored naive-UTC datetime as an ISO8601 string with a Z suffix."""
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(UTC).replace(tzinfo=None)
    return value.isoformat(timespec="seconds") + "Z"


def local_day_bounds(tz_name: str, now: datetime | None = None) -> tuple[datetime, datetime]:
    """Return the [start, end) of the current local day as naive UTC datetimes.

    Args:
        tz_name: IANA time zone the "day" is measured in (e.g., "Asia/Manila")
        now: Reference instant as naive UTC; defaults to the current time

    Returns:
        Tuple of (start, end) suitable for comparing against stored timestamps
    """
    tz = ZoneInfo(tz_name)
    reference = (now or utc_now()).replace(tzinfo=UTC).astimezone(tz)
    local_start = datetime.combine(reference.date(), time.min, tzinfo=tz)
    local_end = local_start + timedelta(days=1)
    return (
        local_start.astimezone(UTC).replace(tzinfo=None),
        local_end.astimezone(UTC).replace(tzinfo=None),
    )
