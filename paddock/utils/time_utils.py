"""
Timezone-aware datetime utilities.
All timestamps in this project are stored and processed in UTC.
"""
from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Return current UTC datetime (timezone-aware)."""
    return datetime.now(tz=timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """
    Convert a datetime to UTC. If naive, assume it is already UTC.

    Args:
        dt: Input datetime (aware or naive).

    Returns:
        UTC-aware datetime.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_openf1_timestamp(dt: datetime) -> str:
    """
    Format a datetime the way OpenF1 expects it inside a query filter.

    Millisecond precision, UTC, no offset suffix: '2024-03-02T15:00:00.123'.
    """
    dt = to_utc(dt)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}"


def lap_window(date_start: datetime, lap_duration: float) -> tuple[datetime, datetime]:
    """
    Compute the [start, end] time window covered by a lap.

    The duration is given in fractional seconds and applied at
    millisecond resolution.
    """
    duration_ms = round(lap_duration * 1000)
    start = to_utc(date_start)
    return start, start + timedelta(milliseconds=duration_ms)


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def to_epoch_ms(dt: datetime) -> int:
    """Whole milliseconds since the Unix epoch (sub-millisecond part truncated)."""
    return (to_utc(dt) - _EPOCH) // timedelta(milliseconds=1)
