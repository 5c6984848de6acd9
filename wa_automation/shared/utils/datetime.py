"""Timezone-aware datetime helpers. All timestamps in the system are UTC."""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Current time as an aware UTC datetime"""
    return datetime.now(UTC)


def ensure_utc(value: datetime | None) -> datetime | None:
    """
    Normalize a datetime to aware UTC.

    Naive values are assumed to already be UTC (SQLite drops tzinfo on
    round-trip, PostgreSQL does not).
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def elapsed_ms(started_at: datetime, finished_at: datetime | None = None) -> int:
    """Milliseconds between two instants"""
    finished_at = finished_at or utc_now()
    delta = ensure_utc(finished_at) - ensure_utc(started_at)
    return int(delta.total_seconds() * 1000)
