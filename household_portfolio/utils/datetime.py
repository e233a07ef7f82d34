"""UTC helpers for rate timestamps, cache ages and snapshot times."""

from __future__ import annotations

from datetime import UTC, datetime


def ensure_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime; naive values are taken as UTC.

    SQLite hands back naive datetimes for ``DateTime(timezone=True)`` columns,
    so every timestamp read from storage passes through here.
    """

    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def utc_now() -> datetime:
    return datetime.now(UTC)


def seconds_since(value: datetime, now: datetime | None = None) -> float:
    """Elapsed seconds from ``value`` to ``now`` (default: the current time)."""

    reference = ensure_utc(now) if now is not None else utc_now()
    return (reference - ensure_utc(value)).total_seconds()


def isoformat_or(value: datetime | None, default: str | None = None) -> str | None:
    """ISO-8601 text for ``value`` in UTC, or ``default`` when the table was never fetched."""

    return ensure_utc(value).isoformat() if value is not None else default
