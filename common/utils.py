from __future__ import annotations

from datetime import datetime, timezone
from email.utils import format_datetime


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def iso_ms(dt: datetime) -> str:
    """UTC ISO-8601 timestamp with millisecond precision and 'Z' suffix."""
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def http_date(dt: datetime) -> str:
    """
    RFC 7231 IMF-fixdate, e.g. 'Mon, 19 Oct 2026 10:55:00 GMT'.
    Naive datetimes are treated as UTC.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return format_datetime(dt.astimezone(timezone.utc), usegmt=True)


def mb(n_bytes: int) -> float:
    return round(n_bytes / 1024.0 / 1024.0, 2)
