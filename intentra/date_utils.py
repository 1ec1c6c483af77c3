"""Timestamp normalization helpers shared by the buffer, scanner and payloads."""
from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    dt = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_rfc3339_nano(value: datetime | None) -> str:
    """Format like RFC 3339 with fractional seconds, trailing zeros trimmed.

    `2026-02-16T10:00:00.120000+00:00` becomes `2026-02-16T10:00:00.12Z`.
    """
    if value is None:
        return ""
    dt = ensure_utc(value)
    base = dt.strftime("%Y-%m-%dT%H:%M:%S")
    if dt.microsecond:
        fraction = f"{dt.microsecond:06d}".rstrip("0")
        base = f"{base}.{fraction}"
    return f"{base}Z"


def duration_ms(start: datetime | None, end: datetime | None) -> int:
    if start is None or end is None:
        return 0
    return int((ensure_utc(end) - ensure_utc(start)).total_seconds() * 1000)
