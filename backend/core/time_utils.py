"""UTC helpers shared by hydration, serving, and the sync job."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from email.utils import format_datetime


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops tzinfo) and convert aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def add_seconds(value: datetime, seconds: int) -> datetime:
    return value + timedelta(seconds=seconds)


def to_iso(value: datetime) -> str:
    """ISO8601 in UTC with millisecond precision and a trailing Z."""
    return ensure_utc(value).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def iso_month(value: datetime) -> str:
    return ensure_utc(value).strftime("%Y-%m")


def iso_date(value: datetime) -> str:
    return ensure_utc(value).strftime("%Y-%m-%d")


def http_date(value: datetime) -> str:
    """RFC 7231 HTTP-date for Last-Modified."""
    return format_datetime(ensure_utc(value), usegmt=True)
