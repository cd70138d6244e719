"""
Utility helpers shared across routers/services.

Timestamps are stored in UTC. SQLite hands them back naive, so everything that
reads a datetime out of the database goes through `as_utc` before comparing or
formatting it in the display timezone.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from .config import get_settings


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def local_tz() -> ZoneInfo:
    return ZoneInfo(get_settings().timezone)


def as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_local(value: datetime | None) -> datetime | None:
    normalized = as_utc(value)
    if normalized is None:
        return None
    return normalized.astimezone(local_tz())


def month_key(value: datetime | None) -> str:
    """`YYYY-MM` of the timestamp in the display timezone ("" when missing)."""
    local = to_local(value)
    return local.strftime("%Y-%m") if local else ""


def parse_month_key(value: str | None) -> tuple[int, int] | None:
    raw = (value or "").strip()
    parts = raw.split("-")
    if len(parts) != 2 or len(parts[0]) != 4 or len(parts[1]) != 2:
        return None
    try:
        year, month = int(parts[0]), int(parts[1])
    except ValueError:
        return None
    if not 1 <= month <= 12:
        return None
    return year, month


def month_bounds(year: int, month: int) -> tuple[datetime, datetime]:
    """UTC [start, end) of a calendar month in the display timezone."""
    tz = local_tz()
    start = datetime(year, month, 1, tzinfo=tz)
    if month == 12:
        end = datetime(year + 1, 1, 1, tzinfo=tz)
    else:
        end = datetime(year, month + 1, 1, tzinfo=tz)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def day_bounds(now: datetime | None = None) -> tuple[datetime, datetime]:
    """UTC [start, end) of the current local day."""
    local_now = to_local(now or utcnow())
    start = local_now.replace(hour=0, minute=0, second=0, microsecond=0)
    end = start + timedelta(days=1)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def current_month_bounds(now: datetime | None = None) -> tuple[datetime, datetime]:
    local_now = to_local(now or utcnow())
    return month_bounds(local_now.year, local_now.month)


def format_datetime(value: datetime | None, *, with_time: bool = True) -> str:
    local = to_local(value)
    if not local:
        return ""
    text = f"{local.year}年{local.month}月{local.day}日"
    if with_time:
        text += local.strftime(" %H:%M")
    return text


def format_month(key: str) -> str:
    parsed = parse_month_key(key)
    if not parsed:
        return key
    return f"{parsed[0]}年{parsed[1]}月"
