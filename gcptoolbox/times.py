"""Helpers for day boundaries in Japan Standard Time and UTC."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone, tzinfo

try:
    from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
except ImportError:  # pragma: no cover
    ZoneInfo = None  # type: ignore[assignment,misc]
    ZoneInfoNotFoundError = Exception  # type: ignore[assignment,misc]


def _load_jst() -> tzinfo:
    if ZoneInfo is not None:
        try:
            return ZoneInfo("Asia/Tokyo")
        except (ZoneInfoNotFoundError, ValueError, OSError):
            pass
    # Japan has observed no daylight saving time since 1951.
    return timezone(timedelta(hours=9), "JST")


JST: tzinfo = _load_jst()


def jst_day_change_time(t: datetime) -> datetime:
    """Return 00:00:00 JST of the calendar date of ``t`` in its own zone."""
    return datetime(t.year, t.month, t.day, tzinfo=JST)


def utc_day_change_time(t: datetime) -> datetime:
    """Return 00:00:00 UTC of the calendar date of ``t`` in its own zone."""
    return datetime(t.year, t.month, t.day, tzinfo=timezone.utc)