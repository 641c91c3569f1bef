# movienight/utils/dates.py
from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_local(ts: datetime, tz: str) -> datetime:
    # naive timestamps are UTC everywhere in this codebase
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(ZoneInfo(tz))


def to_utc_naive(ts: datetime) -> datetime:
    """Storage format: naive UTC (DateTime(timezone=False) columns)."""
    if ts.tzinfo is None:
        return ts
    return ts.astimezone(timezone.utc).replace(tzinfo=None)


def iso_week(d: date) -> tuple[int, int]:
    """
    ISO-8601 (year, week) by the nearest-Thursday rule: the Thursday of
    d's Monday-based week decides both the year and the week number.
    """
    thursday = d + timedelta(days=3 - d.weekday())
    week_no = (thursday.timetuple().tm_yday - 1) // 7 + 1
    return thursday.year, week_no


def week_id_of(ts: datetime | date, tz: str = "UTC") -> str:
    """
    "2026-W08" style week identifier.
    Zero-padded, so plain string comparison orders weeks.
    """
    d = to_local(ts, tz).date() if isinstance(ts, datetime) else ts
    year, week_no = iso_week(d)
    return f"{year}-W{week_no:02d}"


def week_start_of(week_id: str) -> date:
    """Monday of the given week id."""
    year_s, week_s = week_id.split("-W")
    return date.fromisocalendar(int(year_s), int(week_s), 1)
