from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta

# Nhãn thứ trong tuần theo date.weekday() (0 = Thứ 2)
WEEKDAY_LABELS = ("T2", "T3", "T4", "T5", "T6", "T7", "CN")


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_vn_date(value: str) -> date | None:
    """Parse DD/MM/YYYY (as typed in spreadsheets) into date, None if unreadable."""
    parts = (value or "").strip().split("/")
    if len(parts) != 3:
        return None
    try:
        day, month, year = (int(p) for p in parts)
        return date(year, month, day)
    except ValueError:
        return None


def today_local() -> date:
    """Current local date.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now().date()


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def month_range(year: int, month: int) -> tuple[date, date]:
    """First and last day of a month (inclusive)."""
    return date(year, month, 1), date(year, month, days_in_month(year, month))


def previous_month(year: int, month: int) -> tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1


def previous_day(value: date) -> date:
    return value - timedelta(days=1)


def weekday_label(value: date) -> str:
    return WEEKDAY_LABELS[value.weekday()]
