from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Optional

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_optional_date(value: Optional[str], field_name: str) -> Optional[date]:
    v = (value or "").strip()
    if not v:
        return None
    try:
        return parse_iso_date(v)
    except ValueError:
        raise ValidationError(f"{field_name} must be a date (YYYY-MM-DD)")


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def today_local() -> date:
    return now_local().date()


def iso(value: Optional[date]) -> Optional[str]:
    return value.strftime("%Y-%m-%d") if value else None


def days_between(start: date, end: date) -> int:
    """Signed day difference (end - start)."""
    return (end - start).days


def start_of_week(value: date) -> date:
    """Monday of the week containing value."""
    return value - timedelta(days=value.weekday())


def start_of_month(value: date) -> date:
    return value.replace(day=1)


def end_of_month(value: date) -> date:
    next_month = (value.replace(day=28) + timedelta(days=4)).replace(day=1)
    return next_month - timedelta(days=1)


def previous_month(value: date) -> date:
    """Any day in the month before value (the first)."""
    return start_of_month(start_of_month(value) - timedelta(days=1))


def format_day(value: date) -> str:
    """E.g. 'Jan 05, 2026'."""
    return value.strftime("%b %d, %Y")
