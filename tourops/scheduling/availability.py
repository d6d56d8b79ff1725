"""
Utility functions for date-range checks.
"""
from datetime import datetime, date, timedelta
from typing import Optional

VIEWS = ("day", "week", "month")


def parse_date(value) -> Optional[date]:
    """
    date / datetime / 'YYYY-MM-DD' (or full ISO timestamp) → date.
    Anything unreadable → None.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if len(text) == 10:
        try:
            return date.fromisoformat(text)
        except ValueError:
            return None
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def ranges_overlap(start: date, end: date, other_start: date, other_end: date) -> bool:
    """Inclusive on both ends: a trip ending on the day another starts overlaps it."""
    return start <= other_end and end >= other_start


def date_range(start: date, days: int) -> list[date]:
    """`days` consecutive calendar days from `start`."""
    return [start + timedelta(days=i) for i in range(max(days, 0))]


def week_dates(base: date) -> list[date]:
    """Sun–Sat dates of the week containing `base`."""
    start = base - timedelta(days=(base.weekday() + 1) % 7)
    return date_range(start, 7)


def view_window(start: date, view: str) -> date:
    """Suggested end date for a calendar view starting on `start`."""
    if view == "day":
        return start
    if view == "month":
        return start + timedelta(days=29)
    return start + timedelta(days=6)
