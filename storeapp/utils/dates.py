"""
UTC day arithmetic for "today" and date-range queries.
"""
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Tuple


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def as_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Drop tzinfo after converting to UTC; naive values are taken as UTC already."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def day_bounds(start: date, end: Optional[date] = None) -> Tuple[datetime, datetime]:
    """[start 00:00, day after end 00:00) so the whole end day is included."""
    end = end or start
    lower = datetime.combine(start, datetime.min.time())
    upper = datetime.combine(end + timedelta(days=1), datetime.min.time())
    return lower, upper
