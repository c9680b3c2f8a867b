# betiq/timeutil.py
from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Callable, Optional

# All stored datetimes are naive UTC.
Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_day(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        return None


def upcoming_days(today: date, count: int) -> list[date]:
    """today, tomorrow, ... (count days total)"""
    return [today + timedelta(days=i) for i in range(max(0, count))]
