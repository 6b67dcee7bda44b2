"""
Date helpers shared by analyzers and quota tracking
"""
from datetime import date, datetime, timezone
from typing import Callable, Optional

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Naive UTC now, matching what the store persists"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def month_key(moment: datetime) -> str:
    """Calendar month key, e.g. 2026-10"""
    return moment.strftime("%Y-%m")


def days_between(earlier: datetime, later: datetime) -> int:
    """Whole days from earlier to later (floored)"""
    return int((later - earlier).total_seconds() // 86400)


def entry_day(created_at: datetime, occurred_on: Optional[date] = None) -> date:
    """Calendar day an entry belongs to"""
    return occurred_on if occurred_on is not None else created_at.date()
