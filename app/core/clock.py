"""
Time source for the pricing engine.

Early-bird eligibility, coupon validity windows and refund lead times all
depend on "now", so services take a clock instead of calling datetime.now().
"""

from datetime import datetime, timezone, timedelta
from typing import Optional

SECONDS_PER_DAY = 24 * 60 * 60


class Clock:
    """System clock returning aware UTC datetimes"""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock(Clock):
    """Clock frozen at a given instant"""

    def __init__(self, instant: datetime):
        self.instant = ensure_aware(instant)

    def now(self) -> datetime:
        return self.instant

    def advance(self, **kwargs) -> None:
        """Move the clock forward by a timedelta given as keyword arguments"""
        self.instant = self.instant + timedelta(**kwargs)


def ensure_aware(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes (as stored by some drivers) as UTC"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def whole_days_between(start: datetime, end: datetime) -> int:
    """
    Whole days from start to end, floored.

    6 days and 23 hours counts as 6; an end 1 hour before start counts as -1.
    """
    diff = ensure_aware(end) - ensure_aware(start)
    return int(diff.total_seconds() // SECONDS_PER_DAY)


system_clock = Clock()
