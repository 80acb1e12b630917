"""Date manipulation utilities"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Timezone-aware current UTC time"""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (e.g. read back from SQLite) as UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def within_window(moment: Optional[datetime], window: timedelta, now: Optional[datetime] = None) -> bool:
    """True when moment happened at most `window` ago"""
    if moment is None:
        return False
    now = now or utcnow()
    return as_utc(now) - as_utc(moment) <= window
