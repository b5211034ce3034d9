from datetime import datetime, timezone
from typing import Callable, Optional

Clock = Callable[[], datetime]


def make_aware(dt: Optional[datetime]) -> Optional[datetime]:
    """Ensure datetime is timezone-aware (UTC)"""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def get_utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime"""
    return datetime.now(timezone.utc)


def elapsed_ms(start: datetime, end: datetime) -> int:
    """Whole milliseconds between two datetimes."""
    return int((make_aware(end) - make_aware(start)).total_seconds() * 1000)
