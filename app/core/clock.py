import time
from datetime import datetime, timezone
from typing import Callable, Optional

# Returns epoch seconds; tests swap in a controllable clock
Clock = Callable[[], float]

system_clock: Clock = time.time


def now_ms(clock: Clock) -> int:
    return int(clock() * 1000)


def to_datetime(clock: Clock) -> datetime:
    return datetime.fromtimestamp(clock(), tz=timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes from the store as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
