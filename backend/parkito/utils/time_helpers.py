from datetime import datetime, time
from typing import Union

MINUTES_PER_DAY = 24 * 60


def time_to_string(t: time) -> str:
    """Always return HH:MM format"""
    return t.strftime("%H:%M")


def string_to_time(time_str: str) -> time:
    """Parse 'HH:MM[:SS]' strings, mapping the '24:00' end-of-day sentinel to 23:59."""
    normalized = time_str.strip()
    if len(normalized) == 5:
        normalized += ":00"
    if normalized == "24:00:00":
        return time(23, 59)
    return datetime.strptime(normalized, "%H:%M:%S").time()


def coerce_time(value: Union[time, str]) -> time:
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0, tzinfo=None)
    return string_to_time(value)


def time_to_minutes(t: time) -> int:
    return t.hour * 60 + t.minute


def minutes_to_time(minutes: int) -> time:
    """Inverse of time_to_minutes, clamped to the same day."""
    minutes = max(0, min(MINUTES_PER_DAY - 1, minutes))
    return time(minutes // 60, minutes % 60)


def minutes_between(start: time, end: time) -> int:
    """Minutes from start to end on the same day (negative when end is earlier)."""
    return time_to_minutes(end) - time_to_minutes(start)


def is_end_after_start(start: time, end: time) -> bool:
    return minutes_between(start, end) > 0
