# slotkeeper/core/time_ranges.py
"""
Time-of-day range helpers.

Ranges are half-open ``[start, end)`` and compared as minutes since midnight,
so ranges that only touch (08:55 end, 08:55 start) do not overlap.
"""

from datetime import time
from typing import Union

from .exceptions import ValidationException

MINUTES_PER_DAY = 24 * 60

TimeLike = Union[time, int, str]


def time_to_minutes(value: TimeLike) -> int:
    """Convert a ``time``, minute count or "HH:MM" string to minutes since midnight."""
    if isinstance(value, bool):
        raise TypeError("bool is not a time value")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return parse_hhmm(value)
    return value.hour * 60 + value.minute


def minutes_to_time(minutes: int) -> time:
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise ValueError(f"{minutes} is outside a single day")
    return time(minutes // 60, minutes % 60)


def parse_hhmm(value: str) -> int:
    """Parse "HH:MM" (or "HH:MM:SS") into minutes since midnight."""
    parts = value.strip().split(":")
    if len(parts) not in (2, 3):
        raise ValidationException(f"Invalid time '{value}', expected HH:MM")
    try:
        hours, minutes = int(parts[0]), int(parts[1])
    except ValueError as exc:
        raise ValidationException(f"Invalid time '{value}', expected HH:MM") from exc
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        raise ValidationException(f"Invalid time '{value}', expected HH:MM")
    return hours * 60 + minutes


def format_hhmm(value: TimeLike) -> str:
    minutes = time_to_minutes(value)
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def overlaps(a_start: TimeLike, a_end: TimeLike, b_start: TimeLike, b_end: TimeLike) -> bool:
    """Return True iff ``[a_start, a_end)`` and ``[b_start, b_end)`` intersect."""
    return time_to_minutes(a_start) < time_to_minutes(b_end) and time_to_minutes(
        b_start
    ) < time_to_minutes(a_end)


def contains(
    outer_start: TimeLike, outer_end: TimeLike, inner_start: TimeLike, inner_end: TimeLike
) -> bool:
    """Return True iff the inner range lies entirely inside the outer range."""
    return time_to_minutes(outer_start) <= time_to_minutes(inner_start) and time_to_minutes(
        inner_end
    ) <= time_to_minutes(outer_end)


def duration_minutes(start: TimeLike, end: TimeLike) -> int:
    return time_to_minutes(end) - time_to_minutes(start)
