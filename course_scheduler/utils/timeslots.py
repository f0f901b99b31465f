from __future__ import annotations

import re
from typing import List, NamedTuple

from course_scheduler.errors import InvalidInput

MINUTES_PER_DAY = 24 * 60

# 0 = Sunday ... 6 = Saturday
DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
DAY_ALIASES = {name.lower(): idx for idx, name in enumerate(DAY_NAMES)}

TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")


class Segment(NamedTuple):
    weekday: int
    start_minute: int
    end_minute: int


def normalize_day_of_week(day_of_week: str | None) -> int:
    """
    "Tuesday" / " tuesday " -> 2
    """
    key = (day_of_week or "").strip().lower()
    if key not in DAY_ALIASES:
        raise InvalidInput(
            "Invalid dayOfWeek. Expected a day name from Sunday to Saturday",
            day_of_week=day_of_week,
        )
    return DAY_ALIASES[key]


def day_index_to_name(day_index: int) -> str:
    return DAY_NAMES[day_index % 7]


def parse_time_to_minutes(time_str: str | None) -> int:
    """
    "10:30" -> 630, "10:30:15" -> 631

    Seconds are rounded up to the next minute so a second-granular slot is
    never treated as shorter than it really is.
    """
    t = (time_str or "").strip()
    match = TIME_PATTERN.match(t)
    if not match:
        raise InvalidInput("Invalid time format. Expected HH:MM or HH:MM:SS", time=time_str)

    hours = int(match.group(1))
    minutes = int(match.group(2))
    seconds = int(match.group(3)) if match.group(3) else 0
    if hours > 23 or minutes > 59 or seconds > 59:
        raise InvalidInput("Invalid time value. Hours 0-23, minutes/seconds 0-59", time=time_str)

    return hours * 60 + minutes + (1 if seconds > 0 else 0)


def split_into_segments(weekday: int, start_minute: int, end_minute: int) -> List[Segment]:
    """
    (2, 600, 720)  -> [(2, 600, 720)]
    (2, 1320, 120) -> [(2, 1320, 1440), (3, 0, 120)]   # crosses midnight
    """
    if start_minute == end_minute:
        raise InvalidInput("Start time and end time cannot be the same")

    if start_minute < end_minute:
        return [Segment(weekday, start_minute, end_minute)]

    next_day = (weekday + 1) % 7
    return [
        Segment(weekday, start_minute, MINUTES_PER_DAY),
        Segment(next_day, 0, end_minute),
    ]


def slot_segments(day_of_week: str, start_time: str, end_time: str) -> List[Segment]:
    """Raw (day, start, end) tokens -> canonical segments."""
    return split_into_segments(
        normalize_day_of_week(day_of_week),
        parse_time_to_minutes(start_time),
        parse_time_to_minutes(end_time),
    )
