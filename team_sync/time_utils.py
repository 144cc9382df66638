from __future__ import annotations

import math
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Tuple

TIMESLOT_SEPARATOR = "_"
TIMESTAMP_FLAGS = frozenset("tTdDfFR")


def parse_time_label(raw: str) -> time:
    """Parse a 12-hour label such as ``"6:30 PM"`` into a wall-clock time."""
    parts = raw.strip().split(" ")
    if len(parts) != 2:
        raise ValueError(f"Time label {raw!r} is not in 'H:MM AM|PM' form.")
    clock, modifier = parts
    modifier = modifier.upper()
    if modifier not in ("AM", "PM"):
        raise ValueError(f"Time label {raw!r} has no AM/PM marker.")
    hours_raw, _, minutes_raw = clock.partition(":")
    if not hours_raw.isdigit() or not minutes_raw.isdigit() or len(minutes_raw) != 2:
        raise ValueError(f"Time label {raw!r} has a malformed clock value.")
    hours, minutes = int(hours_raw), int(minutes_raw)
    if not 1 <= hours <= 12 or minutes > 59:
        raise ValueError(f"Time label {raw!r} is out of range.")

    if modifier == "AM" and hours == 12:
        hours = 0
    elif modifier == "PM" and hours < 12:
        hours += 12
    return time(hours, minutes)


def format_time_label(value: time) -> str:
    hour = value.hour % 12 or 12
    modifier = "AM" if value.hour < 12 else "PM"
    return f"{hour}:{value.minute:02d} {modifier}"


def parse_date_key(raw: str) -> date:
    return datetime.strptime(raw.strip(), "%Y-%m-%d").date()


def timeslot_key(day: date, label: str) -> str:
    return f"{day.isoformat()}{TIMESLOT_SEPARATOR}{label}"


def parse_timeslot(key: str) -> Tuple[date, str]:
    """Split a stored ``YYYY-MM-DD_H:MM AM`` key, validating both halves."""
    date_raw, separator, label = key.partition(TIMESLOT_SEPARATOR)
    if not separator:
        raise ValueError(f"Timeslot {key!r} has no '{TIMESLOT_SEPARATOR}' separator.")
    day = parse_date_key(date_raw)
    parse_time_label(label)
    return day, label


def vote_key(date_key: str, label: str) -> str:
    return f"{date_key}-{label}"


def event_start(day: date | str, label: str, tz: tzinfo) -> datetime:
    if isinstance(day, str):
        day = parse_date_key(day)
    return datetime.combine(day, parse_time_label(label), tzinfo=tz)


def discord_timestamp(day: date | str, label: str, tz: tzinfo, flag: str = "F") -> str:
    """Return a ``<t:unix:flag>`` token for the event's start."""
    if flag not in TIMESTAMP_FLAGS:
        raise ValueError(f"Unsupported Discord timestamp flag {flag!r}.")
    unix = math.floor(event_start(day, label, tz).timestamp())
    return f"<t:{unix}:{flag}>"


def start_of_week(day: date) -> date:
    return day - timedelta(days=day.weekday())
