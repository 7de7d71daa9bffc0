"""
Helpers for describing points in time to humans.
"""

import datetime
from enum import Enum


class TimeOfDay(Enum):
    """Human readable time-of-day description."""

    EARLY_MORNING = "early_morning"
    MORNING = "morning"
    LATE_MORNING = "late_morning"
    NOON = "noon"
    AFTERNOON = "afternoon"
    EARLY_EVENING = "early_evening"
    EVENING = "evening"
    LATE_EVENING = "late_evening"
    NIGHT = "night"

    def __str__(self) -> str:
        return self.value.replace("_", " ")


def get_time_of_day(dt: datetime.datetime) -> TimeOfDay:
    """Given a datetime returns a human readable time-of-day description."""
    hour = dt.hour
    if hour == 5:
        return TimeOfDay.EARLY_MORNING
    if 6 <= hour <= 8:
        return TimeOfDay.MORNING
    if 9 <= hour <= 11:
        return TimeOfDay.LATE_MORNING
    if hour == 12:
        return TimeOfDay.NOON
    if 13 <= hour <= 16:
        return TimeOfDay.AFTERNOON
    if 17 <= hour <= 18:
        return TimeOfDay.EARLY_EVENING
    if 19 <= hour <= 20:
        return TimeOfDay.EVENING
    if 21 <= hour <= 22:
        return TimeOfDay.LATE_EVENING
    return TimeOfDay.NIGHT


_UNITS = (
    ("day", 86400),
    ("hour", 3600),
    ("minute", 60),
    ("second", 1),
)


def relative_to_human(dt: datetime.datetime, now: datetime.datetime) -> str:
    """
    Describe dt relative to now, e.g. "in 3 hours" or "2 days ago".

    Only the largest whole unit is reported.
    """
    delta = int((dt - now).total_seconds())
    if delta == 0:
        return "now"
    seconds = abs(delta)
    for unit, size in _UNITS:
        if seconds >= size:
            count = seconds // size
            break
    label = f"{count} {unit}{'' if count == 1 else 's'}"
    return f"in {label}" if delta > 0 else f"{label} ago"
