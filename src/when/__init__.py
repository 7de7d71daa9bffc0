"""
when - convert times between timezones from short human expressions.

    >>> from when import parse, process
    >>> results = process(parse("2pm in vie -> yyz"))
"""

from .domain import (
    AbsoluteDate,
    AbsoluteTime,
    Expression,
    RelativeDate,
    RelativeTime,
    TimeAtLocation,
    process,
)
from .errors import (
    GrammarError,
    OutOfRangeError,
    TrailingGarbageError,
    UnknownZoneError,
    WhenError,
)
from .gazetteer import Location, LocationKind
from .parser import parse
from .utils import TimeOfDay, get_time_of_day
from .zones import ZoneRef, all_timezones, get_local_timezone, resolve_zone

__version__ = "0.1.0"

__all__ = [
    "AbsoluteDate",
    "AbsoluteTime",
    "Expression",
    "GrammarError",
    "Location",
    "LocationKind",
    "OutOfRangeError",
    "RelativeDate",
    "RelativeTime",
    "TimeAtLocation",
    "TimeOfDay",
    "TrailingGarbageError",
    "UnknownZoneError",
    "WhenError",
    "ZoneRef",
    "all_timezones",
    "get_local_timezone",
    "get_time_of_day",
    "parse",
    "process",
    "resolve_zone",
]
