"""
Domain models for when.

This module contains the parsed form of an expression, the logic that
applies it to a reference point in time, and the chain processing that
converts the result into every requested zone.
"""

import datetime
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

from .errors import OutOfRangeError
from .gazetteer import LocationKind
from .utils import TimeOfDay, get_time_of_day
from .zones import ZoneRef, resolve_zone


@dataclass(frozen=True)
class AbsoluteTime:
    """Sets the wall clock to a fixed time of day."""

    hour: int
    minute: int = 0
    second: int = 0


@dataclass(frozen=True)
class RelativeTime:
    """Moves the point in time by a signed duration."""

    hours: int = 0
    minutes: int = 0
    seconds: int = 0

    def to_timedelta(self) -> datetime.timedelta:
        return datetime.timedelta(
            hours=self.hours, minutes=self.minutes, seconds=self.seconds
        )


@dataclass(frozen=True)
class AbsoluteDate:
    """Sets the calendar date; month and year are kept when not given."""

    day: int
    month: Optional[int] = None
    year: Optional[int] = None


@dataclass(frozen=True)
class RelativeDate:
    """Moves the point in time by a number of days."""

    days: int = 0


TimeSpec = Union[AbsoluteTime, RelativeTime]
DateSpec = Union[AbsoluteDate, RelativeDate]


def _shift(date: datetime.datetime, duration: RelativeTime) -> datetime.datetime:
    # durations are added on the absolute time line, not the wall clock
    try:
        moved = date.astimezone(datetime.timezone.utc) + duration.to_timedelta()
    except OverflowError:
        raise OutOfRangeError("year")
    return moved.astimezone(date.tzinfo)


def _add_days(date: datetime.datetime, days: int) -> datetime.datetime:
    # calendar days keep the wall clock; the result is normalized afterwards
    try:
        return date + datetime.timedelta(days=days)
    except OverflowError:
        raise OutOfRangeError("day")


def _normalize(date: datetime.datetime) -> datetime.datetime:
    # maps wall clock times that fall into a DST gap onto a real instant
    try:
        return date.astimezone(datetime.timezone.utc).astimezone(date.tzinfo)
    except OverflowError:
        raise OutOfRangeError("year")


@dataclass(frozen=True)
class Expression:
    """Represents a parsed human readable date expression."""

    time_spec: Optional[TimeSpec] = None
    date_spec: Optional[DateSpec] = None
    locations: Tuple[str, ...] = ()
    unix_time: bool = False

    @classmethod
    def parse(cls, value: str) -> "Expression":
        """Parse an expression from a string."""
        from .parser import parse

        return parse(value)

    @property
    def location(self) -> Optional[str]:
        """The source location if one was given."""
        return self.locations[0] if self.locations else None

    @property
    def to_locations(self) -> Tuple[str, ...]:
        """The target locations of the chain."""
        return self.locations[1:]

    @property
    def is_relative(self) -> bool:
        """True if the result depends on the current time."""
        return isinstance(self.time_spec, (type(None), RelativeTime)) or isinstance(
            self.date_spec, RelativeDate
        )

    def apply(self, date: datetime.datetime) -> datetime.datetime:
        """
        Apply the expression to a reference date.

        Args:
            date: A timezone-aware reference datetime

        Returns:
            The adjusted datetime in the same zone

        Raises:
            OutOfRangeError: If a calendar field cannot be set
        """
        time_spec = self.time_spec
        if isinstance(time_spec, AbsoluteTime):
            for field, value, upper in (
                ("hour", time_spec.hour, 23),
                ("minute", time_spec.minute, 59),
                ("second", time_spec.second, 59),
            ):
                if not 0 <= value <= upper:
                    raise OutOfRangeError(field)
            date = date.replace(
                hour=time_spec.hour,
                minute=time_spec.minute,
                second=time_spec.second,
                microsecond=0,
            )
        elif isinstance(time_spec, RelativeTime):
            date = _shift(date, time_spec)

        date_spec = self.date_spec
        if isinstance(date_spec, AbsoluteDate):
            month = date.month if date_spec.month is None else date_spec.month
            year = date.year if date_spec.year is None else date_spec.year
            if not 1 <= month <= 12:
                raise OutOfRangeError("month")
            if not datetime.MINYEAR <= year <= datetime.MAXYEAR:
                raise OutOfRangeError("year")
            try:
                date = date.replace(year=year, month=month, day=date_spec.day)
            except ValueError:
                raise OutOfRangeError("day")
        elif isinstance(date_spec, RelativeDate):
            date = _add_days(date, date_spec.days)

        return _normalize(date)

    def process(self, now: Optional[datetime.datetime] = None) -> List["TimeAtLocation"]:
        return process(self, now)


@dataclass(frozen=True)
class TimeAtLocation:
    """A point in time rendered in a specific zone."""

    datetime: datetime.datetime
    zone: ZoneRef

    @property
    def time_of_day(self) -> TimeOfDay:
        return get_time_of_day(self.datetime)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        rv: Dict[str, Any] = {
            "datetime": self.datetime.isoformat(),
            "time_of_day": self.time_of_day.value,
            "timezone": {
                "name": self.zone.tz_name,
                "abbrev": self.datetime.strftime("%Z"),
                "utc_offset": self.datetime.strftime("%z"),
            },
        }
        if self.zone.kind is not LocationKind.TIMEZONE:
            rv["location"] = self.zone.location_dict()
        return rv


def process(
    expression: Expression, now: Optional[datetime.datetime] = None
) -> List[TimeAtLocation]:
    """
    Resolve an expression into all referenced locations.

    The first result is the expression evaluated in its source zone
    (local if none is given), followed by one result per target zone. If
    no target is given and the local zone differs from the source, the
    local zone is added as an implicit target.

    Args:
        expression: The parsed expression
        now: The current time; the clock is read when omitted

    Raises:
        UnknownZoneError: If a location cannot be resolved
        OutOfRangeError: If the expression cannot be applied
    """
    from_zone = resolve_zone(expression.location or "local")
    if now is None:
        now = datetime.datetime.now(datetime.timezone.utc)
    reference = now.astimezone(from_zone.tzinfo).replace(microsecond=0)
    source = expression.apply(reference)
    logging.debug(f"Evaluated expression in {from_zone.tz_name}: {source.isoformat()}")

    rv = [TimeAtLocation(source, from_zone)]
    for token in expression.to_locations:
        to_zone = resolve_zone(token)
        rv.append(TimeAtLocation(source.astimezone(to_zone.tzinfo), to_zone))

    if len(rv) == 1:
        local_zone = resolve_zone("local")
        if local_zone.tz_name != from_zone.tz_name:
            rv.append(TimeAtLocation(source.astimezone(local_zone.tzinfo), local_zone))

    return rv
