"""
Expression parser for when.

The grammar is a small recursive-descent parser over a position scanner.
Every rule either consumes input and returns a value or rewinds and
returns None. Failed matches are tracked at the furthest position reached
so syntax errors can report what was expected there.

    expression    := [unix_time | relative_time | absolute_time] [location]
    unix_time     := ("@" | "unix:") INTEGER
    relative_time := ("+" | "-" | "in") rel_field+
    absolute_time := time ["on"] [date] | date ["at"] [time]
    time          := "now" | "noon" | "midnight"
                   | H12 [":" MM [":" SS]] meridiem | H24 ":" MM [":" SS]
    date          := "today" | "tomorrow" | "yesterday" | "in" INTEGER "days"
                   | YYYY "-" MM "-" DD | DD sep MM [sep YYYY]
                   | MONTH DAY [","] [YYYY] | DAY ["of"] MONTH [","] [YYYY]
                   | DAY ordinal
    location      := "in" TEXT ("->" TEXT)*
"""

import datetime
import logging
import re
from typing import Optional, Pattern, Set, Tuple, Union

from .domain import (
    AbsoluteDate,
    AbsoluteTime,
    DateSpec,
    Expression,
    RelativeDate,
    RelativeTime,
    TimeSpec,
)
from .errors import GrammarError, OutOfRangeError, TrailingGarbageError, UnknownZoneError
from .zones import resolve_zone


def _rule(pattern: str) -> Pattern:
    return re.compile(pattern, re.IGNORECASE)


_WS = _rule(r"\s*")

_UNIX = _rule(r"(?:@|unix:)\s*(-?\d+)(?!\d)")
_REL_SIGN = _rule(r"[+-]|in(?![a-z])")
_REL_FIELD = _rule(
    r"(\d+)\s*(hours?|hrs?|h|minutes?|mins?|m|seconds?|secs?|s)(?![a-z])"
)

_TIME_SPECIAL = _rule(r"(now|noon|midnight)(?![a-z])")
_HOUR12 = _rule(r"(1[0-2]|0?[1-9])(?!\d)")
_HOUR24 = _rule(r"([01]?\d|2[0-3])(?!\d)")
_MINUTES = _rule(r":([0-5]\d)(?!\d)")
_SECONDS = _rule(r":([0-5]\d)(?!\d)")
_MERIDIEM = _rule(r"([ap])\.?m\.?(?![a-z])")

_DATE_WORD = _rule(r"(today|tomorrow|yesterday)(?![a-z])")
_IN_DAYS = _rule(r"in\s+([+-]?\d+)\s*days?(?![a-z])")
_ISO_DATE = _rule(r"(\d{4})-(0?[1-9]|1[0-2])-(0?[1-9]|[12]\d|3[01])(?!\d)")
_NUMERIC_DATE = _rule(
    r"(0?[1-9]|[12]\d|3[01])([./-])(0?[1-9]|1[0-2])(?:\2(\d{4}))?(?!\d)"
)
_MONTH = _rule(
    r"(january|jan|february|feb|march|mar|april|apr|may|june|jun|july|jul|"
    r"august|aug|september|sept|sep|october|oct|november|nov|december|dec)"
    r"\.?(?![a-z])"
)
_DAY = _rule(r"(0?[1-9]|[12]\d|3[01])(st|nd|rd|th)?(?![a-z\d])")
_YEAR = _rule(r"(\d{4})(?![\d:])")
_COMMA = _rule(r",")
_THE = _rule(r"the(?![a-z])")
_OF = _rule(r"of(?![a-z])")
_ON = _rule(r"on(?![a-z])")
_AT = _rule(r"at(?![a-z])")

_IN = _rule(r"in(?![a-z])")

_MONTHS = ["jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec"]

_EPOCH = datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc)

# returned by the time rule for "now", which is no override at all
NOW = "now"


class _Scanner:
    """Tracks the input position and the furthest failure."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.fail_pos = -1
        self.expected: Set[str] = set()

    def skip_ws(self) -> int:
        return _WS.match(self.text, self.pos).end()

    def fail(self, pos: int, label: str) -> None:
        if pos > self.fail_pos:
            self.fail_pos = pos
            self.expected = {label}
        elif pos == self.fail_pos:
            self.expected.add(label)

    def match(self, pattern: Pattern, label: str, skip_ws: bool = True):
        pos = self.skip_ws() if skip_ws else self.pos
        m = pattern.match(self.text, pos)
        if m is None:
            self.fail(pos, label)
            return None
        self.pos = m.end()
        return m

    def at_end(self) -> bool:
        return self.skip_ws() >= len(self.text)


def _describe(text: str, pos: int) -> str:
    if pos >= len(text):
        return "end of input"
    token = re.match(r"\d+|[^\W\d_]+|\S", text[pos:]).group(0)
    if token.isdigit():
        kind = "number"
    elif token.isalpha():
        kind = "word"
    else:
        kind = "symbol"
    return f"{kind} {token!r}"


def _month(m) -> int:
    return _MONTHS.index(m.group(1).lower()[:3]) + 1


def _unix_time(s: _Scanner) -> Optional[Tuple[AbsoluteTime, AbsoluteDate]]:
    m = s.match(_UNIX, "unix timestamp")
    if m is None:
        return None
    try:
        dt = _EPOCH + datetime.timedelta(seconds=int(m.group(1)))
    except OverflowError:
        raise OutOfRangeError("unix timestamp")
    return (
        AbsoluteTime(dt.hour, dt.minute, dt.second),
        AbsoluteDate(dt.day, dt.month, dt.year),
    )


def _relative_time(s: _Scanner) -> Optional[RelativeTime]:
    mark = s.pos
    sign = s.match(_REL_SIGN, "relative offset")
    if sign is None:
        return None
    fields = {}
    order = ("hours", "minutes", "seconds")
    while True:
        save = s.pos
        m = s.match(_REL_FIELD, "relative offset")
        if m is None:
            break
        unit = {"h": "hours", "m": "minutes", "s": "seconds"}[m.group(2)[0].lower()]
        # each unit once, largest first
        if any(order.index(u) >= order.index(unit) for u in fields):
            s.pos = save
            break
        fields[unit] = int(m.group(1))
    if not fields:
        s.pos = mark
        return None
    factor = -1 if sign.group(0) == "-" else 1
    return RelativeTime(**{unit: value * factor for unit, value in fields.items()})


def _time(s: _Scanner) -> Union[AbsoluteTime, str, None]:
    mark = s.pos
    m = s.match(_TIME_SPECIAL, "time")
    if m is not None:
        word = m.group(1).lower()
        if word == "now":
            return NOW
        return AbsoluteTime(12 if word == "noon" else 0)

    m = s.match(_HOUR12, "time")
    if m is not None:
        hour, minute, second = int(m.group(1)), 0, 0
        mm = s.match(_MINUTES, "minutes", skip_ws=False)
        if mm is not None:
            minute = int(mm.group(1))
            ss = s.match(_SECONDS, "seconds", skip_ws=False)
            if ss is not None:
                second = int(ss.group(1))
        meridiem = s.match(_MERIDIEM, "meridiem")
        if meridiem is not None:
            if meridiem.group(1).lower() == "p":
                # 12pm stays noon
                if hour != 12:
                    hour += 12
            elif hour == 12:
                hour = 0
            return AbsoluteTime(hour, minute, second)
    s.pos = mark

    m = s.match(_HOUR24, "time")
    if m is not None:
        mm = s.match(_MINUTES, "minutes", skip_ws=False)
        if mm is not None:
            second = 0
            ss = s.match(_SECONDS, "seconds", skip_ws=False)
            if ss is not None:
                second = int(ss.group(1))
            return AbsoluteTime(int(m.group(1)), int(mm.group(1)), second)
    s.pos = mark
    return None


def _year(s: _Scanner) -> Optional[int]:
    mark = s.pos
    s.match(_COMMA, "year")
    m = s.match(_YEAR, "year")
    if m is None:
        s.pos = mark
        return None
    return int(m.group(1))


def _relative_date(s: _Scanner) -> Optional[RelativeDate]:
    m = s.match(_DATE_WORD, "date")
    if m is not None:
        return RelativeDate({"today": 0, "tomorrow": 1, "yesterday": -1}[m.group(1).lower()])
    m = s.match(_IN_DAYS, "date")
    if m is not None:
        return RelativeDate(int(m.group(1)))
    return None


def _numeric_date(s: _Scanner) -> Optional[AbsoluteDate]:
    m = s.match(_ISO_DATE, "date")
    if m is not None:
        return AbsoluteDate(int(m.group(3)), int(m.group(2)), int(m.group(1)))
    m = s.match(_NUMERIC_DATE, "date")
    if m is not None:
        year = int(m.group(4)) if m.group(4) else None
        return AbsoluteDate(int(m.group(1)), int(m.group(3)), year)
    return None


def _english_date(s: _Scanner) -> Optional[AbsoluteDate]:
    mark = s.pos
    month = s.match(_MONTH, "date")
    if month is not None:
        day = s.match(_DAY, "day")
        if day is None:
            s.pos = mark
            return None
        return AbsoluteDate(int(day.group(1)), _month(month), _year(s))

    s.match(_THE, "date")
    day = s.match(_DAY, "date")
    if day is None:
        s.pos = mark
        return None
    save = s.pos
    s.match(_OF, "month")
    month = s.match(_MONTH, "month")
    if month is not None:
        return AbsoluteDate(int(day.group(1)), _month(month), _year(s))
    s.pos = save
    # a lone day needs its ordinal suffix ("4th")
    if day.group(2):
        return AbsoluteDate(int(day.group(1)))
    s.pos = mark
    return None


def _date(s: _Scanner) -> Optional[DateSpec]:
    for rule in (_relative_date, _numeric_date, _english_date):
        mark = s.pos
        rv = rule(s)
        if rv is not None:
            return rv
        s.pos = mark
    return None


def _absolute_time(s: _Scanner) -> Optional[Tuple[Union[AbsoluteTime, str, None], Optional[DateSpec]]]:
    mark = s.pos
    time = _time(s)
    if time is not None:
        save = s.pos
        s.match(_ON, "date")
        date = _date(s)
        if date is None:
            s.pos = save
        return time, date
    s.pos = mark

    date = _date(s)
    if date is not None:
        save = s.pos
        s.match(_AT, "time")
        time = _time(s)
        if time is None:
            s.pos = save
        return time, date
    s.pos = mark
    return None


def _location(s: _Scanner) -> Optional[Tuple[str, ...]]:
    mark = s.pos
    if s.match(_IN, "location") is None:
        return None
    start = s.skip_ws()
    tokens = tuple(
        token.strip() for token in s.text[start:].split("->") if token.strip()
    )
    if not tokens:
        s.fail(start, "location")
        s.pos = mark
        return None
    s.pos = len(s.text)
    return tokens


def _is_utc(token: str) -> bool:
    try:
        return resolve_zone(token).is_utc
    except UnknownZoneError:
        return False


def _expression(s: _Scanner) -> Expression:
    time_spec: Optional[TimeSpec] = None
    date_spec: Optional[DateSpec] = None
    unix_time = False

    unix = _unix_time(s)
    if unix is not None:
        time_spec, date_spec = unix
        unix_time = True
    else:
        relative = _relative_time(s)
        if relative is not None:
            time_spec = relative
        else:
            absolute = _absolute_time(s)
            if absolute is not None:
                time, date_spec = absolute
                if time is not NOW:
                    time_spec = time

    locations = _location(s) or ()

    # unix timestamps are read as UTC unless UTC is already the source
    if unix_time and (not locations or not _is_utc(locations[0])):
        locations = ("utc",) + locations

    return Expression(
        time_spec=time_spec,
        date_spec=date_spec,
        locations=locations,
        unix_time=unix_time,
    )


def parse(text: str) -> Expression:
    """
    Parse an expression from a string.

    Args:
        text: The input, e.g. "2pm in vie -> yyz"

    Returns:
        The parsed expression

    Raises:
        GrammarError: If the input does not match the grammar
        TrailingGarbageError: If text is left over after a valid expression
        OutOfRangeError: If a unix timestamp cannot be represented
    """
    text = text.strip()
    s = _Scanner(text)
    expr = _expression(s)

    if not s.at_end():
        rest = s.skip_ws()
        if s.pos == 0 or s.fail_pos > rest:
            raise GrammarError(s.fail_pos, s.expected, _describe(text, s.fail_pos))
        raise TrailingGarbageError(text[rest:])

    logging.debug(f"Parsed {text!r} into {expr}")
    return expr
