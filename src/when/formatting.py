"""
Output formatting for the when command line tool.

Renders processed results as colored long form, one-line short form or
JSON, using colorama for terminal colors.
"""

import datetime
import json
import sys
from typing import Iterable, List, Optional
from zoneinfo import ZoneInfo

from colorama import Fore, Style

from .domain import TimeAtLocation
from .gazetteer import LocationKind
from .utils import relative_to_human


def colors_enabled(choice: str, stream=None) -> bool:
    """Decide whether to emit colors for --colors auto|always|never."""
    if choice == "always":
        return True
    if choice == "never":
        return False
    stream = stream or sys.stdout
    return hasattr(stream, "isatty") and stream.isatty()


def _paint(text: str, codes: str, colors: bool) -> str:
    if not colors:
        return text
    return f"{codes}{text}{Style.RESET_ALL}"


def format_zone_offset(dt: datetime.datetime) -> str:
    """
    Format the zone offset as "CET; +0100".

    Numeric abbreviations such as "+03" are dropped since they only repeat
    the offset.
    """
    abbrev = dt.strftime("%Z")
    offset = dt.strftime("%z")
    if abbrev and abbrev.isalpha():
        return f"{abbrev}; {offset}"
    return offset


def format_location(result: TimeAtLocation, colors: bool = False) -> Optional[str]:
    """Format the location line, or None for bare timezones."""
    zone = result.zone
    if zone.kind is LocationKind.TIMEZONE:
        return None
    details = "; ".join(x for x in (zone.admin_code, zone.country) if x)
    return f"location: {_paint(zone.name, Style.BRIGHT, colors)} ({details})"


def format_long(
    result: TimeAtLocation, now: datetime.datetime, colors: bool = False
) -> str:
    """Format a single result as the multi-line block."""
    dt = result.datetime
    lines = [
        "time: {} ({}; {})".format(
            _paint(dt.strftime("%H:%M:%S"), Style.BRIGHT + Fore.CYAN, colors),
            relative_to_human(dt, now),
            result.time_of_day,
        ),
        "date: {} ({})".format(
            _paint(dt.strftime("%Y-%m-%d"), Fore.YELLOW, colors),
            dt.strftime("%A"),
        ),
        "zone: {} ({})".format(
            _paint(result.zone.tz_name, Fore.BLUE, colors),
            format_zone_offset(dt),
        ),
    ]
    location = format_location(result, colors)
    if location:
        lines.append(location)
    return "\n".join(lines)


def format_short(result: TimeAtLocation) -> str:
    """Format a single result as one line."""
    return f"{result.datetime.strftime('%Y-%m-%d %H:%M:%S %z')} ({result.zone})"


def format_results(
    results: List[TimeAtLocation],
    now: datetime.datetime,
    short: bool = False,
    as_json: bool = False,
    colors: bool = False,
) -> str:
    """Render all results in the requested output mode."""
    if as_json:
        return json.dumps([r.to_dict() for r in results], indent=2, ensure_ascii=False)
    if short:
        return "\n".join(format_short(r) for r in results)
    return "\n\n".join(format_long(r, now, colors) for r in results)


def format_timezone_list(names: Iterable[str], now: datetime.datetime) -> str:
    """List timezones with their current offsets."""
    return "\n".join(
        f"{name} ({format_zone_offset(now.astimezone(ZoneInfo(name)))})"
        for name in names
    )


def format_error(message: str, colors: bool = False) -> str:
    return f"{_paint('error:', Fore.RED, colors)} {message}"
