"""
Static gazetteer of cities, airports and administrative divisions.

The tables are loaded once from tab-separated files shipped with the
package (or from WHEN_DATA_DIR) and are never modified afterwards. The
order of the location table matters: when several records share a name
the first one wins, so the data preparation step sorts important places
(capitals), then the priority country, then larger populations first.
"""

import bisect
import functools
import logging
import pathlib
from dataclasses import dataclass
from enum import Enum
from importlib import resources
from typing import List, Optional, Tuple

from .config import COUNTRIES_FILE, LOCATIONS_FILE, get_data_dir


class LocationKind(Enum):
    """The type of location a zone reference points to."""

    CITY = "city"
    AIRPORT = "airport"
    DIVISION = "division"
    TIMEZONE = "timezone"


@dataclass(frozen=True)
class Location:
    """A single gazetteer record."""

    name: str
    country: str
    admin_code: Optional[str]
    aliases: Tuple[str, ...]
    kind: LocationKind
    tz: str


def _clean_admin_code(code: str) -> Optional[str]:
    # numeric admin codes mean nothing to a human reading the output
    if not code or any(c.isdigit() for c in code):
        return None
    return code


def parse_locations(text: str) -> List[Location]:
    """
    Parse the location table.

    Each non-comment line holds name, aliases (";"-separated), country code,
    admin code, kind and IANA timezone, separated by tabs.

    Raises:
        ValueError: If a line has the wrong shape or an unknown kind
    """
    rv = []
    for lineno, line in enumerate(text.splitlines(), 1):
        if not line.strip() or line.startswith("#"):
            continue
        pieces = line.split("\t")
        if len(pieces) != 6:
            raise ValueError(
                f"line {lineno}: expected 6 tab-separated fields, got {len(pieces)}"
            )
        name, aliases, country, admin_code, kind, tz = pieces
        try:
            kind = LocationKind(kind.strip().lower())
        except ValueError:
            raise ValueError(f"line {lineno}: unknown location kind {kind!r}")
        if kind is LocationKind.TIMEZONE:
            raise ValueError(f"line {lineno}: 'timezone' is not a gazetteer kind")
        rv.append(
            Location(
                name=name.strip(),
                country=country.strip(),
                admin_code=_clean_admin_code(admin_code.strip()),
                aliases=tuple(a.strip() for a in aliases.split(";") if a.strip()),
                kind=kind,
                tz=tz.strip(),
            )
        )
    return rv


def parse_countries(text: str) -> List[Tuple[str, str]]:
    """Parse the country table into a list of (code, name) sorted by code."""
    rv = {}
    for lineno, line in enumerate(text.splitlines(), 1):
        if not line.strip() or line.startswith("#"):
            continue
        pieces = line.split("\t")
        if len(pieces) < 2:
            raise ValueError(f"line {lineno}: expected country code and name")
        rv[pieces[0].strip()] = pieces[1].strip()
    return sorted(rv.items())


def read_packaged_table(filename: str) -> str:
    """Read a table shipped inside the package, ignoring WHEN_DATA_DIR."""
    return (
        resources.files("when")
        .joinpath("data")
        .joinpath(filename)
        .read_text(encoding="utf-8")
    )


def _read_table(filename: str) -> str:
    data_dir = get_data_dir()
    if data_dir:
        logging.debug(f"Loading {filename} from {data_dir}")
        return pathlib.Path(data_dir, filename).read_text(encoding="utf-8")
    return read_packaged_table(filename)


@functools.lru_cache(maxsize=None)
def locations() -> Tuple[Location, ...]:
    """Return the process-wide location table in disambiguation order."""
    rv = tuple(parse_locations(_read_table(LOCATIONS_FILE)))
    logging.debug(f"Loaded {len(rv)} gazetteer locations")
    return rv


@functools.lru_cache(maxsize=None)
def countries() -> Tuple[Tuple[str, str], ...]:
    """Return the process-wide (code, name) country table, sorted by code."""
    return tuple(parse_countries(_read_table(COUNTRIES_FILE)))


@functools.lru_cache(maxsize=None)
def _country_codes() -> Tuple[str, ...]:
    return tuple(code for code, _ in countries())


def country_name(code: str) -> Optional[str]:
    """Look up the display name for an ISO country code."""
    codes = _country_codes()
    pos = bisect.bisect_left(codes, code)
    if pos < len(codes) and codes[pos] == code:
        return countries()[pos][1]
    return None
