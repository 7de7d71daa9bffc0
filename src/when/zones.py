"""
Zone resolution for when.

Turns a location token ("vie", "Springfield, IL", "america/new york",
"local") into a ZoneRef: either a bare IANA timezone or a gazetteer
location carrying its own timezone.
"""

import functools
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple
from zoneinfo import ZoneInfo, available_timezones

from .config import UTC_ZONE_NAMES, get_local_timezone_override
from .errors import UnknownZoneError
from .gazetteer import Location, LocationKind, country_name, locations


@dataclass(frozen=True)
class ZoneRef:
    """
    Reference to a timezone.

    Exactly one of ``tz`` (an IANA identifier) or ``location`` (a gazetteer
    record) is set.
    """

    tz: Optional[str] = None
    location: Optional[Location] = None

    def __post_init__(self):
        if (self.tz is None) == (self.location is None):
            raise ValueError("ZoneRef needs exactly one of tz or location")

    @classmethod
    def from_timezone(cls, tz_name: str) -> "ZoneRef":
        return cls(tz=tz_name)

    @classmethod
    def from_location(cls, location: Location) -> "ZoneRef":
        return cls(location=location)

    @property
    def name(self) -> str:
        """
        The IANA name for bare timezones, the place name for locations.
        """
        if self.location is None:
            return self.tz
        return self.location.name

    @property
    def kind(self) -> LocationKind:
        if self.location is None:
            return LocationKind.TIMEZONE
        return self.location.kind

    @property
    def tz_name(self) -> str:
        """The IANA identifier used for all conversions."""
        if self.location is None:
            return self.tz
        return self.location.tz

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.tz_name)

    @property
    def is_utc(self) -> bool:
        """
        True if this zone is the UTC zone.

        This is not the same as the zone currently being at UTC+0.
        """
        return self.tz_name in UTC_ZONE_NAMES

    @property
    def country(self) -> Optional[str]:
        """The country name for gazetteer locations."""
        if self.location is None:
            return None
        return country_name(self.location.country)

    @property
    def admin_code(self) -> Optional[str]:
        """The admin code (a US state for instance) for gazetteer locations."""
        if self.location is None:
            return None
        return self.location.admin_code

    def __str__(self) -> str:
        if self.location is None:
            return self.name
        rv = self.name
        if self.admin_code:
            rv += f", {self.admin_code}"
        if self.country:
            rv += f"; {self.country}"
        return rv

    def location_dict(self) -> Dict[str, Any]:
        """Describe the location part of a non-timezone reference."""
        rv: Dict[str, Any] = {"name": self.name}
        if self.admin_code:
            rv["admin_code"] = self.admin_code
        if self.country:
            rv["country"] = self.country
        return rv


@functools.lru_cache(maxsize=None)
def all_timezones() -> Tuple[str, ...]:
    """Return all known IANA timezone identifiers, sorted."""
    return tuple(sorted(available_timezones()))


@functools.lru_cache(maxsize=None)
def _timezones_by_lower() -> Dict[str, str]:
    return {name.lower(): name for name in all_timezones()}


def get_local_timezone() -> str:
    """
    Get the local IANA timezone name (e.g. 'Europe/Vienna').

    Checks WHEN_LOCAL_TIMEZONE, then TZ, then the /etc/localtime symlink and
    falls back to UTC.
    """
    known = _timezones_by_lower()
    for candidate in (get_local_timezone_override(), os.environ.get("TZ")):
        if candidate:
            candidate = candidate.lstrip(":")
            if candidate.lower() in known:
                return known[candidate.lower()]
    localtime = "/etc/localtime"
    if os.path.islink(localtime):
        link = os.path.realpath(localtime)
        if "zoneinfo/" in link:
            name = link.split("zoneinfo/")[-1]
            if name.lower() in known:
                return known[name.lower()]
    return "UTC"


def _find_location(name: str, code: Optional[str] = None) -> Optional[Location]:
    name = name.lower()
    if code is None:
        return next((loc for loc in locations() if loc.name.lower() == name), None)
    code = code.lower()
    for loc in locations():
        if loc.name.lower() != name:
            continue
        if loc.country.lower() == code:
            return loc
        if loc.admin_code is not None and loc.admin_code.lower() == code:
            return loc
    return None


def resolve_zone(token: str) -> ZoneRef:
    """
    Resolve a location token to a zone reference.

    The first matching strategy wins: "local", IANA identifier, "Name, Code"
    or "Name Code", plain gazetteer name, three letter alias.

    Raises:
        UnknownZoneError: If nothing matches the token
    """
    name = token.strip()
    if name.lower() == "local":
        name = get_local_timezone()

    tz_name = _timezones_by_lower().get(name.replace(" ", "_").lower())
    if tz_name is not None:
        logging.debug(f"Resolved {token!r} to timezone {tz_name}")
        return ZoneRef.from_timezone(tz_name)

    for delim in (",", " "):
        if delim not in name:
            continue
        base, code = name.rsplit(delim, 1)
        loc = _find_location(base.rstrip(), code.strip())
        if loc is not None:
            logging.debug(f"Resolved {token!r} to {loc.name} ({loc.country}) by code")
            return ZoneRef.from_location(loc)

    loc = _find_location(name)
    if loc is not None:
        logging.debug(f"Resolved {token!r} to {loc.name} ({loc.country}) by name")
        return ZoneRef.from_location(loc)

    if len(name) == 3:
        alias = name.lower()
        for loc in locations():
            if any(a.lower() == alias for a in loc.aliases):
                logging.debug(f"Resolved {token!r} to {loc.name} by alias")
                return ZoneRef.from_location(loc)

    raise UnknownZoneError(token)
