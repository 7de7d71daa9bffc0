"""
Configuration defaults for when.

Values can be overridden through environment variables; command line flags
take precedence over both.
"""

import os
from typing import Optional

# Where the GeoNames dumps live for data preparation
GEONAMES_BASE_URL = "https://download.geonames.org/export/dump"
CITIES_ARCHIVE = "cities15000.zip"
CITIES_FILE = "cities15000.txt"
COUNTRY_INFO_FILE = "countryInfo.txt"

LOCATIONS_FILE = "locations.tsv"
COUNTRIES_FILE = "countries.tsv"
# curated aliases, airports and divisions merged in by the data preparation
SUPPLEMENT_FILE = "supplement.tsv"

DEFAULT_PRIORITY_COUNTRY = "US"
DEFAULT_COLORS = "auto"
COLOR_CHOICES = ("auto", "always", "never")

# Zone names that denote UTC itself (not merely a +00:00 offset)
UTC_ZONE_NAMES = frozenset(
    {
        "Universal",
        "UTC",
        "UCT",
        "Zulu",
        "Etc/Universal",
        "Etc/UCT",
        "Etc/UTC",
        "Etc/Zulu",
    }
)


def get_local_timezone_override() -> Optional[str]:
    """Return the configured local timezone, if any."""
    return os.environ.get("WHEN_LOCAL_TIMEZONE") or None


def get_default_colors() -> str:
    """Return the default for --colors (WHEN_COLORS or 'auto')."""
    value = os.environ.get("WHEN_COLORS", DEFAULT_COLORS).lower()
    return value if value in COLOR_CHOICES else DEFAULT_COLORS


def get_priority_country() -> str:
    return os.environ.get("WHEN_PRIORITY_COUNTRY", DEFAULT_PRIORITY_COUNTRY).upper()


def get_data_dir() -> Optional[str]:
    """Return an alternate directory holding the gazetteer tables."""
    return os.environ.get("WHEN_DATA_DIR") or None
