"""
Data preparation for the when gazetteer.

Downloads the GeoNames city and country dumps and writes the two
tab-separated tables the gazetteer loads at runtime. The location table is
written in disambiguation order: for records sharing a name, capitals come
first, then the priority country, then larger populations. Curated aliases,
airports and divisions from the packaged supplement table are merged in.

Usage:
    python -m when.builddata --out src/when/data
"""

import argparse
import io
import logging
import os
import sys
import zipfile
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import httpx

from .config import (
    CITIES_ARCHIVE,
    CITIES_FILE,
    COUNTRIES_FILE,
    COUNTRY_INFO_FILE,
    GEONAMES_BASE_URL,
    LOCATIONS_FILE,
    SUPPLEMENT_FILE,
    get_priority_country,
)
from .gazetteer import Location, LocationKind, parse_locations, read_packaged_table


@dataclass
class CityRecord:
    """A row of the generated location table."""

    name: str
    is_important: bool
    population: int
    country: str
    admin_code: str
    tz: str
    aliases: Tuple[str, ...] = ()
    kind: LocationKind = LocationKind.CITY


def download(client: httpx.Client, filename: str) -> bytes:
    """Download a file from the GeoNames dump directory."""
    url = f"{GEONAMES_BASE_URL}/{filename}"
    logging.info(f"Downloading {url}")
    response = client.get(url)
    response.raise_for_status()
    return response.content


def extract_cities(archive: bytes) -> str:
    """Return the city table from the zipped dump."""
    with zipfile.ZipFile(io.BytesIO(archive)) as zf:
        return zf.read(CITIES_FILE).decode("utf-8")


def parse_cities(text: str) -> List[CityRecord]:
    """
    Parse the GeoNames city table.

    Uses the ASCII name; names with parentheses are skipped as they are
    qualified duplicates ("Frankfurt (Oder)").
    """
    rv = []
    for line in text.splitlines():
        if not line or line.startswith("#"):
            continue
        pieces = line.split("\t")
        if len(pieces) < 18:
            logging.warning(f"Skipping short city record: {line[:60]!r}")
            continue
        name = pieces[2]
        if "(" in name:
            continue
        rv.append(
            CityRecord(
                name=name,
                is_important=pieces[7] == "PPLC",
                population=int(pieces[14] or 0),
                country=pieces[8],
                admin_code=pieces[10],
                tz=pieces[17],
            )
        )
    return rv


def parse_country_info(text: str) -> Dict[str, str]:
    """Parse countryInfo.txt into a code to name mapping."""
    rv = {}
    for line in text.splitlines():
        if not line or line.startswith("#"):
            continue
        pieces = line.split("\t")
        if len(pieces) < 5:
            continue
        rv[pieces[0]] = pieces[4]
    return rv


def sort_cities(records: Iterable[CityRecord], priority_country: str) -> List[CityRecord]:
    """Sort records so the first match for a name is the preferred one."""
    return sorted(
        records,
        key=lambda x: (
            x.name.lower(),
            not x.is_important,
            x.country != priority_country,
            -x.population,
        ),
    )


def load_supplement() -> List[Location]:
    """Load the curated aliases, airports and divisions shipped with when."""
    return parse_locations(read_packaged_table(SUPPLEMENT_FILE))


def merge_supplement(
    records: Iterable[CityRecord], supplement: Iterable[Location]
) -> List[CityRecord]:
    """
    Merge curated rows into the downloaded cities.

    A curated city matching a downloaded one by name, country and timezone
    lends it its aliases; every other curated row is added as a record of
    its own.
    """
    rv = list(records)
    index = {(r.name.lower(), r.country, r.tz): i for i, r in enumerate(rv)}
    for loc in supplement:
        key = (loc.name.lower(), loc.country, loc.tz)
        if loc.kind is LocationKind.CITY and key in index:
            i = index[key]
            rv[i] = replace(rv[i], aliases=loc.aliases)
            continue
        rv.append(
            CityRecord(
                name=loc.name,
                is_important=False,
                population=0,
                country=loc.country,
                admin_code=loc.admin_code or "",
                tz=loc.tz,
                aliases=loc.aliases,
                kind=loc.kind,
            )
        )
    return rv


def render_locations(records: Iterable[CityRecord]) -> str:
    lines = ["# name\taliases\tcountry\tadmin code\tkind\ttimezone"]
    for rec in records:
        lines.append(
            "\t".join(
                (
                    rec.name,
                    ";".join(rec.aliases),
                    rec.country,
                    rec.admin_code,
                    rec.kind.value,
                    rec.tz,
                )
            )
        )
    return "\n".join(lines) + "\n"


def render_countries(countries: Dict[str, str]) -> str:
    lines = ["# ISO 3166 country code to display name"]
    for code, name in sorted(countries.items()):
        lines.append(f"{code}\t{name}")
    return "\n".join(lines) + "\n"


def build(
    out_dir: str,
    priority_country: str,
    client: Optional[httpx.Client] = None,
    supplement: Optional[Sequence[Location]] = None,
) -> int:
    """
    Download the dumps and write both tables into out_dir.

    The curated supplement (the packaged one unless given) is merged in
    before sorting.

    Returns:
        The number of locations written
    """
    owns_client = client is None
    if client is None:
        client = httpx.Client(timeout=120.0, follow_redirects=True)
    try:
        cities = parse_cities(extract_cities(download(client, CITIES_ARCHIVE)))
        countries = parse_country_info(
            download(client, COUNTRY_INFO_FILE).decode("utf-8")
        )
    finally:
        if owns_client:
            client.close()

    if supplement is None:
        supplement = load_supplement()
    cities = sort_cities(merge_supplement(cities, supplement), priority_country)
    os.makedirs(out_dir, exist_ok=True)
    with open(os.path.join(out_dir, LOCATIONS_FILE), "w", encoding="utf-8") as f:
        f.write(render_locations(cities))
    with open(os.path.join(out_dir, COUNTRIES_FILE), "w", encoding="utf-8") as f:
        f.write(render_countries(countries))
    logging.info(f"Wrote {len(cities)} locations and {len(countries)} countries to {out_dir}")
    return len(cities)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Build the when gazetteer tables from GeoNames."
    )
    parser.add_argument(
        "--out", required=True, help="Directory to write the tables into."
    )
    parser.add_argument(
        "--priority-country",
        default=get_priority_country(),
        help="Country preferred when names are ambiguous (default: US).",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    try:
        build(args.out, args.priority_country.upper())
    except httpx.HTTPError as e:
        logging.error(f"Failed to download GeoNames data: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
