import io
import os
import tempfile
import unittest
import zipfile
from unittest.mock import patch

import httpx

from when import gazetteer
from when.builddata import (
    CityRecord,
    build,
    load_supplement,
    merge_supplement,
    parse_cities,
    parse_country_info,
    sort_cities,
)
from when.gazetteer import LocationKind, parse_countries, parse_locations
from when.zones import resolve_zone


def city_line(name, feature, country, admin, population, tz):
    fields = [""] * 19
    fields[0] = "1"
    fields[1] = name
    fields[2] = name
    fields[7] = feature
    fields[8] = country
    fields[10] = admin
    fields[14] = str(population)
    fields[17] = tz
    return "\t".join(fields)


CITIES = "\n".join(
    [
        city_line("Paris", "PPL", "US", "TX", 25000, "America/Chicago"),
        city_line("Paris", "PPLC", "FR", "11", 2100000, "Europe/Paris"),
        city_line("Frankfurt (Oder)", "PPL", "DE", "11", 57000, "Europe/Berlin"),
        city_line("Springfield", "PPL", "US", "MA", 155000, "America/New_York"),
        city_line("Springfield", "PPL", "US", "MO", 169000, "America/Chicago"),
        city_line("Springfield", "PPL", "AU", "04", 170000, "Australia/Brisbane"),
    ]
)

COUNTRY_INFO = "\n".join(
    [
        "#ISO\tISO3\tISO-Numeric\tfips\tCountry",
        "FR\tFRA\t250\tFR\tFrance",
        "US\tUSA\t840\tUS\tUnited States",
        "AU\tAUS\t036\tAS\tAustralia",
    ]
)


class TestParsing(unittest.TestCase):
    def test_parse_cities(self):
        records = parse_cities(CITIES)
        self.assertEqual(len(records), 5)
        self.assertNotIn("Frankfurt (Oder)", [r.name for r in records])
        paris = records[1]
        self.assertTrue(paris.is_important)
        self.assertEqual(paris.population, 2100000)
        self.assertEqual(paris.tz, "Europe/Paris")

    def test_short_records_are_skipped(self):
        self.assertEqual(parse_cities("1\tFoo\tFoo\n"), [])

    def test_parse_country_info(self):
        self.assertEqual(
            parse_country_info(COUNTRY_INFO),
            {"FR": "France", "US": "United States", "AU": "Australia"},
        )


class TestSorting(unittest.TestCase):
    def test_capital_then_priority_then_population(self):
        records = sort_cities(parse_cities(CITIES), "US")
        self.assertEqual(
            [(r.name, r.country, r.admin_code) for r in records],
            [
                ("Paris", "FR", "11"),
                ("Paris", "US", "TX"),
                ("Springfield", "US", "MO"),
                ("Springfield", "US", "MA"),
                ("Springfield", "AU", "04"),
            ],
        )

    def test_priority_country_is_configurable(self):
        records = sort_cities(parse_cities(CITIES), "AU")
        springfields = [r.country for r in records if r.name == "Springfield"]
        self.assertEqual(springfields, ["AU", "US", "US"])

    def test_names_are_compared_case_insensitively(self):
        records = sort_cities(
            [
                CityRecord("berlin", False, 10, "US", "NJ", "America/New_York"),
                CityRecord("Berlin", True, 10, "DE", "16", "Europe/Berlin"),
            ],
            "US",
        )
        self.assertEqual(records[0].country, "DE")


class TestSupplement(unittest.TestCase):
    def test_packaged_supplement(self):
        supplement = load_supplement()
        kinds = {loc.kind for loc in supplement}
        self.assertIn(LocationKind.AIRPORT, kinds)
        self.assertIn(LocationKind.DIVISION, kinds)
        self.assertIn("VIE", [a for loc in supplement for a in loc.aliases])

    def test_aliases_join_matching_city(self):
        supplement = parse_locations(
            "Paris\tPAR\tFR\t11\tcity\tEurope/Paris\n"
            "Paris Orly Airport\tORY\tFR\t11\tairport\tEurope/Paris\n"
        )
        records = merge_supplement(parse_cities(CITIES), supplement)
        self.assertEqual(len(records), 6)
        paris = [r for r in records if r.name == "Paris"]
        self.assertEqual([r.aliases for r in paris], [(), ("PAR",)])
        self.assertEqual(records[-1].kind, LocationKind.AIRPORT)
        self.assertEqual(records[-1].admin_code, "")


class TestBuild(unittest.TestCase):
    def make_client(self):
        archive = io.BytesIO()
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr("cities15000.txt", CITIES)
        requested = []

        def handler(request):
            requested.append(request.url.path)
            if request.url.path.endswith(".zip"):
                return httpx.Response(200, content=archive.getvalue())
            if request.url.path.endswith("countryInfo.txt"):
                return httpx.Response(200, text=COUNTRY_INFO)
            return httpx.Response(404)

        return httpx.Client(transport=httpx.MockTransport(handler)), requested

    def test_build_writes_tables(self):
        client, requested = self.make_client()
        with tempfile.TemporaryDirectory() as tmp:
            count = build(tmp, "US", client=client, supplement=[])
            with open(os.path.join(tmp, "locations.tsv"), encoding="utf-8") as f:
                locations = parse_locations(f.read())
            with open(os.path.join(tmp, "countries.tsv"), encoding="utf-8") as f:
                countries = parse_countries(f.read())

        self.assertEqual(count, 5)
        self.assertEqual(len(requested), 2)
        self.assertEqual(locations[0].name, "Paris")
        self.assertEqual(locations[0].country, "FR")
        self.assertIsNone(locations[0].admin_code)
        self.assertEqual(locations[1].admin_code, "TX")
        self.assertTrue(all(loc.kind is LocationKind.CITY for loc in locations))
        self.assertEqual(countries[0], ("AU", "Australia"))

    def test_rebuilt_table_still_resolves_aliases(self):
        client, _ = self.make_client()
        with tempfile.TemporaryDirectory() as tmp:
            build(tmp, "US", client=client)
            gazetteer.locations.cache_clear()
            self.addCleanup(gazetteer.locations.cache_clear)
            with patch.dict(os.environ, {"WHEN_DATA_DIR": tmp}):
                vie = resolve_zone("vie")
                yyz = resolve_zone("yyz")
                paris = resolve_zone("par")
                gazetteer.locations.cache_clear()

        self.assertIs(vie.kind, LocationKind.AIRPORT)
        self.assertEqual(vie.tz_name, "Europe/Vienna")
        self.assertEqual(yyz.tz_name, "America/Toronto")
        self.assertEqual(paris.location.country, "FR")
        self.assertIs(paris.kind, LocationKind.CITY)

    def test_http_errors_propagate(self):
        client = httpx.Client(
            transport=httpx.MockTransport(lambda request: httpx.Response(500))
        )
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(httpx.HTTPStatusError):
                build(tmp, "US", client=client)


if __name__ == "__main__":
    unittest.main()
