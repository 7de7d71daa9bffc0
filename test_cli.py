import io
import json
import logging
import os
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest.mock import patch

from when.cli import main, parse_args


class TestCli(unittest.TestCase):
    def setUp(self):
        patcher = patch.dict(
            os.environ, {"WHEN_LOCAL_TIMEZONE": "Europe/Vienna", "WHEN_COLORS": "never"}
        )
        patcher.start()
        self.addCleanup(patcher.stop)

    def run_main(self, argv):
        stdout = io.StringIO()
        stderr = io.StringIO()
        with redirect_stdout(stdout), redirect_stderr(stderr):
            code = main(argv)
        return code, stdout.getvalue(), stderr.getvalue()

    def test_parse_args_defaults(self):
        args = parse_args([])
        self.assertEqual(args.expr, [])
        self.assertFalse(args.short)
        self.assertFalse(args.json)
        self.assertEqual(args.colors, "never")

    def test_short_output(self):
        code, out, err = self.run_main(
            ["2pm March 4th 2024 in vie -> yyz", "--short", "--colors", "never"]
        )
        self.assertEqual(code, 0)
        self.assertEqual(
            out.splitlines(),
            [
                "2024-03-04 14:00:00 +0100 (Vienna International Airport; Austria)",
                "2024-03-04 08:00:00 -0500 (Toronto Pearson International Airport; Canada)",
            ],
        )
        self.assertEqual(err, "")

    def test_words_are_joined(self):
        code, out, _ = self.run_main(
            ["noon", "March", "4th", "2024", "in", "Europe/Vienna", "-s"]
        )
        self.assertEqual(code, 0)
        self.assertEqual(out.strip(), "2024-03-04 12:00:00 +0100 (Europe/Vienna)")

    def test_json_output(self):
        code, out, _ = self.run_main(["2pm March 4th 2024 in vie -> yyz", "--json"])
        self.assertEqual(code, 0)
        data = json.loads(out)
        self.assertEqual(len(data), 2)
        self.assertEqual(data[0]["datetime"], "2024-03-04T14:00:00+01:00")
        self.assertEqual(data[1]["timezone"]["name"], "America/Toronto")
        self.assertEqual(data[1]["timezone"]["abbrev"], "EST")
        self.assertEqual(data[1]["location"]["country"], "Canada")

    def test_long_output(self):
        code, out, _ = self.run_main(["2pm March 4th 2024 in vie"])
        self.assertEqual(code, 0)
        lines = out.splitlines()
        self.assertTrue(lines[0].startswith("time: 14:00:00 ("))
        self.assertTrue(lines[0].endswith("; afternoon)"))
        self.assertEqual(lines[1], "date: 2024-03-04 (Monday)")
        self.assertEqual(lines[2], "zone: Europe/Vienna (CET; +0100)")
        self.assertEqual(
            lines[3], "location: Vienna International Airport (Austria)"
        )

    def test_windows_console_is_prepared(self):
        with patch("when.cli.just_fix_windows_console") as fix:
            code, _, _ = self.run_main(["now"])
        self.assertEqual(code, 0)
        fix.assert_called_once_with()

    def test_unknown_zone(self):
        code, out, err = self.run_main(["2pm in atlantis"])
        self.assertEqual(code, 1)
        self.assertEqual(out, "")
        self.assertEqual(err.strip(), "error: unknown timezone 'atlantis'")

    def test_syntax_error(self):
        code, _, err = self.run_main(["2pm foo"])
        self.assertEqual(code, 1)
        self.assertIn("unsure how to interpret 'foo'", err)

    def test_list_timezones(self):
        code, out, _ = self.run_main(["--list-timezones"])
        self.assertEqual(code, 0)
        lines = out.splitlines()
        self.assertTrue(any(line.startswith("Europe/Vienna (") for line in lines))

    def test_log_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "when.log")
            code, _, _ = self.run_main(["now", "--log-file", path])
            self.assertEqual(code, 0)
            with open(path, encoding="utf-8") as f:
                entries = [json.loads(line) for line in f if line.strip()]
            for handler in list(logging.getLogger().handlers):
                handler.close()
                logging.getLogger().removeHandler(handler)
        events = [e.get("event_type") for e in entries]
        self.assertIn("evaluate", events)


if __name__ == "__main__":
    unittest.main()
