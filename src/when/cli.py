"""
When CLI interface

Copyright 2025 The when authors

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at

    http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software
distributed under the License is distributed on an "AS IS" BASIS,
WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
See the License for the specific language governing permissions and
limitations under the License.
"""

import argparse
import datetime
import logging
import sys
from typing import List, Optional

from colorama import just_fix_windows_console

from .config import COLOR_CHOICES, get_default_colors
from .domain import process
from .errors import WhenError
from .formatting import (
    colors_enabled,
    format_error,
    format_results,
    format_timezone_list,
)
from .logger import get_logger, setup_logging
from .parser import parse
from .zones import all_timezones

DESCRIPTION = """\
A small utility to convert times from the command line.

When takes a time and date expression and converts it into different
timezones. If no expression is given the current time in the current
location is shown.

The basic syntax is "time_spec [in location_spec]". Conversions between
locations use the "->" operator: "2pm in vie -> yyz" takes 14:00 in
Vienna (airport) and converts it to Toronto (airport).
"""


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command line arguments.

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(
        prog="when",
        description=DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "expr",
        nargs="*",
        help='The expression to evaluate (default: "now"). Multiple words are joined.',
    )

    # Output options
    parser.add_argument(
        "-s",
        "--short",
        action="store_true",
        help="Use short output, one line per timezone.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output in JSON format.",
    )
    parser.add_argument(
        "--colors",
        choices=COLOR_CHOICES,
        default=get_default_colors(),
        help="Controls when to use colors (default: auto, or WHEN_COLORS).",
    )
    parser.add_argument(
        "--list-timezones",
        action="store_true",
        help="List all known IANA timezones.",
    )

    # Logging options
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging.",
    )
    parser.add_argument(
        "--log-file",
        help="Write JSON-lines logs to this file.",
    )

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the application.

    Returns:
        The process exit code
    """
    args = parse_args(argv)
    # translate ANSI codes on Windows consoles, a no-op elsewhere
    just_fix_windows_console()

    setup_logging(
        level=logging.DEBUG if args.debug else logging.INFO,
        log_file=args.log_file,
        quiet_console=not args.debug,
    )
    logger = get_logger()

    now = datetime.datetime.now(datetime.timezone.utc)

    if args.list_timezones:
        print(format_timezone_list(all_timezones(), now))
        return 0

    expression = " ".join(args.expr) or "now"
    logger.info(
        f"Evaluating {expression!r}",
        extra={"event_type": "evaluate", "expression": expression},
    )

    try:
        results = process(parse(expression), now)
    except WhenError as e:
        logger.info(
            f"Evaluation failed: {e}",
            extra={"event_type": "evaluate_error", "error_type": type(e).__name__},
        )
        print(
            format_error(str(e), colors_enabled(args.colors, sys.stderr)),
            file=sys.stderr,
        )
        return 1

    print(
        format_results(
            results,
            now,
            short=args.short,
            as_json=args.json,
            colors=colors_enabled(args.colors),
        )
    )
    return 0


def run() -> None:
    """
    Run the application.

    This function is the entry point for the console script.
    """
    logger = get_logger()
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nOperation cancelled by user.")
        sys.exit(1)
    except Exception as e:
        print(f"error: {e}", file=sys.stderr)
        logger.error(
            f"Application error: {e}",
            exc_info=True,
            extra={
                "event_type": "execution_error",
                "error_type": type(e).__name__,
            },
        )
        sys.exit(1)


if __name__ == "__main__":
    run()
