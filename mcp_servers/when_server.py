# /// script
# requires-python = ">=3.10"
# dependencies = [
#     "mcp>=1.6.0",
#     "when-cli",
# ]
# ///

import argparse
import sys
from typing import Any, Dict, List

from mcp.server.fastmcp import FastMCP

from when import WhenError, all_timezones, parse, process

app = FastMCP("When")


@app.tool()
def convert_time(expression: str) -> Dict[str, Any]:
    """Evaluates a time expression and converts it into every referenced timezone.

    Args:
        expression (str): A time expression such as 'now', '2pm in vie -> yyz',
            'tomorrow 9am in London -> America/New_York' or '@1700000000'.

    Returns:
        dict: A dictionary with:
            - 'is_relative' (bool): True if the result depends on the current time.
            - 'locations' (list): One entry per zone with 'datetime', 'time_of_day',
              'timezone' and, for places, 'location'.
            - 'error' (str or None): The error message if the expression failed.
    """
    try:
        expr = parse(expression)
        results = process(expr)
    except WhenError as e:
        return {"is_relative": False, "locations": [], "error": str(e)}
    return {
        "is_relative": expr.is_relative,
        "locations": [r.to_dict() for r in results],
        "error": None,
    }


@app.tool()
def list_timezones() -> List[str]:
    """Returns all known IANA timezone names, sorted alphabetically.

    Returns:
        list: The timezone names (e.g., 'Africa/Abidjan', ..., 'Europe/Vienna', ...).
    """
    return list(all_timezones())


@app.tool()
def current_time(location: str = "local") -> Dict[str, Any]:
    """Returns the current time at a location or timezone.

    Args:
        location (str, optional): A city, airport code or IANA timezone name. Defaults to 'local'.

    Returns:
        dict: Same shape as convert_time.
    """
    return convert_time(f"now in {location}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        description="Run the When MCP server.",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument(
        "--transport",
        type=str,
        choices=["sse", "stdio"],
        default="stdio",
        help="Transport method to use (sse or stdio).",
    )

    args = parser.parse_args()

    print(f"Starting When server (Transport: {args.transport})", file=sys.stderr)
    app.run(transport=args.transport)
