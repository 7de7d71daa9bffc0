"""
Logging setup for when.

Console logging stays quiet (warnings only) unless debugging is requested.
An optional JSON-lines file handler records every event together with the
structured fields passed through ``extra=``.
"""

import datetime
import json
import logging
import sys
from typing import Any, Dict, Optional

LOGGER_NAME = "when"

# Attributes every LogRecord carries; anything else came in via extra=
_RESERVED = set(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime"}


class JsonLineFormatter(logging.Formatter):
    """Formats records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.datetime.fromtimestamp(
                record.created, datetime.timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED and not key.startswith("_"):
                entry[key] = value
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    quiet_console: bool = True,
) -> None:
    """
    Configure the root logger.

    Args:
        level: Level for the file handler and, if not quiet, the console
        log_file: Optional path of a JSON-lines log file
        quiet_console: Only show warnings and errors on the console
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.setLevel(level)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(logging.WARNING if quiet_console else level)
    console.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    root.addHandler(console)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(JsonLineFormatter())
        root.addHandler(file_handler)


def get_logger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAME)
