# blueprint_coach/logging_config.py
"""
Stderr-only logging configuration.

JSON lines for embedded/service use, a short human-readable format for the CLI.
Stdout stays reserved for conversation output.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

_VERBOSITY_LEVELS = {
    "quiet": logging.WARNING,
    "normal": logging.INFO,
    "verbose": logging.DEBUG,
}


class JsonFormatter(logging.Formatter):
    """Formats log records as JSON for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON line."""
        log_data: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }

        if record.exc_info:
            log_data["exc"] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def level_for(verbosity: str) -> int:
    """Map a config verbosity name to a logging level (unknown names -> INFO)."""
    return _VERBOSITY_LEVELS.get(verbosity, logging.INFO)


def configure_logging(verbosity: str = "normal") -> None:
    """
    Configure logging to output JSON to stderr only.

    Clears existing handlers so nothing else writes to stdout.
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level_for(verbosity))

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def configure_cli_logging(verbosity: str = "quiet") -> None:
    """Human-readable stderr logging for interactive CLI sessions."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter("%(asctime)s  %(levelname)-7s  %(message)s", datefmt="%H:%M:%S")
    )
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level_for(verbosity))
    logging.getLogger("httpx").setLevel(logging.WARNING)
