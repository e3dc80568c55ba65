"""Logging setup for the sqlcopilot CLI.

Configures the ``src`` logger tree once per process. Text output uses the
``%(levelname)s:%(name)s:%(message)s`` format on stderr; json output writes
one object per record. An optional file handler mirrors the same format.
"""

import json
import logging
import sys
from datetime import UTC, datetime

_HANDLER_MARKER = "_sqlcopilot_handler"

TEXT_FORMAT = "%(levelname)s:%(name)s:%(message)s"


class JsonFormatter(logging.Formatter):
    """One JSON object per record: ts, level, logger, message."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def configure_logging(
    level: str = "info",
    log_format: str = "text",
    log_file: str | None = None,
) -> logging.Logger:
    """Attach handlers to the ``src`` logger, replacing earlier ones.

    Args:
        level: Level name such as "info" or "debug".
        log_format: "text" or "json".
        log_file: Optional path that receives the same records.

    Returns:
        The configured ``src`` logger.
    """
    root = logging.getLogger("src")
    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            root.removeHandler(handler)
            handler.close()

    formatter: logging.Formatter
    if log_format == "json":
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(TEXT_FORMAT)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    for handler in handlers:
        handler.setFormatter(formatter)
        setattr(handler, _HANDLER_MARKER, True)
        root.addHandler(handler)

    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    return root
