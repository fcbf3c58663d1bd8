"""One-line JSON logs carrying the request's correlation ID.

Structured context goes in ``extra={"extra_fields": {...}}``; it is merged
into the top level of the JSON object. Customer data must be passed through
the redaction helpers first.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from .correlation import get_correlation_id


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        correlation_id = get_correlation_id()
        if correlation_id:
            entry["correlationId"] = correlation_id

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        entry.update(getattr(record, "extra_fields", None) or {})
        return json.dumps(entry, default=str)


def _stdout_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    return handler


def configure_logging(level: int = logging.INFO) -> None:
    """Send the whole ``hotelera`` logger tree to stdout as JSON.

    Domain modules log through plain ``logging.getLogger(__name__)`` and pick
    this up by propagation. Call once at startup.
    """
    package_logger = logging.getLogger("hotelera")
    if not package_logger.handlers:
        package_logger.addHandler(_stdout_handler())
    package_logger.setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """Logger with its own JSON handler, for infra and API modules."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.addHandler(_stdout_handler())
        logger.setLevel(logging.INFO)
        logger.propagate = False
    return logger
