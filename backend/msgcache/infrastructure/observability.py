"""Structured Logging — JSON formatter and setup for the message store process.

Invariants:
    - All logs include timestamp, level, logger name, and message
    - Extra fields (message_id, topic, schema versions, error_code) surfaced when present
    - JSON format in production, human-readable in development
    - At most one handler installed by setup_logging is attached to the root
      logger; calling it again replaces that handler

Design Decisions:
    - Stdlib logging with a JSONFormatter: the host process owns handlers,
      this package only emits through module loggers
    - Level and format default to MSGCACHE_LOG_LEVEL / MSGCACHE_LOG_FORMAT
"""

import json
import logging
from datetime import datetime, timezone

from msgcache.config import get_settings

EXTRA_FIELDS = (
    "message_id", "topic", "error_code", "schema_version",
    "from_version", "to_version", "count",
)

_installed_handler: logging.Handler | None = None


class JSONFormatter(logging.Formatter):
    """Format logs as JSON for structured logging in production."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in EXTRA_FIELDS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False)


def _build_formatter(fmt: str) -> logging.Formatter:
    if fmt == "json":
        return JSONFormatter()
    return logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")


def setup_logging(level: str | None = None, fmt: str | None = None) -> logging.Handler:
    """Configure root logging from arguments or settings; returns the installed handler."""
    global _installed_handler
    settings = get_settings()
    level = level or settings.log_level
    fmt = fmt or settings.log_format

    handler = logging.StreamHandler()
    handler.setFormatter(_build_formatter(fmt))
    if _installed_handler is not None:
        logging.root.removeHandler(_installed_handler)
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
    _installed_handler = handler
    return handler
