"""Structured JSON logging configuration."""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Optional

from marketplace.core.config import Settings, get_settings

# extra= fields copied into the JSON payload when present on a record
EXTRA_FIELDS = ("booking_id", "user_id", "collection", "request_path")


class JSONFormatter(logging.Formatter):
    """
    Format log records as one JSON object per line.

    Always present: timestamp (ISO 8601, UTC), level, logger, message.
    Any of EXTRA_FIELDS passed through ``extra=`` are added as top-level keys,
    and exception info is rendered under ``exception``.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for field in EXTRA_FIELDS:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def configure_logging(settings: Optional[Settings] = None) -> None:
    """
    Install the JSON formatter on the root logger.

    Reads LOG_LEVEL from settings (default: INFO) and writes to stderr.
    Calling it twice replaces the handler instead of stacking a second one.
    """
    settings = settings or get_settings()
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in list(root_logger.handlers):
        if isinstance(handler.formatter, JSONFormatter):
            root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter())
    root_logger.addHandler(handler)

    # uvicorn/sqlalchemy are chatty at INFO
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
