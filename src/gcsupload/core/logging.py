"""Logging configuration for the upload service."""

import contextvars
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

# URI of the object the current request writes to
gcs_uri_context: contextvars.ContextVar[str | None] = contextvars.ContextVar("gcs_uri", default=None)

# Attributes of a bare LogRecord; anything else was passed through extra={...}
_RECORD_ATTRIBUTES = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}


class CloudLoggingFormatter(logging.Formatter):
    """Render records as single-line JSON for Google Cloud Logging.

    Each entry carries timestamp, severity, message and logger name, the
    request's object URI when one is set, every ``extra`` field, and the
    formatted traceback under ``exception``.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat()
            .replace("+00:00", "Z"),
            "severity": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }

        gcs_uri = gcs_uri_context.get()
        if gcs_uri:
            entry["gcs_uri"] = gcs_uri

        entry.update(
            (key, value) for key, value in record.__dict__.items() if key not in _RECORD_ATTRIBUTES
        )

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str, ensure_ascii=False)


def setup_logging() -> None:
    """Send all logs to stdout.

    ``ENV=local`` gets plain text at DEBUG; anything else gets
    CloudLoggingFormatter JSON at LOG_LEVEL. Uvicorn's loggers share the
    same handler.
    """
    from gcsupload.core.config import settings

    if settings.ENV == "local":
        level = logging.DEBUG
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    else:
        level = logging.getLevelName(settings.LOG_LEVEL.upper())
        if not isinstance(level, int):
            level = logging.INFO
        formatter = CloudLoggingFormatter()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    for name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.setLevel(level)
        uvicorn_logger.handlers = [handler]
        uvicorn_logger.propagate = False
