"""
Logging setup for the CAT service.

Development logs are plain text lines. In production every record is one
JSON object so the session/question/ability fields passed through
``extra={...}`` can be indexed by the log pipeline.
"""
import json
import logging
import logging.config
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from catexam.core.config import settings

# Attributes copied from ``extra={...}`` onto the JSON entry when present
STRUCTURED_FIELDS = (
    "session_id",
    "test_id",
    "user_id",
    "question_id",
    "position",
    "ability",
    "status",
    "error_id",
    "method",
    "path",
    "status_code",
    "duration_ms",
)

PLAIN_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
PLAIN_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Correlation id of the HTTP request being handled, set by RequestLoggingMiddleware
request_id_context: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with request id and CAT structured fields."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = request_id_context.get()
        if request_id:
            entry["request_id"] = request_id

        entry.update(
            (name, getattr(record, name))
            for name in STRUCTURED_FIELDS
            if hasattr(record, name)
        )

        if record.levelno >= logging.ERROR:
            entry["source"] = f"{record.pathname}:{record.lineno}"
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def _quiet_logger(level: int) -> Dict[str, Any]:
    return {"level": level, "handlers": ["console"], "propagate": False}


def setup_logging() -> None:
    """
    Configure the root, ``catexam`` and third-party loggers.

    The level comes from ``settings.LOG_LEVEL``; ``settings.ENV ==
    "production"`` switches the console handler to JSONFormatter.
    """
    level = logging.getLevelName(settings.LOG_LEVEL.upper())
    if not isinstance(level, int):
        level = logging.INFO
    formatter = "json" if settings.ENV == "production" else "plain"

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "plain": {"format": PLAIN_FORMAT, "datefmt": PLAIN_DATE_FORMAT},
                "json": {"()": JSONFormatter},
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "stream": sys.stdout,
                    "level": level,
                    "formatter": formatter,
                },
            },
            "root": {"level": level, "handlers": ["console"]},
            "loggers": {
                "catexam": _quiet_logger(level),
                # Per-request access lines duplicate RequestLoggingMiddleware
                "uvicorn.access": _quiet_logger(logging.WARNING),
                "sqlalchemy.engine": _quiet_logger(logging.WARNING),
            },
        }
    )
