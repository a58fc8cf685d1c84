"""sessionward logging: JSON lines in production, key=value lines in development.

Session events (login, logout, rejected tokens) are logged through
``log_auth_event`` so that the event name and the user/route they concern
travel as separate fields instead of being folded into the message text.
"""

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any, Literal

DEV_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# LogRecord attributes that are copied into the output when a caller sets them
EVENT_FIELDS = ("event", "user_id", "method", "route", "reason")

ROOT_LOGGER_NAME = "sessionward"


def event_fields(record: logging.LogRecord) -> dict[str, Any]:
    """The event fields present on ``record``, in ``EVENT_FIELDS`` order."""
    return {key: getattr(record, key) for key in EVENT_FIELDS if hasattr(record, key)}


class JSONFormatter(logging.Formatter):
    """One JSON object per record; event fields become top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(event_fields(record))
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class DevFormatter(logging.Formatter):
    """Readable single-line format with event fields appended as key=value."""

    def __init__(self):
        super().__init__(fmt=DEV_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = event_fields(record)
        if fields:
            line += " | " + " ".join(f"{key}={value}" for key, value in fields.items())
        return line


def setup_logging(
    level: str = "INFO",
    format_type: Literal["structured", "dev"] = "dev",
) -> None:
    """
    Configure the root logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: 'structured' for JSON lines, 'dev' for readable lines
    """
    numeric_level = getattr(logging, level.upper())
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if format_type == "structured" else DevFormatter())
    logging.root.handlers = [handler]
    logging.root.setLevel(numeric_level)

    for logger_name in ["uvicorn", "uvicorn.error", "uvicorn.access"]:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.DEBUG if numeric_level == logging.DEBUG else logging.WARNING
    )

    get_logger("logging").info(
        f"Logging configured: level={level.upper()}, format={format_type}"
    )


def get_logger(name: str) -> logging.Logger:
    """Logger under the ``sessionward.`` namespace."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def log_auth_event(
    logger: logging.Logger,
    event: str,
    message: str,
    *,
    level: int = logging.INFO,
    **fields: Any,
) -> None:
    """Log a session event with ``event`` and ``fields`` attached as record extras."""
    extra = {"event": event, **fields}
    logger.log(level, message, extra=extra)
