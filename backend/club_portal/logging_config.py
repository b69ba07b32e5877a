"""
Structured JSON logging for the portal.

One JSON object per line on stdout. Each service logs to its own channel
(http, db, auth, attendance, scoring, authoring) and every entry carries the
id of the HTTP request it was produced under.
"""

import logging
import json
import uuid
from datetime import datetime, timezone
from contextvars import ContextVar

from club_portal.config import get_settings

# Set by the request-id middleware for the duration of one request
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

LOGGER_PREFIX = "club_portal"
CHANNELS = ["http", "db", "auth", "attendance", "scoring", "authoring"]


def _channel_of(logger_name: str) -> str:
    prefix, _, channel = logger_name.rpartition(".")
    return channel if prefix else "app"


class StructuredJsonFormatter(logging.Formatter):
    """
    Render a record as JSON with the keys timestamp, level, message,
    channel, context (always including request_id) and extra. Exceptions
    are added under "exception".
    """

    def format(self, record: logging.LogRecord) -> str:
        context = {"request_id": request_id_var.get("")}
        context.update(getattr(record, "context", None) or {})

        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "message": record.getMessage(),
            "channel": getattr(record, "channel", None) or _channel_of(record.name),
            "context": context,
            "extra": getattr(record, "extra_data", None) or {},
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_logging(level: str = None):
    """Install the JSON handler on the root logger and set channel levels."""
    level_name = (level or get_settings().log_level).upper()
    log_level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler()
    handler.setFormatter(StructuredJsonFormatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [handler]

    for channel in CHANNELS:
        get_logger(channel).setLevel(log_level)

    return root_logger


def get_logger(channel: str) -> logging.Logger:
    return logging.getLogger(f"{LOGGER_PREFIX}.{channel}")


def log_with_context(logger: logging.Logger, level: str, message: str,
                     context: dict = None, extra_data: dict = None):
    """
    Log `message` at `level` on a channel logger.

    `context` holds the ids the entry is about (student_id, session_id,
    test_id); `extra_data` holds measurements such as duration_ms.
    """
    logger.log(
        getattr(logging, level.upper(), logging.INFO),
        message,
        extra={
            "context": context or {},
            "extra_data": extra_data or {},
            "channel": _channel_of(logger.name),
        },
    )


def generate_request_id() -> str:
    return str(uuid.uuid4())
