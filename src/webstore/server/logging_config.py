"""Logging setup for the webstore server.

Request and order context (request id, lesson id, order id, quantity)
travels on log records as ``extra`` fields. The JSON format emits them as
keys, the pretty format appends them as ``key=value`` pairs.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional, TextIO

from webstore.server.config import Settings

CONTEXT_FIELDS = (
    "request_id",
    "method",
    "path",
    "status",
    "latency_ms",
    "lesson_id",
    "order_id",
    "quantity",
)

# pymongo logs every command and heartbeat at DEBUG
QUIET_LOGGERS = ("pymongo",)

_handler: Optional[logging.Handler] = None


def record_context(record: logging.LogRecord) -> Dict[str, Any]:
    """Context fields present on a record, in CONTEXT_FIELDS order."""
    context = {}
    for key in CONTEXT_FIELDS:
        val = getattr(record, key, None)
        if val is not None:
            context[key] = val
    return context


class JsonFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(record_context(record))

        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class PrettyFormatter(logging.Formatter):
    """Human-readable lines with the record's context appended."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)s [%(name)s] %(message)s")

    def formatMessage(self, record: logging.LogRecord) -> str:  # noqa: N802
        line = super().formatMessage(record)
        context = record_context(record)
        if context:
            line += " " + " ".join(f"{k}={v}" for k, v in context.items())
        return line


def setup_logging(
    settings: Optional[Settings] = None, stream: Optional[TextIO] = None
) -> logging.Handler:
    """Install the webstore handler on the root logger.

    Uses LOG_FORMAT and LOG_LEVEL from ``settings`` (the process settings
    when omitted). Calling it again replaces the handler it installed
    before and leaves other handlers alone.
    """
    global _handler
    if settings is None:
        from webstore.server.config import settings

    root = logging.getLogger()
    level = getattr(logging, settings.log_level, logging.INFO)
    root.setLevel(level)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(JsonFormatter() if settings.log_format == "json" else PrettyFormatter())

    if _handler is not None:
        root.removeHandler(_handler)
    root.addHandler(handler)
    _handler = handler

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    return handler
