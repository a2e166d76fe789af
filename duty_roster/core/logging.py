# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
JSON log lines for the duty roster service.

All loggers handed out by ``get_logger`` live under the ``duty_roster``
logger, which owns the single stdout handler; module loggers propagate to it.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from duty_roster.core.config import settings

ROOT_LOGGER = "duty_roster"

# Passed through ``extra=`` by callers; copied into the line when set.
CONTEXT_FIELDS: tuple[str, ...] = ("request_id", "schedule_id", "week_key")


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "service": settings.SERVICE_NAME,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                entry[field] = value
        if record.exc_info and record.exc_info[1] is not None:
            exc = record.exc_info[1]
            entry["error"] = str(exc)
            entry["error_type"] = type(exc).__name__
        return json.dumps(entry, ensure_ascii=False, default=str)


def _service_logger() -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        root.addHandler(handler)
        root.propagate = False
    return root


def get_logger(name: str | None = None) -> logging.Logger:
    """Logger for ``name``, nested under the service logger."""
    root = _service_logger()
    if not name or name == ROOT_LOGGER:
        return root
    if not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
