"""
Logging setup for the ledger service.

Loggers live under the ``ledger`` namespace. Messages are short event names
(``journal_entry_posted``) with the structured data passed through
``extra=``; the JSON formatter emits them as one object per line.
"""

import json
import logging
import os
import sys
import threading
from datetime import datetime, timezone
from typing import Any

LOGGER_PREFIX = "ledger"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_STDLIB_KEYS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "taskName"}

_configured = False
_lock = threading.Lock()


class StructuredFormatter(logging.Formatter):
    """Formats each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, val in vars(record).items():
            if key not in _STDLIB_KEYS and key not in payload:
                payload[key] = val

        if record.exc_info and record.exc_info[1] is not None:
            exc = record.exc_info[1]
            payload["exc_type"] = type(exc).__name__
            payload["exc_message"] = str(exc)
            if hasattr(exc, "code"):
                payload["exc_code"] = exc.code
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the ledger namespace."""
    return logging.getLogger(f"{LOGGER_PREFIX}.{name}")


def configure_logging(
    *,
    level: int | str | None = None,
    json_output: bool | None = None,
    stream: Any = None,
) -> logging.Logger:
    """Configure the ledger logger hierarchy once; later calls are no-ops."""
    global _configured
    root_logger = logging.getLogger(LOGGER_PREFIX)
    with _lock:
        if _configured:
            return root_logger
        _configured = True

    if level is None:
        level = os.getenv("LEDGER_LOG_LEVEL", "INFO").upper()
    if json_output is None:
        json_output = os.getenv("LEDGER_LOG_JSON", "false").lower() in ("1", "true", "yes")

    handler = logging.StreamHandler(stream or sys.stderr)
    if json_output:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))

    root_logger.setLevel(level)
    root_logger.propagate = False
    root_logger.addHandler(handler)
    return root_logger


def reset_logging() -> None:
    """Drop handlers so configure_logging can run again. Tests only."""
    global _configured
    with _lock:
        _configured = False
    root_logger = logging.getLogger(LOGGER_PREFIX)
    root_logger.handlers.clear()
    root_logger.setLevel(logging.NOTSET)
    root_logger.propagate = True
