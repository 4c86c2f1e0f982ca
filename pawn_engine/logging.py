"""Logging setup for the worker process.

Job and loan identifiers travel with a record through ``extra``::

    logger.info("Loan confiscated", extra=log_context(job=name, loan_id=7))

The JSON formatter emits them as top-level keys; the standard formatter
appends them as ``key=value`` pairs.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

CONTEXT_ATTR = "context"

STANDARD_FORMAT = "%(asctime)s | %(levelname)-8s | %(threadName)s | %(name)s | %(message)s"

# Third-party loggers that only matter when something goes wrong
QUIET_LOGGERS = ("confluent_kafka", "psycopg", "faker")


def log_context(**fields: Any) -> dict[str, Any]:
    """Build the ``extra`` mapping carrying structured context fields."""
    return {CONTEXT_ATTR: fields}


def record_context(record: logging.LogRecord) -> dict[str, Any]:
    """Context fields attached to ``record``, empty when there are none."""
    return getattr(record, CONTEXT_ATTR, None) or {}


class ContextFormatter(logging.Formatter):
    """Pipe-delimited text format with context fields appended."""

    def __init__(self) -> None:
        super().__init__(fmt=STANDARD_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = record_context(record)
        if not context:
            return line
        pairs = " ".join(f"{key}={value}" for key, value in context.items())
        return f"{line} | {pairs}"


class JsonFormatter(logging.Formatter):
    """One JSON object per record, with context fields at the top level."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        log_data.update(record_context(record))
        return json.dumps(log_data, default=str)


def setup_logging(level: str = "INFO", format_type: str = "standard") -> None:
    """Route all worker logging to stdout.

    Parameters
    ----------
    level : str
        Log level name; unknown names fall back to INFO.
    format_type : str
        ``"standard"`` or ``"json"``.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    formatter = JsonFormatter() if format_type == "json" else ContextFormatter()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    logging.getLogger("pawn_engine").setLevel(log_level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name."""
    return logging.getLogger(name)
