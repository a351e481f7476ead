"""
Structured Logging Utility.

This module provides structured JSON logging for the jobsweep pipeline.
All logs are formatted as JSON with consistent fields so a run can be
filtered and traced in any log aggregator (Apify console, CloudWatch, Loki).

Features:
- JSON format with consistent top-level fields
- Correlation ID (run_id) for tracing a single invocation
- Structured context via extra={"extra_fields": {...}}
- Performance metrics (duration, timing)
- Log level from the LOG_LEVEL environment variable (default INFO)

Usage:
    from jobsweep.utils.logger import get_logger, log_performance

    logger = get_logger(__name__)
    logger.info("Message", extra={"extra_fields": {"search_units": 12}})

    with log_performance("batch", batch_index=1):
        ...
"""

import json
import logging
import os
import time
from contextlib import contextmanager
from typing import Any, Dict, Optional

# Determine log level from environment
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
LOG_LEVEL = getattr(logging, LOG_LEVEL, logging.INFO)

# Global context for correlation IDs
_log_context: Dict[str, Any] = {}

# Attributes every LogRecord carries; anything else was added via `extra`
_RESERVED_ATTRS = {
    "name",
    "msg",
    "args",
    "created",
    "filename",
    "funcName",
    "levelname",
    "levelno",
    "lineno",
    "module",
    "msecs",
    "message",
    "pathname",
    "process",
    "processName",
    "relativeCreated",
    "thread",
    "threadName",
    "taskName",
    "exc_info",
    "exc_text",
    "stack_info",
    "duration_ms",
    "start_time",
    "extra_fields",
}


class JSONLogFormatter(logging.Formatter):
    """JSON formatter for structured log records.

    Formats log records as JSON with structured fields for easy querying.
    Includes the correlation ID and custom fields.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON.

        Args:
            record: LogRecord to format.

        Returns:
            JSON string with structured log data.
        """
        log_data = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if "run_id" in _log_context:
            log_data["run_id"] = _log_context["run_id"]

        # Custom fields passed as extra={"extra_fields": {...}}
        if hasattr(record, "extra_fields"):
            if isinstance(record.extra_fields, dict):
                log_data.update(record.extra_fields)
        # Any other attribute added directly through `extra`
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
            log_data["exception_type"] = (
                record.exc_info[0].__name__ if record.exc_info[0] else None
            )

        if hasattr(record, "duration_ms"):
            log_data["duration_ms"] = record.duration_ms
        if hasattr(record, "start_time"):
            log_data["start_time"] = record.start_time

        return json.dumps(log_data, default=str)


def configure_logging(level: Optional[int] = None) -> None:
    """Configure the root logger with the JSON formatter.

    Args:
        level: Optional log level overriding LOG_LEVEL.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level or LOG_LEVEL)

    # Remove existing handlers to avoid duplicate logs
    root_logger.handlers = []

    handler = logging.StreamHandler()
    handler.setLevel(level or LOG_LEVEL)
    handler.setFormatter(JSONLogFormatter())

    root_logger.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with structured logging support.

    Args:
        name: Logger name (typically __name__).

    Returns:
        Logger instance configured for structured JSON logging.
    """
    return logging.getLogger(name)


def set_correlation_id(run_id: Optional[str] = None) -> None:
    """Set the correlation ID added to all subsequent log records.

    Args:
        run_id: Identifier of the current pipeline invocation.
    """
    if run_id:
        _log_context["run_id"] = run_id


def clear_correlation_ids() -> None:
    """Clear correlation IDs from log context."""
    _log_context.clear()


@contextmanager
def log_performance(operation: str, **extra_fields):
    """Context manager for logging operation performance.

    Logs start, completion, and duration of an operation.

    Args:
        operation: Operation name (e.g., "search_jobs", "emit_rows").
        **extra_fields: Additional fields to include in log records.

    Yields:
        None

    Example:
        with log_performance("emit_rows", table="job_postings"):
            sink.emit(postings)
    """
    start_time = time.time()
    logger = get_logger(__name__)

    logger.info(
        f"Starting {operation}",
        extra={
            "extra_fields": {
                "operation": operation,
                "start_time": start_time,
                **extra_fields,
            }
        },
    )

    try:
        yield
    except Exception as e:
        duration_ms = (time.time() - start_time) * 1000
        logger.error(
            f"Failed {operation}",
            exc_info=True,
            extra={
                "extra_fields": {
                    "operation": operation,
                    "duration_ms": round(duration_ms, 2),
                    "status": "error",
                    "error": str(e),
                    **extra_fields,
                }
            },
        )
        raise

    duration_ms = (time.time() - start_time) * 1000
    logger.info(
        f"Completed {operation}",
        extra={
            "extra_fields": {
                "operation": operation,
                "duration_ms": round(duration_ms, 2),
                "status": "success",
                **extra_fields,
            }
        },
    )
