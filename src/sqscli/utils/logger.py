"""
Module: logger.py
Description: Structured logging configuration for sqscli.

Configures structlog for JSON output on stderr. Standard output is
reserved for command output (CSV rows), so log lines never mix with it.

Key Components:
- JSON output to stderr
- Timestamp and log level processors
- configure_logging() to apply the configured level
- get_logger() helper function

Dependencies: structlog, logging, sys, datetime
Author: sqscli Team
"""

import logging
import sys
from datetime import datetime, timezone

import structlog


def _add_timestamp(logger, method_name, event_dict):
    """
    Add ISO 8601 timestamp to log entries.

    Args:
        logger: Logger instance
        method_name: Log method name (info, error, etc.)
        event_dict: Current log event dictionary

    Returns:
        Updated event dictionary with timestamp
    """
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def _add_log_level(logger, method_name, event_dict):
    """Add log level to event dictionary."""
    event_dict["level"] = method_name.upper()
    return event_dict


def _stderr_logger_factory(*args):
    """Create a WriteLogger bound to the current sys.stderr."""
    return structlog.WriteLogger(sys.stderr)


def configure_logging(log_level: str = "INFO") -> None:
    """
    Configure structlog for JSON output on stderr.

    Args:
        log_level: Minimum level name to emit (DEBUG, INFO, WARNING, ...)
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")

    structlog.configure(
        processors=[
            _add_timestamp,
            _add_log_level,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        # stdout carries CSV output; stderr is looked up per logger so
        # redirected streams are honoured
        logger_factory=_stderr_logger_factory,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=False,
    )


configure_logging()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Get a configured structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Batch received", queue_name="orders", count=10)
        {"queue_name": "orders", "count": 10, "event": "Batch received", "timestamp": "...", "level": "INFO"}
    """
    return structlog.get_logger(name)
