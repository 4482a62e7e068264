"""Structured logging configuration."""

import logging
import sys
from pathlib import Path
from typing import TextIO

import structlog

_log_stream: TextIO | None = None


def configure_logging(log_level: str = "INFO", log_file: Path | None = None) -> None:
    """Configure structlog for the background agent.

    Events go to stderr unless ``log_file`` is given, in which case they are
    appended to that file until ``close_logging`` is called.
    """
    global _log_stream
    close_logging()
    if log_file:
        _log_stream = log_file.open("a", encoding="utf-8")
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(log_level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=_log_stream or sys.stderr),
        cache_logger_on_first_use=True,
    )


def close_logging() -> None:
    """Close the log file opened by ``configure_logging``, if any."""
    global _log_stream
    if _log_stream is not None:
        _log_stream.close()
        _log_stream = None


__all__ = ["close_logging", "configure_logging"]
