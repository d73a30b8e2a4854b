"""
Loguru setup for certforgot.

One stderr sink is installed at import time. Every record carries the
trace id bound by certforgot.core.trace_context.trace_scope, so the
source, installer and state calls made for one certificate can be
grepped together. Standard library loggers of the Azure SDK, httpx and
SQLAlchemy are forwarded to the same sink.
"""

import logging
import sys
from typing import Any

from loguru import logger

from certforgot.config import Settings, get_settings
from certforgot.core.trace_context import trace_id_context

# Libraries whose standard logging output is forwarded to loguru
INTERCEPTED_LOGGERS = ("azure", "httpx", "sqlalchemy.engine")


def add_trace_id(record: dict[str, Any]) -> bool:
    """
    Loguru filter injecting the current trace id into record["extra"].

    Args:
        record: Loguru record

    Returns:
        Always True, the filter never drops a record
    """
    trace_id = trace_id_context.get()
    record["extra"]["trace_id"] = trace_id or "N/A"
    return True


def configure_logger(settings: Settings | None = None) -> None:
    """
    Replace the loguru sinks with the one described by settings.

    Args:
        settings: Settings to apply (defaults to get_settings())
    """
    settings = settings or get_settings()

    logger.remove()
    logger.add(
        sink=sys.stderr,
        level=settings.log_level.upper(),
        format=settings.log_format,
        filter=add_trace_id,
        colorize=not settings.log_json,
        serialize=settings.log_json,
        backtrace=True,
        diagnose=False,
        enqueue=settings.logger_enqueue,
    )


configure_logger()


__all__ = [
    "logger",
    "InterceptHandler",
    "configure_logger",
    "intercept_standard_logging",
]


class InterceptHandler(logging.Handler):
    """
    Standard logging handler that re-emits records through loguru.

    Usage:
        logging.getLogger("azure").handlers = [InterceptHandler()]
    """

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Skip the logging module frames so the caller location is kept
        logger.opt(depth=6, exception=record.exc_info).log(level, record.getMessage())


def intercept_standard_logging(level: int | str | None = None) -> None:
    """
    Forward the Azure SDK, httpx and SQLAlchemy loggers to loguru.

    Args:
        level: Minimum forwarded level (defaults to the
            library_log_level setting)
    """
    if level is None:
        level = get_settings().library_log_level.upper()

    for name in INTERCEPTED_LOGGERS:
        library_logger = logging.getLogger(name)
        library_logger.handlers = [InterceptHandler()]
        library_logger.setLevel(level)
        library_logger.propagate = False
