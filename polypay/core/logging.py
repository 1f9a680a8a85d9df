"""Structured logging setup for PolyPay.

Library modules only ever call ``structlog.get_logger(__name__)``; the host
application decides how those events are rendered by calling
:func:`setup_logging` once at startup.
"""

import logging
import sys
from typing import Any

import structlog


_VALID_FORMATS = ("auto", "rich", "json", "plain")


def _select_renderer(fmt: str) -> Any:
    if fmt == "auto":
        fmt = "rich" if sys.stderr.isatty() else "json"

    if fmt == "json":
        return structlog.processors.JSONRenderer()
    if fmt == "rich":
        return structlog.dev.ConsoleRenderer(
            colors=True, exception_formatter=structlog.dev.rich_traceback
        )
    return structlog.dev.ConsoleRenderer(colors=False)


def setup_logging(
    level: str = "INFO",
    fmt: str = "auto",
    show_time: bool = True,
) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        fmt: Output format: 'rich', 'plain', 'json' or 'auto' (rich on a TTY,
            JSON otherwise)
        show_time: Whether to stamp events with an ISO timestamp
    """
    fmt = fmt.lower()
    if fmt not in _VALID_FORMATS:
        raise ValueError(f"Invalid log format: {fmt}. Must be one of {_VALID_FORMATS}")

    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        raise ValueError(f"Invalid log level: {level}")

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
    ]
    if show_time:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))
    processors.append(structlog.processors.StackInfoRenderer())
    if fmt == "json" or (fmt == "auto" and not sys.stderr.isatty()):
        processors.append(structlog.processors.format_exc_info)
    processors.append(_select_renderer(fmt))

    logging.basicConfig(level=log_level, stream=sys.stderr, format="%(message)s")
    logging.getLogger().setLevel(log_level)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


__all__ = ["setup_logging"]
