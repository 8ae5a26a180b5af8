"""Logging for git-pulse.

structlog is configured once, writing to stderr so stdout stays free for
the MCP stdio transport.
"""

from __future__ import annotations

import logging
import sys
from os import getenv
from typing import TYPE_CHECKING, Literal

import structlog

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

LogFormatType = Literal["json", "text"]

_configured = False


def _get_log_level() -> int:
    """
    GIT_PULSE_DEBUG (any value) wins, then GIT_PULSE_LOG_LEVEL, default WARNING.
    """
    if getenv("GIT_PULSE_DEBUG", None):
        return logging.DEBUG

    log_levels = logging.getLevelNamesMapping()
    return log_levels.get(getenv("GIT_PULSE_LOG_LEVEL", "warning").upper(), logging.WARNING)


def _stderr_logger(*args: object) -> structlog.PrintLogger:
    # looked up per call: sys.stderr may be swapped after configuration
    return structlog.PrintLogger(file=sys.stderr)


def configure_logging(
    level: int | None = None,
    log_format: LogFormatType | None = None,
) -> None:
    global _configured

    effective_level = level if level is not None else _get_log_level()
    fmt = log_format or ("json" if getenv("GIT_PULSE_LOG_FORMAT", "text") == "json" else "text")

    processors: list[structlog.typing.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if fmt == "json":
        processors.append(structlog.processors.dict_tracebacks)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(effective_level),
        logger_factory=_stderr_logger,
        context_class=dict,
        cache_logger_on_first_use=False,
    )
    _configured = True


def get_logger(name: str) -> "FilteringBoundLogger":  # noqa: UP037
    if not _configured:
        configure_logging()
    return structlog.get_logger(name)
