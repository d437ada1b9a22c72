"""Structured logging configuration."""

from __future__ import annotations

import logging
import sys
from typing import TextIO

import structlog

from newsengine.core.settings import settings

log: structlog.stdlib.BoundLogger = structlog.get_logger("newsengine")


def configure_logging(
    level: str | None = None,
    output: TextIO = sys.stderr,
    json_format: bool | None = None,
) -> None:
    """Configure structlog for the whole process.

    Args:
        level: Log level name, defaults to ``settings.log_level``.
        output: Output stream (default: stderr).
        json_format: JSON lines when true, console renderer otherwise.
    """
    level_no = logging.getLevelName((level or settings.log_level).upper())
    if not isinstance(level_no, int):
        level_no = logging.INFO
    if json_format is None:
        json_format = settings.log_json

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if json_format:
        processors.append(structlog.processors.JSONRenderer(sort_keys=True))
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level_no),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=output),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", stream=output, level=level_no)


def bind_request_context(**values: object) -> None:
    structlog.contextvars.bind_contextvars(**values)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()
