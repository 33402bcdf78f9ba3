"""Structured logging.

`setup_logging()` configures a structlog processor pipeline and bridges it into
stdlib logging, so both `get_logger()` loggers and plain `logging.getLogger()`
loggers render through the same handler on stderr.

Without `setup_logging()` structlog's defaults apply, which is what tests rely
on when capturing log output.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from config import LoggingConfig


def setup_logging(config: LoggingConfig) -> None:
    """Wire structlog + stdlib logging to a single stderr handler."""
    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if config.format == "console":
        renderer: Any = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root = logging.getLogger()
    # Replace handlers from a previous setup_logging() call.
    for existing in list(root.handlers):
        if getattr(existing, "_attr2store", False):
            root.removeHandler(existing)
    handler._attr2store = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(config.level)


def get_logger(name: str | None = None, **initial_values: Any) -> Any:
    """Return a structlog logger named `name`."""
    return structlog.get_logger(name, **initial_values)
