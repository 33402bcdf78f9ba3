"""Observability primitives.

Structured logging for the sink: `setup_logging()` wires structlog into stdlib
logging once at startup, `get_logger()` hands out bound loggers.
"""

from .logging import get_logger, setup_logging

__all__ = [
    "get_logger",
    "setup_logging",
]
