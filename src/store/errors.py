"""Errors raised by the sink and its tables."""

from __future__ import annotations


class SinkStateError(RuntimeError):
    """Raised when a sink or table is used outside its open/close lifecycle."""
