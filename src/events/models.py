"""Event and row-write models.

An `Event` is what flows through the pipeline: an opaque body plus a little
metadata and a bag of named byte-string attributes. A `RowWrite` is what the
mapper hands to a table: one row key and the cells to put under it.

All models are frozen; a `RowWrite` is built fresh per event and never mutated.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

Priority = Literal["FATAL", "ERROR", "WARN", "INFO", "DEBUG", "TRACE"]


def utc_now() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(tz=timezone.utc)


class _Model(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class Event(_Model):
    """A single log/event record as delivered to the sink."""

    body: bytes = b""

    # Epoch milliseconds.
    timestamp: int
    host: str
    priority: Priority | None = None

    attributes: dict[str, bytes] = Field(default_factory=dict)

    @field_validator("timestamp")
    def validate_timestamp(cls, v: int) -> int:
        """Timestamps are stored as 8-byte signed integers."""
        if not INT64_MIN <= v <= INT64_MAX:
            raise ValueError(f"timestamp must fit in a signed 64-bit integer. Got: {v}")
        return v


class Cell(_Model):
    family: bytes
    qualifier: bytes
    value: bytes


class RowWrite(_Model):
    """Cells to write under a single row key.

    Cells keep construction order. Duplicate family/qualifier pairs are kept
    as-is; the table decides which value survives (the last one, for the
    tables in `store.tables`).
    """

    row_key: bytes
    cells: tuple[Cell, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.cells

    @property
    def size(self) -> int:
        """Approximate payload size in bytes, used for write buffering."""
        return len(self.row_key) + sum(len(c.family) + len(c.qualifier) + len(c.value) for c in self.cells)
