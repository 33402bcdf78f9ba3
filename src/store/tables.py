"""Column-store tables (storage backends).

A table receives whole `RowWrite`s and keeps every cell it is given. Reads
resolve duplicate columns to the most recently written value, the way a
column-family store returns the latest version of a cell.
"""

from __future__ import annotations

import re
import threading
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import duckdb

from events.models import RowWrite, utc_now
from observability.logging import get_logger

from .errors import SinkStateError

logger = get_logger(__name__)

ColumnKey = tuple[bytes, bytes]

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class Table(Protocol):
    """A synchronous table handle.

    Tables are opened by the sink and closed by it; closing flushes any
    buffered writes.
    """

    def put(self, row: RowWrite, *, write_to_wal: bool = True) -> None:
        """Submit one row write."""

    def flush(self) -> None:
        """Persist any buffered writes."""

    def get_row(self, row_key: bytes) -> dict[ColumnKey, bytes]:
        """Return the latest value per (family, qualifier) for a row."""

    def close(self) -> None:
        """Flush and release any underlying resources."""


class InMemoryTable:
    """In-memory table for tests and local debugging."""

    def __init__(self) -> None:
        """Create an empty in-memory table."""
        self._lock = threading.Lock()
        self._puts: list[tuple[RowWrite, bool]] = []
        self._closed = False

    def put(self, row: RowWrite, *, write_to_wal: bool = True) -> None:
        """Append a row write to the in-memory list (thread-safe)."""
        with self._lock:
            if self._closed:
                raise SinkStateError("table is closed")
            self._puts.append((row, write_to_wal))

    def flush(self) -> None:  # noqa: D401 - keep interface consistent
        """No-op."""

    def get_row(self, row_key: bytes) -> dict[ColumnKey, bytes]:
        """Fold all cells written under `row_key`; later writes win."""
        columns: dict[ColumnKey, bytes] = {}
        with self._lock:
            for row, _ in self._puts:
                if row.row_key != row_key:
                    continue
                for cell in row.cells:
                    columns[(cell.family, cell.qualifier)] = cell.value
        return columns

    def close(self) -> None:
        """Mark the table closed; further puts raise."""
        with self._lock:
            self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def snapshot(self) -> Sequence[tuple[RowWrite, bool]]:
        """Return a point-in-time copy of all `(row, write_to_wal)` puts."""
        with self._lock:
            return list(self._puts)


@dataclass(frozen=True)
class DuckDBOptions:
    path: Path
    table: str
    write_buffer_size: int = 0


class DuckDBTable:
    """DuckDB-backed table for durable local persistence.

    Cells are stored one per SQL row with a monotonically increasing version.
    With `write_buffer_size > 0` puts are held in memory until the buffered
    payload reaches that many bytes; otherwise each put is inserted at once.
    """

    def __init__(self, *, path: str | Path, table: str, write_buffer_size: int = 0) -> None:
        """Create (or open) a DuckDB-backed table at the given path."""
        if not _IDENTIFIER.match(table):
            raise ValueError(f"table must be a plain SQL identifier. Got: {table!r}")
        self._opts = DuckDBOptions(path=Path(path), table=table, write_buffer_size=write_buffer_size)
        self._lock = threading.Lock()
        self._pending: list[RowWrite] = []
        self._pending_bytes = 0
        self._conn: duckdb.DuckDBPyConnection | None = duckdb.connect(str(self._opts.path))
        try:
            self._ensure_schema()
        except duckdb.Error:
            self._conn.close()
            self._conn = None
            raise

    def _ensure_schema(self) -> None:
        """Create the backing table and version sequence if they do not exist yet."""
        table = self._opts.table
        with self._lock:
            conn = self._connection()
            conn.execute(f"create sequence if not exists {table}_version_seq")
            conn.execute(
                f"""
                create table if not exists {table} (
                  row_key blob not null,
                  family blob not null,
                  qualifier blob not null,
                  value blob not null,
                  version bigint not null default nextval('{table}_version_seq'),
                  written_at timestamptz not null
                )
                """
            )

    def _connection(self) -> duckdb.DuckDBPyConnection:
        if self._conn is None:
            raise SinkStateError(f"table {self._opts.table!r} is closed")
        return self._conn

    @property
    def pending(self) -> int:
        """Number of buffered row writes not yet inserted."""
        return len(self._pending)

    def put(self, row: RowWrite, *, write_to_wal: bool = True) -> None:
        """Insert (or buffer) a row write.

        DuckDB has no per-statement WAL switch; `write_to_wal` is accepted so the
        table satisfies the `Table` interface and every commit is logged.
        """
        with self._lock:
            self._connection()
            self._pending.append(row)
            self._pending_bytes += row.size
            if self._pending_bytes >= self._opts.write_buffer_size:
                self._flush_locked()

    def flush(self) -> None:
        """Insert all buffered row writes in one batch."""
        with self._lock:
            self._flush_locked()

    def _flush_locked(self) -> None:
        if not self._pending:
            return
        written_at = utc_now()
        params = [
            [row.row_key, cell.family, cell.qualifier, cell.value, written_at]
            for row in self._pending
            for cell in row.cells
        ]
        if params:
            insert_sql = f"""
            insert into {self._opts.table} (row_key, family, qualifier, value, written_at)
            values (?, ?, ?, ?, ?)
            """
            self._connection().executemany(insert_sql, params)
        logger.debug("table_flushed", table=self._opts.table, rows=len(self._pending), cells=len(params))
        self._pending.clear()
        self._pending_bytes = 0

    def get_row(self, row_key: bytes) -> dict[ColumnKey, bytes]:
        """Read back the latest value per column for `row_key`."""
        select_sql = f"""
        select family, qualifier, value
        from {self._opts.table}
        where row_key = ?
        qualify row_number() over (partition by family, qualifier order by version desc) = 1
        """
        with self._lock:
            rows = self._connection().execute(select_sql, [row_key]).fetchall()
        return {(bytes(family), bytes(qualifier)): bytes(value) for family, qualifier, value in rows}

    def close(self) -> None:
        """Flush buffered writes and close the DuckDB connection.

        Safe to call multiple times.
        """
        with self._lock:
            if self._conn is None:
                return
            try:
                self._flush_locked()
            finally:
                self._conn.close()
                self._conn = None
