"""Event sink that copies event attributes into a column-store table.

The sink owns the table handle and its lifecycle; the mapping itself lives in
`events.mapper` and never touches the table.

    sink = Attr2StoreSink.from_config(cfg.sink)
    with sink:
        for event in events:
            sink.append(event)
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Literal

from events.mapper import AttributeMapper, MapperConfig
from events.models import Event, RowWrite
from observability.logging import get_logger

from .errors import SinkStateError
from .tables import DuckDBTable, Table

if TYPE_CHECKING:
    from config import SinkConfig

logger = get_logger(__name__)

SinkState = Literal["closed", "open"]


class Attr2StoreSink:
    """Maps each appended event to a row write and puts it into a table."""

    def __init__(
        self,
        *,
        table_factory: Callable[[], Table],
        mapper_config: MapperConfig | None = None,
        write_to_wal: bool = True,
    ) -> None:
        """Create a closed sink.

        Args:
            table_factory: Called on `open()` to acquire a fresh table handle.
            mapper_config: Attribute routing settings.
            write_to_wal: Durability hint passed with every put.
        """
        self._table_factory = table_factory
        self.mapper = AttributeMapper(mapper_config)
        self.write_to_wal = write_to_wal
        self._table: Table | None = None

    @classmethod
    def from_config(cls, config: SinkConfig) -> Attr2StoreSink:
        """Build a DuckDB-backed sink from loaded configuration."""

        def _open_table() -> Table:
            return DuckDBTable(
                path=config.db_path,
                table=config.table,
                write_buffer_size=config.write_buffer_size,
            )

        return cls(
            table_factory=_open_table,
            mapper_config=config.mapper_config,
            write_to_wal=config.write_to_wal,
        )

    @property
    def state(self) -> SinkState:
        return "closed" if self._table is None else "open"

    @property
    def table(self) -> Table:
        """The open table handle."""
        if self._table is None:
            raise SinkStateError("sink is not open")
        return self._table

    def open(self) -> None:
        """Acquire the table handle.

        Raises:
            SinkStateError: if the sink is already open (a previous `close()` was skipped).
        """
        if self._table is not None:
            raise SinkStateError("sink is already open; close() was not called")
        self._table = self._table_factory()
        logger.debug("sink_opened")

    def append(self, event: Event) -> RowWrite | None:
        """Map `event` and put the result, returning what was written.

        Events without a row key, or whose row write has no cells, are not
        written and `None` is returned. Table errors propagate.
        """
        table = self.table
        row = self.mapper.map(event)
        if row is None or row.is_empty:
            return None
        table.put(row, write_to_wal=self.write_to_wal)
        return row

    def close(self) -> None:
        """Flush and release the table handle. Safe to call multiple times."""
        if self._table is None:
            return
        table, self._table = self._table, None
        table.close()
        logger.debug("sink_closed")

    def __enter__(self) -> Attr2StoreSink:
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
