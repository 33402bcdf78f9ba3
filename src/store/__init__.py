"""Column-store sink (MVP).

This package provides:
- `Attr2StoreSink`, which maps events to row writes and puts them into a table.
- `Table` implementations: in-memory for tests, DuckDB for durable local storage.
"""

from .errors import SinkStateError
from .sink import Attr2StoreSink
from .tables import DuckDBTable, InMemoryTable, Table

__all__ = [
    "Attr2StoreSink",
    "DuckDBTable",
    "InMemoryTable",
    "SinkStateError",
    "Table",
]
