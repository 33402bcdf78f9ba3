from __future__ import annotations

from pathlib import Path

import duckdb
import pytest

from events.models import Cell, RowWrite
from store import DuckDBTable, InMemoryTable, SinkStateError


def _row(row_key: bytes, *cells: tuple[bytes, bytes, bytes]) -> RowWrite:
    return RowWrite(
        row_key=row_key,
        cells=tuple(Cell(family=f, qualifier=q, value=v) for f, q, v in cells),
    )


def test_in_memory_table_latest_value_wins() -> None:
    table = InMemoryTable()
    table.put(_row(b"r", (b"f", b"q", b"1"), (b"f", b"q", b"2")))
    table.put(_row(b"r", (b"f", b"other", b"x")), write_to_wal=False)
    table.put(_row(b"s", (b"f", b"q", b"3")))

    assert table.get_row(b"r") == {(b"f", b"q"): b"2", (b"f", b"other"): b"x"}
    assert [wal for _, wal in table.snapshot()] == [True, False, True]

    table.close()
    with pytest.raises(SinkStateError):
        table.put(_row(b"r", (b"f", b"q", b"4")))


def test_duckdb_table_autoflush(tmp_path: Path) -> None:
    table = DuckDBTable(path=tmp_path / "t.duckdb", table="events")
    table.put(_row(b"r", (b"user", b"name", b"alice"), (b"user", b"name", b"bob")))
    table.put(_row(b"r", (b"sys", b"host", b"web-1")))

    assert table.pending == 0
    assert table.get_row(b"r") == {(b"user", b"name"): b"bob", (b"sys", b"host"): b"web-1"}
    assert table.get_row(b"missing") == {}
    table.close()


def test_duckdb_table_buffers_until_threshold(tmp_path: Path) -> None:
    row = _row(b"r", (b"f", b"q", b"x" * 10))
    table = DuckDBTable(path=tmp_path / "t.duckdb", table="events", write_buffer_size=row.size * 2)

    table.put(row)
    assert table.pending == 1
    assert table.get_row(b"r") == {}

    table.put(_row(b"r", (b"f", b"q", b"y" * 10)))
    assert table.pending == 0
    assert table.get_row(b"r") == {(b"f", b"q"): b"y" * 10}
    table.close()


def test_duckdb_table_flush_and_close(tmp_path: Path) -> None:
    path = tmp_path / "t.duckdb"
    table = DuckDBTable(path=path, table="events", write_buffer_size=1 << 20)

    table.put(_row(b"a", (b"f", b"q", b"1")))
    table.flush()
    assert table.get_row(b"a") == {(b"f", b"q"): b"1"}

    table.put(_row(b"b", (b"f", b"q", b"2")))
    table.close()
    table.close()

    with pytest.raises(SinkStateError):
        table.put(_row(b"c", (b"f", b"q", b"3")))

    reopened = DuckDBTable(path=path, table="events")
    assert reopened.get_row(b"b") == {(b"f", b"q"): b"2"}
    reopened.put(_row(b"a", (b"f", b"q", b"newer")))
    assert reopened.get_row(b"a") == {(b"f", b"q"): b"newer"}
    reopened.close()


def test_duckdb_table_stores_binary_values(tmp_path: Path) -> None:
    table = DuckDBTable(path=tmp_path / "t.duckdb", table="events")
    table.put(_row(b"\x00\xff", (b"\x01", b"\x02", b"\x00\x00\xfe")))
    assert table.get_row(b"\x00\xff") == {(b"\x01", b"\x02"): b"\x00\x00\xfe"}
    table.close()


@pytest.mark.parametrize("name", ["", "1events", "events; drop table x", "my-table"])
def test_duckdb_table_rejects_unsafe_names(tmp_path: Path, name: str) -> None:
    with pytest.raises(ValueError):
        DuckDBTable(path=tmp_path / "t.duckdb", table=name)


class _RecordingConnection:
    def __init__(self) -> None:
        self.closed = False

    def close(self) -> None:
        self.closed = True


def test_duckdb_table_closes_connection_when_schema_setup_fails(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    conn = _RecordingConnection()
    monkeypatch.setattr("store.tables.duckdb.connect", lambda _path: conn)

    def _fail(self) -> None:  # noqa: ANN001
        raise duckdb.CatalogException("existing object has a different type")

    monkeypatch.setattr(DuckDBTable, "_ensure_schema", _fail)

    with pytest.raises(duckdb.CatalogException):
        DuckDBTable(path=tmp_path / "t.duckdb", table="events")
    assert conn.closed

