"""Demo entrypoint wiring the sink to a stream of JSON events.

This module reads JSON-lines events from a file (or stdin) and appends each to
a DuckDB-backed sink configured from `ATTR2STORE_*` environment variables:

    {"body": "...", "timestamp": 1700000000000, "host": "web-1",
     "priority": "INFO", "attributes": {"2hb_": "row1", "2hb_user:name": "alice"}}

It is **not** intended to be production ingestion logic; it is a convenient
manual harness for trying attribute routing against a real table.
"""

from __future__ import annotations

import json
import sys
from collections.abc import Iterable, Iterator
from typing import Any, TextIO

from config import load_config
from events.models import Event
from observability import get_logger, setup_logging
from store import Attr2StoreSink

logger = get_logger(__name__)


def _encode(value: Any) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    raise ValueError(f"expected a string value. Got: {value!r}")


def parse_event(record: dict[str, Any]) -> Event:
    """Build an `Event` from a decoded JSON object (strings become UTF-8 bytes)."""
    attributes = record.get("attributes") or {}
    return Event(
        body=_encode(record.get("body", "")),
        timestamp=record["timestamp"],
        host=record["host"],
        priority=record.get("priority"),
        attributes={key: _encode(value) for key, value in attributes.items()},
    )


def read_events(lines: Iterable[str]) -> Iterator[Event]:
    """Yield events from JSON lines, skipping blank lines."""
    for line in lines:
        line = line.strip()
        if not line:
            continue
        yield parse_event(json.loads(line))


def run(stream: TextIO) -> dict[str, int]:
    """Append every event in `stream` to the configured sink and return counts."""
    cfg = load_config()
    setup_logging(cfg.logging)

    counts = {"events": 0, "written": 0, "skipped": 0}
    with Attr2StoreSink.from_config(cfg.sink) as sink:
        for event in read_events(stream):
            counts["events"] += 1
            if sink.append(event) is None:
                counts["skipped"] += 1
            else:
                counts["written"] += 1

    logger.info("ingest_finished", table=cfg.sink.table, db_path=cfg.sink.db_path, **counts)
    return counts


def main() -> None:
    """CLI entrypoint: `python src/main.py [events.jsonl]` (defaults to stdin)."""
    if len(sys.argv) > 1:
        with open(sys.argv[1], encoding="utf-8") as f:
            run(f)
    else:
        run(sys.stdin)


if __name__ == "__main__":
    main()
