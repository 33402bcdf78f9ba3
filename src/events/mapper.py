"""Attribute-to-column mapping.

Attribute keys are routed by a string convention:

- `"<prefix>"` holds the row key.
- `"<prefix><family>:<qualifier>"` goes to that family/qualifier.
- `"<prefix><name>"` (no colon, or an empty side) goes to the system family
  under qualifier `<name>`, or is dropped when no system family is configured.
- Anything else is not copied into the store.

For example, with prefix `"2hb_"` and system family `"sysfam"`:

    "2hb_"             -> row key
    "2hb_user:name"    -> user:name
    "2hb_any"          -> sysfam:any
    "user:name"        -> (ignored)

`parse_attribute_key` turns a key into one of four tagged results so that each
routing branch can be tested on its own; `map_event` applies them to an event.
Mapping never raises for routing problems: a missing row key skips the event
and an undeterminable column drops the attribute, each with a warning log line.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator

from observability.logging import get_logger

from .models import Cell, Event, RowWrite

DEFAULT_ATTR_PREFIX = "2hb_"

logger = get_logger(__name__)


class MapperConfig(BaseModel):
    """Immutable mapper settings."""

    model_config = ConfigDict(frozen=True)

    # None (or "") disables system columns.
    system_family: str | None = None
    write_body: bool = True
    attr_prefix: str = DEFAULT_ATTR_PREFIX

    @field_validator("system_family")
    def normalize_system_family(cls, v: str | None) -> str | None:
        return v or None

    @field_validator("attr_prefix", mode="before")
    def default_attr_prefix(cls, v: str | None) -> str:
        return DEFAULT_ATTR_PREFIX if v is None else v


class _Parsed(BaseModel):
    model_config = ConfigDict(frozen=True)


class RowKeyFound(_Parsed):
    kind: Literal["row_key"] = "row_key"


class QualifiedCell(_Parsed):
    kind: Literal["qualified"] = "qualified"
    family: str
    qualifier: str


class UnqualifiedCell(_Parsed):
    kind: Literal["unqualified"] = "unqualified"
    name: str


class NotMatched(_Parsed):
    kind: Literal["not_matched"] = "not_matched"


ParsedKey = RowKeyFound | QualifiedCell | UnqualifiedCell | NotMatched


def parse_attribute_key(key: str, prefix: str) -> ParsedKey:
    """Classify an attribute key against the marker prefix."""
    if key == prefix:
        return RowKeyFound()
    if not key.startswith(prefix):
        return NotMatched()

    rest = key[len(prefix):]
    family, sep, qualifier = rest.partition(":")
    if sep and family and qualifier:
        return QualifiedCell(family=family, qualifier=qualifier)
    return UnqualifiedCell(name=rest)


def encode(value: int | str | bytes) -> bytes:
    """Encode a value the way the store expects it.

    Integers become 8-byte big-endian signed values, strings UTF-8.
    """
    if isinstance(value, bytes):
        return value
    if isinstance(value, bool):
        raise TypeError("booleans have no column encoding")
    if isinstance(value, int):
        return value.to_bytes(8, "big", signed=True)
    return value.encode("utf-8")


def _system_cells(event: Event, system_family: str, write_body: bool) -> list[Cell]:
    family = encode(system_family)
    cells = [
        Cell(family=family, qualifier=b"timestamp", value=encode(event.timestamp)),
        Cell(family=family, qualifier=b"host", value=encode(event.host)),
    ]
    if event.priority is not None:
        cells.append(Cell(family=family, qualifier=b"priority", value=encode(event.priority)))
    if write_body:
        cells.append(Cell(family=family, qualifier=b"event", value=event.body))
    return cells


def _attribute_cell(key: str, value: bytes, config: MapperConfig) -> Cell | None:
    parsed = parse_attribute_key(key, config.attr_prefix)
    if isinstance(parsed, QualifiedCell):
        return Cell(family=encode(parsed.family), qualifier=encode(parsed.qualifier), value=value)
    if isinstance(parsed, UnqualifiedCell):
        if config.system_family is not None:
            return Cell(family=encode(config.system_family), qualifier=encode(parsed.name), value=value)
        logger.warning("column_undetermined", attribute=key)
    # RowKeyFound was consumed as the row key; NotMatched is not for the store.
    return None


def map_event(event: Event, config: MapperConfig) -> RowWrite | None:
    """Map an event to a row write, or return None when it has no row key."""
    row_key = event.attributes.get(config.attr_prefix)
    if row_key is None:
        logger.warning("row_key_missing", attr_prefix=config.attr_prefix, host=event.host)
        return None

    cells: list[Cell] = []
    if config.system_family is not None:
        cells.extend(_system_cells(event, config.system_family, config.write_body))

    for key, value in event.attributes.items():
        cell = _attribute_cell(key, value, config)
        if cell is not None:
            cells.append(cell)

    return RowWrite(row_key=row_key, cells=tuple(cells))


class AttributeMapper:
    """`map_event` bound to a fixed configuration.

    Holds no state besides the config, so one instance can be shared freely.
    """

    def __init__(self, config: MapperConfig | None = None) -> None:
        self.config = config or MapperConfig()

    def map(self, event: Event) -> RowWrite | None:
        return map_event(event, self.config)
