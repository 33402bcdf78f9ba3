"""Event models and the attribute-to-column mapper."""

from .mapper import (
    AttributeMapper,
    MapperConfig,
    NotMatched,
    QualifiedCell,
    RowKeyFound,
    UnqualifiedCell,
    map_event,
    parse_attribute_key,
)
from .models import Cell, Event, RowWrite

__all__ = [
    "AttributeMapper",
    "Cell",
    "Event",
    "MapperConfig",
    "NotMatched",
    "QualifiedCell",
    "RowKeyFound",
    "RowWrite",
    "UnqualifiedCell",
    "map_event",
    "parse_attribute_key",
]
