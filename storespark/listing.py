"""
Search, filter and sort helpers for list views.

Rows may be Pydantic models or plain dicts.
"""
from enum import Enum
from numbers import Number
from typing import Any, Iterable, List, Optional, Sequence

from pydantic import BaseModel


class Direction(str, Enum):
    ASC = "asc"
    DESC = "desc"


def field_value(row: Any, field: str) -> Any:
    if isinstance(row, dict):
        return row.get(field)
    return getattr(row, field, None)


def search(rows: Iterable[Any], term: Optional[str], fields: Sequence[str]) -> List[Any]:
    """Rows where any of ``fields`` contains ``term``, ignoring case."""
    rows = list(rows)
    if not term:
        return rows
    needle = term.lower()
    matched = []
    for row in rows:
        for field in fields:
            value = field_value(row, field)
            if isinstance(value, Enum):
                value = value.value
            if value is not None and needle in str(value).lower():
                matched.append(row)
                break
    return matched


def filter_by(rows: Iterable[Any], field: str, value: Any) -> List[Any]:
    rows = list(rows)
    if value is None or value == "":
        return rows
    return [r for r in rows if field_value(r, field) == value]


def _sort_key(value: Any):
    # None first, then numbers by value, then strings case-insensitively
    if value is None:
        return (0, 0)
    if isinstance(value, Number) and not isinstance(value, bool):
        return (1, value)
    if isinstance(value, str):
        return (2, value.lower())
    return (3, str(value))


def sort_rows(rows: Iterable[Any], key: Optional[str], direction: Direction = Direction.ASC) -> List[Any]:
    """Stable sort of ``rows`` by ``key``; no key keeps the original order."""
    rows = list(rows)
    if not key:
        return rows
    return sorted(
        rows,
        key=lambda r: _sort_key(field_value(r, key)),
        reverse=Direction(direction) == Direction.DESC,
    )


class SortConfig(BaseModel):
    key: Optional[str] = None
    direction: Direction = Direction.ASC

    def request(self, key: str) -> "SortConfig":
        """Clicking the same column flips the direction; a new column sorts ascending."""
        if self.key == key and self.direction == Direction.ASC:
            return SortConfig(key=key, direction=Direction.DESC)
        return SortConfig(key=key, direction=Direction.ASC)

    def apply(self, rows: Iterable[Any]) -> List[Any]:
        return sort_rows(rows, self.key, self.direction)
