"""Incremental parameterized SQL assembly.

A ``QueryState`` accumulates statement text together with its bind values.
Placeholders are numbered ``:p1 … :pN`` in the order values are bound, so the
numbering is contiguous and never collides regardless of which optional
clauses a builder decides to append.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple

from sqlalchemy import text
from sqlalchemy.sql.elements import TextClause

SORT_DIRECTIONS = ("ASC", "DESC")


@dataclass
class QueryState:
    query: str = ""
    values: List[Any] = field(default_factory=list)
    last_index: int = 0

    def bind(self, *values: Any) -> List[str]:
        """Append ``values`` and return their placeholders in order."""
        placeholders = []
        for value in values:
            self.values.append(value)
            self.last_index = len(self.values)
            placeholders.append(f":p{self.last_index}")
        return placeholders

    def append(self, fragment: str) -> "QueryState":
        self.query += fragment
        return self

    def reset(self) -> None:
        self.query = ""
        self.values = []
        self.last_index = 0

    @property
    def params(self) -> Dict[str, Any]:
        return {f"p{i}": v for i, v in enumerate(self.values, start=1)}

    def statement(self) -> TextClause:
        return text(self.query)


def resolve_sort(order_by: str, sort_by: str, columns: Mapping[str, str], default_key: str,
                 default_direction: str = "ASC") -> Tuple[str, str]:
    """Map a requested sort key and direction onto the allow-list.

    Unknown keys fall back to ``default_key``; unknown directions fall back to
    ``default_direction``. Caller input is never returned verbatim.
    """
    column = columns.get((order_by or "").strip().lower(), columns[default_key])
    direction = (sort_by or "").strip().upper()
    if direction not in SORT_DIRECTIONS:
        direction = default_direction
    return column, direction


def values_groups(state: QueryState, rows: Iterable[Sequence[Any]], casts: Sequence[str] = ()) -> str:
    """Bind every row and return ``(:p1, :p2), (:p3, :p4)`` style groups.

    ``casts`` optionally wraps a column placeholder, e.g. ``"CAST({} AS jsonb)"``;
    an empty string leaves the column as is.
    """
    groups = []
    for row in rows:
        placeholders = state.bind(*row)
        if casts:
            placeholders = [c.format(p) if c else p for p, c in zip(placeholders, casts)]
        groups.append("(" + ", ".join(placeholders) + ")")
    return ",\n".join(groups)


def as_json(value: Any) -> str:
    """Serialize a pydantic model (or plain value) for a jsonb bind parameter."""
    if hasattr(value, "model_dump"):
        value = value.model_dump(mode="json")
    return json.dumps(value)


def decode_json(raw: Any) -> Any:
    """JSON columns arrive decoded from psycopg; text columns need loading."""
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8")
    if isinstance(raw, str):
        return json.loads(raw)
    return raw
