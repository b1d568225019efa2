from __future__ import annotations

import copy
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Mapping, Protocol, Sequence, Union


@dataclass(frozen=True)
class UpsertRow:
    """Merge ``values`` into the row ``row_id`` of ``table``, creating it if needed."""

    table: str
    row_id: str
    values: Mapping[str, Any]


@dataclass(frozen=True)
class ReplaceChildren:
    """Delete every row of ``table`` owned by ``parent_id`` and insert ``rows`` in order."""

    table: str
    parent_id: str
    rows: Sequence[Mapping[str, Any]] = field(default_factory=tuple)


RowWrite = Union[UpsertRow, ReplaceChildren]

PARENT_COLUMN = "entity_id"


class RowStore(Protocol):
    def get_row(self, table: str, row_id: str) -> dict | None:
        ...

    def select_children(self, table: str, parent_id: str) -> list[dict]:
        ...

    def commit(self, writes: Sequence[RowWrite]) -> None:
        ...


class InMemoryRowStore:
    """Row store kept in process memory.

    ``commit`` stages every write on a copy of the tables and swaps the copy
    in only when all writes applied, so a failing write set changes nothing.
    """

    def __init__(self) -> None:
        self._tables: Dict[str, Dict[str, dict]] = {}
        self._lock = threading.Lock()

    def get_row(self, table: str, row_id: str) -> dict | None:
        with self._lock:
            row = self._tables.get(table, {}).get(row_id)
            return copy.deepcopy(row) if row is not None else None

    def select_children(self, table: str, parent_id: str) -> list[dict]:
        with self._lock:
            rows = [
                copy.deepcopy(row)
                for row in self._tables.get(table, {}).values()
                if row.get(PARENT_COLUMN) == parent_id
            ]
        return sorted(rows, key=lambda row: row.get("position", 0))

    def commit(self, writes: Sequence[RowWrite]) -> None:
        with self._lock:
            staged = copy.deepcopy(self._tables)
            for write in writes:
                self._apply_write(staged, write)
            self._tables = staged

    def _apply_write(self, tables: Dict[str, Dict[str, dict]], write: RowWrite) -> None:
        rows = tables.setdefault(write.table, {})
        if isinstance(write, UpsertRow):
            current = rows.get(write.row_id, {"id": write.row_id})
            current.update(copy.deepcopy(dict(write.values)))
            rows[write.row_id] = current
            return
        for row_id in [rid for rid, row in rows.items() if row.get(PARENT_COLUMN) == write.parent_id]:
            del rows[row_id]
        now = datetime.utcnow().isoformat()
        for row in write.rows:
            row_id = uuid.uuid4().hex
            rows[row_id] = {
                **copy.deepcopy(dict(row)),
                "id": row_id,
                PARENT_COLUMN: write.parent_id,
                "created_at": now,
            }

    def count(self, table: str) -> int:
        with self._lock:
            return len(self._tables.get(table, {}))


__all__ = [
    "InMemoryRowStore",
    "PARENT_COLUMN",
    "ReplaceChildren",
    "RowStore",
    "RowWrite",
    "UpsertRow",
]
