"""
In-memory record store backing ``BlueprintModel``.

``RecordStore`` keeps records as plain dicts keyed by table name and id.
Records without an id get the next auto-increment integer of their table;
records with an id are upserted.

Example::

    from model_blueprints.store import RecordStore, set_store

    store = RecordStore()
    set_store(store)

    await Person.make()
    store.count("Person")  # 1
"""

from __future__ import annotations

import copy
import logging
import threading
from typing import Any

logger = logging.getLogger(__name__)


class RecordStore:
    """Table-keyed record storage with auto-increment ids."""

    def __init__(self) -> None:
        self._tables: dict[str, dict[Any, dict[str, Any]]] = {}
        self._sequences: dict[str, int] = {}
        self._lock = threading.RLock()

    def insert(self, table: str, data: dict[str, Any]) -> int:
        """
        Insert a new record and assign it an id.

        Returns:
            The generated id.
        """
        with self._lock:
            record_id = self._next_id(table)
            self._tables.setdefault(table, {})[record_id] = {**copy.deepcopy(data), "id": record_id}
        logger.debug("Record inserted -> %s:%s", table, record_id)
        return record_id

    def upsert(self, table: str, record_id: Any, data: dict[str, Any]) -> None:
        """Create or fully replace the record with the given id."""
        with self._lock:
            self._tables.setdefault(table, {})[record_id] = {**copy.deepcopy(data), "id": record_id}
            if isinstance(record_id, int) and record_id > self._sequences.get(table, 0):
                self._sequences[table] = record_id
        logger.debug("Record upserted -> %s:%s", table, record_id)

    def get(self, table: str, record_id: Any) -> dict[str, Any] | None:
        with self._lock:
            record = self._tables.get(table, {}).get(record_id)
            return copy.deepcopy(record) if record is not None else None

    def all(self, table: str) -> list[dict[str, Any]]:
        with self._lock:
            return [copy.deepcopy(record) for record in self._tables.get(table, {}).values()]

    def count(self, table: str) -> int:
        with self._lock:
            return len(self._tables.get(table, {}))

    def delete(self, table: str, record_id: Any) -> bool:
        """Delete a record. Returns True if it existed."""
        with self._lock:
            deleted = self._tables.get(table, {}).pop(record_id, None) is not None
        if deleted:
            logger.debug("Record deleted -> %s:%s", table, record_id)
        return deleted

    def clear(self, table: str | None = None) -> None:
        """Remove every record, or only the records of one table."""
        with self._lock:
            if table is None:
                self._tables.clear()
                self._sequences.clear()
            else:
                self._tables.pop(table, None)
                self._sequences.pop(table, None)

    def _next_id(self, table: str) -> int:
        next_id = self._sequences.get(table, 0) + 1
        self._sequences[table] = next_id
        return next_id


_default_store = RecordStore()


def get_store() -> RecordStore:
    """Get the store used by ``BlueprintModel``."""
    return _default_store


def set_store(store: RecordStore) -> RecordStore:
    """
    Replace the store used by ``BlueprintModel``.

    Returns:
        The previous store.
    """
    global _default_store
    previous = _default_store
    _default_store = store
    return previous


__all__ = ["RecordStore", "get_store", "set_store"]
