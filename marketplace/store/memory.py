# marketplace/store/memory.py
import copy
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from marketplace.core.errors import NotFound
from marketplace.store.base import (
    COLLECTIONS,
    OrderBy,
    Record,
    RecordStore,
    Where,
    check_collection,
    match_where,
    order_fields,
)


class InMemoryRecordStore(RecordStore):
    """
    Dict-backed store used for local runs and tests.

    Records are deep-copied on the way in and out so callers never hold a
    reference into the store's own state.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._data: Dict[str, Dict[str, Record]] = {name: {} for name in COLLECTIONS}

    def list(
        self,
        collection: str,
        where: Optional[Where] = None,
        order_by: Optional[OrderBy] = None,
        limit: Optional[int] = None,
    ) -> List[Record]:
        check_collection(collection)
        with self._lock:
            rows = [r for r in self._data[collection].values() if match_where(r, where)]
            rows = copy.deepcopy(rows)

        # stable sorts applied last-key-first give a multi-key ordering
        for field, descending in reversed(order_fields(order_by)):
            present = [r for r in rows if r.get(field) is not None]
            missing = [r for r in rows if r.get(field) is None]
            present.sort(key=lambda r: r[field], reverse=descending)
            rows = present + missing

        if limit is not None:
            rows = rows[:limit]
        return rows

    def get(self, collection: str, record_id: str) -> Optional[Record]:
        check_collection(collection)
        with self._lock:
            record = self._data[collection].get(record_id)
            return copy.deepcopy(record) if record is not None else None

    def create(self, collection: str, record: Mapping[str, Any]) -> Record:
        check_collection(collection)
        new = copy.deepcopy(dict(record))
        new.setdefault("id", uuid.uuid4().hex)
        new.setdefault("created_at", datetime.now(timezone.utc))
        with self._lock:
            if new["id"] in self._data[collection]:
                raise ValueError(f"{collection} record {new['id']} already exists")
            self._data[collection][new["id"]] = new
            return copy.deepcopy(new)

    def update(
        self,
        collection: str,
        record_id: str,
        changes: Mapping[str, Any],
        expected: Optional[Mapping[str, Any]] = None,
    ) -> Optional[Record]:
        check_collection(collection)
        with self._lock:
            current = self._data[collection].get(record_id)
            if current is None:
                raise NotFound(f"{collection} record {record_id} not found")
            if expected and not match_where(current, expected):
                return None
            changes = copy.deepcopy(dict(changes))
            changes.pop("id", None)
            current.update(changes)
            return copy.deepcopy(current)

    def delete(self, collection: str, record_id: str) -> None:
        check_collection(collection)
        with self._lock:
            if self._data[collection].pop(record_id, None) is None:
                raise NotFound(f"{collection} record {record_id} not found")
