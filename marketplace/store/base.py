"""
Record store contract.

Every route and service talks to persistence through a ``RecordStore``:
records are plain dicts, grouped into named collections. Two backends ship
with the project (``SqlRecordStore`` and ``InMemoryRecordStore``); both accept
the same ``where`` / ``order_by`` / ``limit`` shapes:

    store.list("bookings",
               where={"AND": [{"provider_id": uid}, {"OR": [{"status": "accepted"},
                                                           {"status": "in_progress"}]}]},
               order_by={"created_at": "desc"},
               limit=20)
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

COLLECTIONS = ("users", "providers", "services", "service_categories", "bookings")

Record = Dict[str, Any]
Where = Mapping[str, Any]
OrderBy = Union[str, Mapping[str, str]]


class RecordStore(ABC):

    @abstractmethod
    def list(
        self,
        collection: str,
        where: Optional[Where] = None,
        order_by: Optional[OrderBy] = None,
        limit: Optional[int] = None,
    ) -> List[Record]:
        ...

    @abstractmethod
    def get(self, collection: str, record_id: str) -> Optional[Record]:
        ...

    @abstractmethod
    def create(self, collection: str, record: Mapping[str, Any]) -> Record:
        ...

    @abstractmethod
    def update(
        self,
        collection: str,
        record_id: str,
        changes: Mapping[str, Any],
        expected: Optional[Mapping[str, Any]] = None,
    ) -> Optional[Record]:
        """
        Apply ``changes`` to one record.

        Raises NotFound when the record does not exist. When ``expected`` is
        given the write only happens if every expected field still holds the
        expected value; otherwise nothing is written and None is returned.
        """

    @abstractmethod
    def delete(self, collection: str, record_id: str) -> None:
        ...

    def close(self) -> None:
        """Release backend resources. Default: nothing to release."""


def check_collection(collection: str) -> None:
    if collection not in COLLECTIONS:
        raise ValueError(f"Unknown collection: {collection}")


def match_where(record: Mapping[str, Any], where: Optional[Where]) -> bool:
    """Evaluate a where mapping (field equality, AND / OR lists) against a record."""
    if not where:
        return True
    for key, value in where.items():
        if key == "AND":
            if not all(match_where(record, clause) for clause in value):
                return False
        elif key == "OR":
            if not any(match_where(record, clause) for clause in value):
                return False
        elif record.get(key) != value:
            return False
    return True


def order_fields(order_by: Optional[OrderBy]) -> List[Tuple[str, bool]]:
    """Normalize order_by into [(field, descending), ...]."""
    if not order_by:
        return []
    if isinstance(order_by, str):
        return [(order_by, False)]

    fields = []
    for field, direction in order_by.items():
        direction = (direction or "asc").lower()
        if direction not in ("asc", "desc"):
            raise ValueError(f"order_by direction must be asc or desc, got {direction!r}")
        fields.append((field, direction == "desc"))
    return fields
