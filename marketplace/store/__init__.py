from marketplace.store.base import COLLECTIONS, RecordStore
from marketplace.store.memory import InMemoryRecordStore


def build_store(settings) -> RecordStore:
    """Construct the configured backend (STORE_BACKEND=sql|memory)."""
    backend = settings.STORE_BACKEND.lower()
    if backend == "memory":
        return InMemoryRecordStore()
    if backend == "sql":
        from marketplace.store.sql import SqlRecordStore

        return SqlRecordStore.from_url(settings.DATABASE_URL)
    raise ValueError(f"Unknown STORE_BACKEND: {settings.STORE_BACKEND}")


__all__ = ["COLLECTIONS", "RecordStore", "InMemoryRecordStore", "build_store"]
