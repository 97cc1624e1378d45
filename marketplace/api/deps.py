# marketplace/api/deps.py
from typing import Any, Dict, Iterable, Optional

from fastapi import Request

from marketplace.core.auth import AuthClient
from marketplace.services.lifecycle import BookingLifecycle
from marketplace.store.base import Record, RecordStore


def get_auth(request: Request) -> AuthClient:
    return request.app.state.auth


def get_lifecycle(request: Request) -> BookingLifecycle:
    return request.app.state.lifecycle


def index_by_id(records: Iterable[Record]) -> Dict[Any, Record]:
    return {r["id"]: r for r in records}


def lookup(store: RecordStore, collection: str) -> Dict[Any, Record]:
    return index_by_id(store.list(collection))


def display_name(user: Optional[Record]) -> Optional[str]:
    if not user:
        return None
    return user.get("display_name") or user.get("email")
