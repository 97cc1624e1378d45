"""
In-memory narrowing of already-fetched records.

Screens fetch a role-scoped slice from the store and then narrow it by a
free-text query and by categorical filters chosen in the UI. Nothing here
mutates its input; every function returns a new list.
"""
from collections.abc import Mapping
from typing import Any, Iterable, List, Optional, Sequence

ALL = "all"


def field_value(record: Any, field: str, default: Any = None) -> Any:
    """Read ``field`` from a mapping record or an attribute-style object."""
    if isinstance(record, Mapping):
        return record.get(field, default)
    return getattr(record, field, default)


def search(records: Iterable[Any], query: Optional[str], fields: Sequence[str]) -> List[Any]:
    """Case-insensitive substring match of ``query`` over any of ``fields``."""
    records = list(records)
    needle = (query or "").strip().lower()
    if not needle:
        return records

    matched = []
    for record in records:
        for field in fields:
            value = field_value(record, field)
            if value is not None and needle in str(value).lower():
                matched.append(record)
                break
    return matched


def filter_exact(records: Iterable[Any], field: str, value: Any) -> List[Any]:
    """Keep records whose ``field`` equals ``value``; None or "all" keeps everything."""
    records = list(records)
    if value is None or value == ALL:
        return records
    return [r for r in records if field_value(r, field) == value]


def filter_records(
    records: Iterable[Any],
    query: Optional[str] = None,
    fields: Sequence[str] = (),
    **exact: Any,
) -> List[Any]:
    result = search(records, query, fields)
    for field, value in exact.items():
        result = filter_exact(result, field, value)
    return result
