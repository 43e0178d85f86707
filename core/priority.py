# core/priority.py

"""
Queue ordering for requests: higher priority first, then newest first.

Pure helpers, independent of the workflow engine. Works on model
instances or raw Supabase rows.
"""

from datetime import datetime, timezone
from typing import Any, Iterable, List, Tuple

from models.enums import LEGACY_PRIORITY_ALIASES, RequestPriority
from models.request import normalize_priority


PRIORITY_RANK = {
    RequestPriority.urgent: 3,
    RequestPriority.high: 2,
    RequestPriority.normal: 1,
}

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def priority_rank(priority: Any) -> int:
    """Unknown or missing priorities rank below every known one."""
    try:
        return PRIORITY_RANK[RequestPriority(normalize_priority(priority))]
    except (ValueError, KeyError):
        return 0


def _get(item, key):
    if isinstance(item, dict):
        return item.get(key)
    return getattr(item, key, None)


def _created_at(item) -> datetime:
    value = _get(item, "created_at")
    if value is None:
        timestamps = _get(item, "timestamps")
        value = _get(timestamps, "created_at") if timestamps is not None else None

    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return _EPOCH

    if not isinstance(value, datetime):
        return _EPOCH
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def priority_sort_key(item) -> tuple:
    """Ascending sort key: highest rank first, then newest created_at."""
    created = _created_at(item)
    return (-priority_rank(_get(item, "priority")), -created.timestamp())


def sort_by_priority(items: Iterable) -> List:
    return sorted(items, key=priority_sort_key)


def priority_buckets() -> List[Tuple[RequestPriority, List[str]]]:
    """
    Stored ``priority`` values per canonical level, highest rank first.
    Legacy spellings are grouped with the level they normalize to.
    """
    levels = sorted(PRIORITY_RANK, key=PRIORITY_RANK.get, reverse=True)
    return [
        (level, [level.value] + [old for old, new in LEGACY_PRIORITY_ALIASES.items() if new == level])
        for level in levels
    ]
