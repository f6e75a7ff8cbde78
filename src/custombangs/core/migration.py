"""One-time migration of stored preferences to the prefixed key schema.

Older versions stored custom bangs under their bare token. The migration
re-keys them to ``bang:<token>``, renumbers their ``order`` and makes sure a
symbol preference exists.
"""

from __future__ import annotations

import logging
from typing import Any

from .catalog import (
    DEFAULT_SYMBOL,
    SYMBOL_KEY,
    bang_key,
    is_bang_key,
    is_search_engine_key,
    is_symbol_key,
)
from .ports import PreferenceStore, PreferenceStoreError
from .result import WriteResult, write_with_retry

logger = logging.getLogger(__name__)


def _order_of(item: tuple[str, Any]) -> float:
    value = item[1]
    if isinstance(value, dict):
        order = value.get("order")
        if isinstance(order, (int, float)) and not isinstance(order, bool):
            return order
    return float("inf")


def migrate_preferences(stored: dict[str, Any]) -> dict[str, Any]:
    """Return the migrated form of ``stored`` without touching any store."""
    migrated: dict[str, Any] = {}
    index = 0
    for key, value in sorted(stored.items(), key=_order_of):
        if is_symbol_key(key) or is_search_engine_key(key):
            migrated[key] = value
            continue

        if not isinstance(value, dict) or not isinstance(value.get("bang"), str):
            logger.warning("Dropping unrecognized preference %s", key)
            continue

        new_key = key if is_bang_key(key) else bang_key(value["bang"])
        migrated[new_key] = {**value, "order": index}
        index += 1

    migrated.setdefault(SYMBOL_KEY, DEFAULT_SYMBOL)
    return migrated


def migrate_storage_schema(store: PreferenceStore) -> WriteResult | None:
    """Rewrite ``store`` in the current schema.

    Returns None when there was nothing to migrate.
    """
    try:
        stored = store.get_all()
    except PreferenceStoreError as e:
        logger.warning("Could not read preferences for migration: %s", e)
        return WriteResult(ok=False, attempts=0, error=e)

    if not stored:
        return None

    migrated = migrate_preferences(stored)
    return write_with_retry(lambda: store.replace_all(migrated))
