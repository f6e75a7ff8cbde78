"""Bang catalog: token -> destination template and formatting rules.

The catalog is built in the background at startup from a remote default
list, overlaid with the user's custom bangs, and then kept in sync with
preference change notifications. Until the first build finishes it is
empty, so lookups simply miss.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass
from typing import Any, Mapping

from .ports import (
    CatalogFetchError,
    CatalogSource,
    PreferenceChange,
    PreferenceStore,
    PreferenceStoreError,
)

logger = logging.getLogger(__name__)

DEFAULT_SYMBOL = "!"

BANG_PREFIX = "bang:"
SYMBOL_KEY = "bang-symbol"
SEARCH_ENGINE_PREFIX = "search-engine:"

# The published catalogs do not say which services need literal queries.
UNENCODED_TOKENS = ("wayback", "waybackmachine")


def bang_key(token: str) -> str:
    """Preference key under which a custom bang is stored."""
    return f"{BANG_PREFIX}{token.lower()}"


def is_bang_key(key: str) -> bool:
    return key.startswith(BANG_PREFIX)


def is_symbol_key(key: str) -> bool:
    return key.startswith(SYMBOL_KEY)


def is_search_engine_key(key: str) -> bool:
    return key.startswith(SEARCH_ENGINE_PREFIX)


@dataclass(frozen=True)
class CatalogEntry:
    """Resolution rules for one bang."""

    token: str
    destination_template: str
    encode_query: bool = True
    open_base_url_on_empty_query: bool = True

    @classmethod
    def from_default(cls, item: Mapping[str, Any]) -> CatalogEntry:
        """Build an entry from a published ``{"t": ..., "u": ...}`` item."""
        token, url = item.get("t"), item.get("u")
        if not isinstance(token, str) or not isinstance(url, str) or not token:
            raise ValueError(f"Malformed catalog item: {item!r}")
        return cls(token=token.lower(), destination_template=url)

    @classmethod
    def from_preference(cls, value: Mapping[str, Any]) -> CatalogEntry:
        """Build an entry from a stored custom bang."""
        if not isinstance(value, Mapping):
            raise ValueError(f"Malformed custom bang: {value!r}")
        token, url = value.get("bang"), value.get("url")
        if not isinstance(token, str) or not isinstance(url, str) or not token:
            raise ValueError(f"Malformed custom bang: {value!r}")
        return cls(
            token=token.lower(),
            destination_template=url,
            encode_query=bool(value.get("urlEncodeQuery", True)),
            open_base_url_on_empty_query=bool(value.get("openBaseUrl", False)),
        )


class BangCatalog:
    """Single owner of the bang entries and the active token symbol."""

    def __init__(self, entries: Mapping[str, CatalogEntry] | None = None, symbol: str = DEFAULT_SYMBOL):
        self._lock = threading.Lock()
        self._entries: dict[str, CatalogEntry] = {k.lower(): v for k, v in (entries or {}).items()}
        self._symbol = symbol
        self.ready = threading.Event()

    @property
    def symbol(self) -> str:
        return self._symbol

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, token: str) -> bool:
        return token in self._entries

    def resolve(self, token: str) -> CatalogEntry | None:
        return self._entries.get(token)

    def snapshot(self) -> dict[str, CatalogEntry]:
        with self._lock:
            return dict(self._entries)

    async def initialize(
        self,
        primary: CatalogSource,
        fallback: CatalogSource | None,
        preferences: PreferenceStore | None,
    ) -> None:
        """Load the default catalog, then overlay the user's preferences."""
        try:
            items = await self._fetch_defaults(primary, fallback)
            entries = build_default_entries(items)

            symbol = None
            if preferences is not None:
                symbol = await asyncio.to_thread(_overlay_preferences, entries, preferences)

            with self._lock:
                self._entries = entries
                if symbol is not None:
                    self._symbol = symbol
            logger.info("Bang catalog ready with %d entries", len(entries))
        finally:
            self.ready.set()

    async def _fetch_defaults(self, primary: CatalogSource, fallback: CatalogSource | None) -> list:
        try:
            return await asyncio.to_thread(primary.fetch)
        except CatalogFetchError as e:
            if fallback is None:
                logger.warning("Error fetching default bangs (%s); starting empty", e)
                return []
            logger.warning("Error fetching default bangs (%s); trying fallback source", e)

        try:
            return await asyncio.to_thread(fallback.fetch)
        except CatalogFetchError as e:
            logger.warning("Error fetching fallback bangs (%s); starting empty", e)
            return []

    def apply_change(self, key: str, change: PreferenceChange) -> None:
        """Apply one preference change notification."""
        if is_bang_key(key):
            self._apply_bang_change(key, change)
        elif is_symbol_key(key):
            with self._lock:
                if change.removed:
                    self._symbol = DEFAULT_SYMBOL
                elif isinstance(change.new_value, str) and change.new_value:
                    self._symbol = change.new_value
                else:
                    logger.warning("Ignoring invalid bang symbol %r", change.new_value)
        elif not is_search_engine_key(key):
            logger.debug("Ignoring change to unknown preference %s", key)

    def apply_changes(self, changes: Mapping[str, PreferenceChange]) -> None:
        """Subscription callback for a preference store."""
        for key, change in changes.items():
            self.apply_change(key, change)

    def _apply_bang_change(self, key: str, change: PreferenceChange) -> None:
        old_token = _token_of(change.old_value)
        if change.removed:
            if old_token is None:
                old_token = key[len(BANG_PREFIX):].lower()
            with self._lock:
                self._entries.pop(old_token, None)
            return

        try:
            entry = CatalogEntry.from_preference(change.new_value)
        except ValueError as e:
            logger.warning("Ignoring change to %s: %s", key, e)
            return

        with self._lock:
            if old_token is not None and old_token != entry.token:
                self._entries.pop(old_token, None)
            self._entries[entry.token] = entry


def _token_of(value: Any) -> str | None:
    if isinstance(value, Mapping) and isinstance(value.get("bang"), str):
        return value["bang"].lower()
    return None


def build_default_entries(items: list) -> dict[str, CatalogEntry]:
    """Turn a published bang list into catalog entries."""
    entries: dict[str, CatalogEntry] = {}
    skipped = 0
    for item in items:
        try:
            entry = CatalogEntry.from_default(item)
        except (ValueError, AttributeError):
            skipped += 1
            continue
        entries[entry.token] = entry

    if skipped:
        logger.debug("Skipped %d malformed catalog items", skipped)

    for token in UNENCODED_TOKENS:
        entry = entries.get(token)
        if entry is not None:
            entries[token] = CatalogEntry(
                token=entry.token,
                destination_template=entry.destination_template,
                encode_query=False,
                open_base_url_on_empty_query=entry.open_base_url_on_empty_query,
            )
    return entries


def _overlay_preferences(entries: dict[str, CatalogEntry], preferences: PreferenceStore) -> str | None:
    """Overlay custom bangs onto ``entries``; returns the custom symbol, if any."""
    try:
        stored = preferences.get_all()
    except PreferenceStoreError as e:
        logger.warning("Could not read preferences, custom bangs not loaded: %s", e)
        return None

    symbol = None
    for key, value in stored.items():
        if is_bang_key(key):
            try:
                entry = CatalogEntry.from_preference(value)
            except ValueError as e:
                logger.warning("Skipping custom bang %s: %s", key, e)
                continue
            entries[entry.token] = entry
        elif is_symbol_key(key) and isinstance(value, str) and value:
            symbol = value
    return symbol
