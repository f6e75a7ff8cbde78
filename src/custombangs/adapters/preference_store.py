"""JSON-file preference store with change notifications."""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Any, Callable, Mapping

from watchdog.events import FileSystemEventHandler
from watchdog.observers.polling import PollingObserver

from ..core.ports import ChangeCallback, PreferenceChange, PreferenceStoreError

logger = logging.getLogger(__name__)


def diff_preferences(old: Mapping[str, Any], new: Mapping[str, Any]) -> dict[str, PreferenceChange]:
    """Change batch turning ``old`` into ``new``."""
    changes = {
        key: PreferenceChange(old_value=old.get(key), new_value=value)
        for key, value in new.items()
        if old.get(key) != value
    }
    for key, value in old.items():
        if key not in new:
            changes[key] = PreferenceChange(old_value=value)
    return changes


class JsonPreferenceStore:
    """Preferences persisted as one JSON object.

    Every successful write notifies subscribers with the batch of keys it
    changed. With ``watch()`` running, edits made by other processes (e.g.
    the CLI while the proxy is serving) are picked up and notified as well.
    """

    def __init__(self, path: Path | str):
        """Initialize the store.

        Args:
            path: Location of the JSON file. It is created on first write.
        """
        self.path = Path(path)
        self._lock = threading.RLock()
        self._listeners: list[ChangeCallback] = []
        self._snapshot: dict[str, Any] | None = None
        self._observer: PollingObserver | None = None

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            raise PreferenceStoreError(f"Cannot read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise PreferenceStoreError(f"{self.path} does not hold a JSON object")
        return data

    def _save(self, data: dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            tmp_path.replace(self.path)
        except OSError as e:
            raise PreferenceStoreError(f"Cannot write {self.path}: {e}") from e
        self._snapshot = dict(data)

    def get_all(self) -> dict[str, Any]:
        with self._lock:
            return self._load()

    def get(self, key: str) -> Any | None:
        return self.get_all().get(key)

    def set(self, items: Mapping[str, Any]) -> None:
        with self._lock:
            data = self._load()
            changes = {
                key: PreferenceChange(old_value=data.get(key), new_value=value)
                for key, value in items.items()
            }
            data.update(items)
            self._save(data)
        self._notify(changes)

    def remove(self, keys: list[str]) -> None:
        with self._lock:
            data = self._load()
            changes = {
                key: PreferenceChange(old_value=data.pop(key))
                for key in keys
                if key in data
            }
            if not changes:
                return
            self._save(data)
        self._notify(changes)

    def clear(self) -> None:
        with self._lock:
            data = self._load()
            self._save({})
        self._notify({key: PreferenceChange(old_value=value) for key, value in data.items()})

    def replace_all(self, items: Mapping[str, Any]) -> None:
        with self._lock:
            data = self._load()
            self._save(dict(items))
        self._notify(diff_preferences(data, items))

    def subscribe(self, callback: ChangeCallback) -> Callable[[], None]:
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def reload(self) -> None:
        """Re-read the file and notify whatever changed since the last look."""
        with self._lock:
            try:
                data = self._load()
            except PreferenceStoreError as e:
                logger.warning("Ignoring unreadable preferences: %s", e)
                return
            changes = diff_preferences(self._snapshot or {}, data)
            self._snapshot = data
        self._notify(changes)

    def watch(self) -> None:
        """Start following edits made to the file by other processes."""
        if self._observer is not None:
            return
        with self._lock:
            try:
                self._snapshot = self._load()
            except PreferenceStoreError as e:
                logger.warning("Watching unreadable preferences: %s", e)
                self._snapshot = {}
        self.path.parent.mkdir(parents=True, exist_ok=True)
        observer = PollingObserver()
        observer.schedule(_PreferenceFileHandler(self), str(self.path.parent), recursive=False)
        observer.start()
        self._observer = observer

    def unwatch(self) -> None:
        if self._observer is not None:
            self._observer.stop()
            self._observer.join()
            self._observer = None

    def _notify(self, changes: Mapping[str, PreferenceChange]) -> None:
        if not changes:
            return
        for listener in list(self._listeners):
            try:
                listener(changes)
            except Exception:
                logger.exception("Preference listener failed")


class _PreferenceFileHandler(FileSystemEventHandler):
    def __init__(self, store: JsonPreferenceStore) -> None:
        self.store = store

    def _concerns(self, path) -> bool:
        return Path(path).resolve() == self.store.path.resolve()

    def on_created(self, event) -> None:  # type: ignore[override]
        if self._concerns(event.src_path):
            self.store.reload()

    def on_modified(self, event) -> None:  # type: ignore[override]
        if self._concerns(event.src_path):
            self.store.reload()

    def on_deleted(self, event) -> None:  # type: ignore[override]
        if self._concerns(event.src_path):
            self.store.reload()

    def on_moved(self, event) -> None:  # type: ignore[override]
        if self._concerns(event.dest_path):
            self.store.reload()
