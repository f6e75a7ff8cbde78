"""Core ports (interfaces) for custombangs.

These protocols define the boundaries between the bang resolution core
and the network/storage/browser-specific adapters. They are intentionally
small and capability-oriented to keep the core decoupled.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Protocol, runtime_checkable


class CatalogFetchError(RuntimeError):
    """Raised when a remote bang catalog cannot be fetched or parsed."""


class PreferenceStoreError(RuntimeError):
    """Raised when the preference store cannot be read or written."""


@dataclass(frozen=True)
class PreferenceChange:
    """One entry of a preference change batch.

    ``new_value`` is None when the key was removed.
    """

    old_value: Any = None
    new_value: Any = None

    @property
    def removed(self) -> bool:
        return self.new_value is None


ChangeCallback = Callable[[Mapping[str, PreferenceChange]], None]


@runtime_checkable
class CatalogSource(Protocol):
    """Remote source of the default bang catalog."""

    def fetch(self) -> list[dict]:
        """Return the raw list of ``{"t": token, "u": template}`` items.

        Raises CatalogFetchError on network or format errors.
        """


@runtime_checkable
class PreferenceStore(Protocol):
    """Key-value preference storage with change notifications."""

    def get_all(self) -> dict[str, Any]:
        """Return a copy of every stored preference."""

    def get(self, key: str) -> Any | None:
        """Return one preference value or None."""

    def set(self, items: Mapping[str, Any]) -> None:
        """Store several preferences at once."""

    def remove(self, keys: list[str]) -> None:
        """Delete preferences; unknown keys are ignored."""

    def clear(self) -> None:
        """Delete every preference."""

    def replace_all(self, items: Mapping[str, Any]) -> None:
        """Replace every preference with ``items`` in one write."""

    def subscribe(self, callback: ChangeCallback) -> Callable[[], None]:
        """Register a change listener; returns an unsubscribe function."""


@runtime_checkable
class TabNavigator(Protocol):
    """Browser navigation side effect."""

    def update(self, tab_id: int | None, url: str) -> None:
        """Point ``tab_id`` (or the current tab when None) at ``url``."""
