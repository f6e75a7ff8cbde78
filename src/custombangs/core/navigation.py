"""Navigation dispatcher: point a browser tab at the bang destination."""

from __future__ import annotations

import logging
import threading

from .ports import TabNavigator

logger = logging.getLogger(__name__)


class NavigationDispatcher:
    """Fire-and-forget redirects through a TabNavigator.

    Failures (e.g. the tab was closed mid-flight) are not retried: the
    original request continuing unmodified is always a safe fallback.
    """

    def __init__(self, navigator: TabNavigator, background: bool = True):
        self._navigator = navigator
        self._background = background

    def redirect(self, tab_id: int | None, url: str) -> None:
        try:
            self._navigator.update(tab_id, url)
        except Exception as e:
            logger.debug("Navigation to %s (tab %s) failed: %s", url, tab_id, e)

    def dispatch(self, tab_id: int | None, url: str) -> None:
        """Issue the redirect without blocking the caller."""
        if not self._background:
            self.redirect(tab_id, url)
            return
        threading.Thread(
            target=self.redirect,
            args=(tab_id, url),
            name="custombangs-redirect",
            daemon=True,
        ).start()
