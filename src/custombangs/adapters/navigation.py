"""Desktop browser navigation adapter."""

from __future__ import annotations

import logging
import webbrowser

logger = logging.getLogger(__name__)


class BrowserTabNavigator:
    """Open destinations with the system browser.

    The desktop browser cannot be addressed by tab id, so a known id only
    shows up in the logs; the URL always opens in the current window.
    """

    def __init__(self, browser: webbrowser.BaseBrowser | None = None):
        self._browser = browser

    def update(self, tab_id: int | None, url: str) -> None:
        if tab_id is not None:
            logger.debug("Tab %s not addressable, opening %s in current window", tab_id, url)
        opener = self._browser.open if self._browser is not None else webbrowser.open
        if not opener(url, new=0):
            raise RuntimeError(f"No browser could open {url}")
