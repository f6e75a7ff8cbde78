"""HTTP catalog source adapter."""

from __future__ import annotations

import requests

from ..core.ports import CatalogFetchError


class HttpCatalogSource:
    def __init__(self, url: str, timeout: float = 15.0):
        self.url = url
        self.timeout = timeout

    def fetch(self) -> list[dict]:
        try:
            response = requests.get(self.url, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as exc:
            raise CatalogFetchError(f"{self.url}: {exc}") from exc
        except ValueError as exc:
            raise CatalogFetchError(f"{self.url}: invalid JSON ({exc})") from exc

        if not isinstance(data, list):
            raise CatalogFetchError(f"{self.url}: expected a JSON array, got {type(data).__name__}")
        return data
