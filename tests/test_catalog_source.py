import pytest
import requests

from custombangs.adapters import catalog_source
from custombangs.adapters.catalog_source import HttpCatalogSource
from custombangs.core.ports import CatalogFetchError


class _Response:
    def __init__(self, payload=None, status=200, json_error=None):
        self.payload = payload
        self.status = status
        self.json_error = json_error

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")

    def json(self):
        if self.json_error:
            raise self.json_error
        return self.payload


def _patch_get(monkeypatch, response=None, error=None):
    calls = []

    def fake_get(url, timeout=None):
        calls.append((url, timeout))
        if error:
            raise error
        return response

    monkeypatch.setattr(catalog_source.requests, "get", fake_get)
    return calls


def test_fetch_returns_items(monkeypatch):
    items = [{"t": "w", "u": "https://en.wikipedia.org/?q={{{s}}}"}]
    calls = _patch_get(monkeypatch, _Response(items))
    assert HttpCatalogSource("https://bangs.example/bangs.json", timeout=3).fetch() == items
    assert calls == [("https://bangs.example/bangs.json", 3)]


def test_network_error(monkeypatch):
    _patch_get(monkeypatch, error=requests.ConnectionError("offline"))
    with pytest.raises(CatalogFetchError):
        HttpCatalogSource("https://bangs.example").fetch()


def test_http_error(monkeypatch):
    _patch_get(monkeypatch, _Response(status=503))
    with pytest.raises(CatalogFetchError):
        HttpCatalogSource("https://bangs.example").fetch()


def test_invalid_json(monkeypatch):
    _patch_get(monkeypatch, _Response(json_error=ValueError("Expecting value")))
    with pytest.raises(CatalogFetchError):
        HttpCatalogSource("https://bangs.example").fetch()


def test_non_list_payload(monkeypatch):
    _patch_get(monkeypatch, _Response({"t": "w"}))
    with pytest.raises(CatalogFetchError):
        HttpCatalogSource("https://bangs.example").fetch()
