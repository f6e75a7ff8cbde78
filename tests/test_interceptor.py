from custombangs.core.catalog import BangCatalog, CatalogEntry
from custombangs.core.interceptor import (
    RedirectDecision,
    RequestDescriptor,
    RequestInterceptor,
    resolve_query,
    resolve_request,
)
from custombangs.core.navigation import NavigationDispatcher
from custombangs.core.ports import PreferenceChange, TabNavigator
from custombangs.core.state_machine import RequestState

WIKI = CatalogEntry(
    token="w",
    destination_template="https://www.wikipedia.org/search?q={{{s}}}&go=Go",
    encode_query=True,
    open_base_url_on_empty_query=True,
)


class _Navigator(TabNavigator):
    def __init__(self, error=None):
        self.calls = []
        self.error = error

    def update(self, tab_id, url):
        self.calls.append((tab_id, url))
        if self.error:
            raise self.error


def _interceptor(catalog=None, navigator=None):
    if navigator is None:
        navigator = _Navigator()
    if catalog is None:
        catalog = BangCatalog({"w": WIKI})
    return RequestInterceptor(catalog, NavigationDispatcher(navigator, background=False)), navigator


def test_end_to_end_redirect():
    interceptor, navigator = _interceptor()
    request = RequestDescriptor(
        url="https://www.google.com/search?q=%21w+large+hadron+collider",
        tab_id=7,
    )

    assert interceptor.on_before_request(request) is None
    assert navigator.calls == [
        (7, "https://www.wikipedia.org/search?q=large%20hadron%20collider&go=Go"),
    ]


def test_suffix_bang_without_tab_updates_current_tab():
    interceptor, navigator = _interceptor()
    interceptor.on_before_request(RequestDescriptor(url="https://duckduckgo.com/?q=einstein+!W"))
    assert navigator.calls == [(None, "https://www.wikipedia.org/search?q=einstein&go=Go")]


def test_form_body_query():
    interceptor, navigator = _interceptor()
    interceptor.on_before_request(
        RequestDescriptor(url="https://html.duckduckgo.com/html/", form_data={"q": ["!w"]})
    )
    assert navigator.calls == [(None, "https://www.wikipedia.org")]


def test_pass_through_cases():
    catalog = BangCatalog({"w": WIKI})
    cases = {
        "https://example.com/": RequestState.PASS_THROUGH,
        "https://www.google.com/search?q=einstein": RequestState.PASS_THROUGH,
        "https://www.google.com/search?q=!nope+einstein": RequestState.PASS_THROUGH,
        "https://duckduckgo.com/autocomplete?q=!w+einstein": RequestState.PASS_THROUGH,
    }
    for url, state in cases.items():
        decision = resolve_request(RequestDescriptor(url=url), catalog)
        assert not decision.should_redirect
        assert decision.state == state


def test_autocomplete_never_redirects():
    interceptor, navigator = _interceptor()
    interceptor.on_before_request(
        RequestDescriptor(url="https://search.example/autocomplete?q=!w+einstein", tab_id=1)
    )
    assert navigator.calls == []


def test_uninitialized_catalog_passes_through():
    interceptor, navigator = _interceptor(catalog=BangCatalog())
    interceptor.on_before_request(RequestDescriptor(url="https://www.google.com/search?q=!w+x"))
    assert navigator.calls == []


def test_symbol_change_is_seen_by_next_request():
    catalog = BangCatalog({"w": WIKI})
    interceptor, navigator = _interceptor(catalog=catalog)
    catalog.apply_change("bang-symbol", PreferenceChange(old_value="!", new_value="@"))

    interceptor.on_before_request(RequestDescriptor(url="https://www.google.com/search?q=!w+x"))
    assert navigator.calls == []

    interceptor.on_before_request(RequestDescriptor(url="https://www.google.com/search?q=@w+x"))
    assert navigator.calls == [(None, "https://www.wikipedia.org/search?q=x&go=Go")]


def test_invalid_template_passes_through():
    catalog = BangCatalog({"rel": CatalogEntry("rel", "/search?q={{{s}}}")})
    decision = resolve_query("!rel x", catalog)
    assert decision == RedirectDecision()
    assert decision.state == RequestState.PASS_THROUGH


def test_navigation_failure_is_ignored():
    interceptor, navigator = _interceptor(navigator=_Navigator(error=RuntimeError("tab closed")))
    assert interceptor.on_before_request(
        RequestDescriptor(url="https://www.google.com/search?q=!w+x", tab_id=3)
    ) is None
    assert len(navigator.calls) == 1


def test_resolution_errors_degrade_to_pass_through(monkeypatch):
    from custombangs.core import interceptor as module

    def _explode(url, form_data):
        raise TypeError("bad request shape")

    monkeypatch.setattr(module.query_extractor, "extract", _explode)
    decision = resolve_request(RequestDescriptor(url="https://x.example/?q=!w"), BangCatalog({"w": WIKI}))
    assert not decision.should_redirect
