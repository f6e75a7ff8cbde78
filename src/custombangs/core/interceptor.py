"""Core orchestration for custombangs.

Keeps the extract -> detect -> resolve -> synthesize -> redirect pipeline in
one place, decoupled from the proxy/browser specifics via ports. Resolution
is a pure function of the request and the catalog; dispatching the redirect
is a separate side effect.

``RequestInterceptor`` is the front end for hosts that can address the tab a
request came from (a browser extension bridge, an embedding webview). It
allows every request and navigates the tab through ``NavigationDispatcher``.
The forward proxy has no tab to steer, so ``BangRedirectPlugin`` calls
``resolve_request`` directly and answers with a redirect instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Mapping, Sequence

from . import query_extractor, token_detector, url_synthesizer
from .catalog import BangCatalog
from .navigation import NavigationDispatcher
from .state_machine import RequestEvent, RequestState, RequestStateMachine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestDescriptor:
    """Generic shape of one intercepted request."""

    url: str
    form_data: Mapping[str, Sequence[str]] | None = None
    tab_id: int | None = None


@dataclass(frozen=True)
class RedirectDecision:
    """Outcome of resolving a request: pass through, or redirect."""

    destination_url: str | None = None
    state: RequestState = field(default=RequestState.PASS_THROUGH, compare=False)

    @property
    def should_redirect(self) -> bool:
        return self.destination_url is not None


PASS_THROUGH = RedirectDecision()


def resolve_query(query: str, catalog: BangCatalog, machine: RequestStateMachine | None = None) -> RedirectDecision:
    """Resolve an already extracted query against the catalog."""
    sm = machine or _machine_at(RequestState.DETECTING)

    match = token_detector.detect(query, catalog.symbol)
    if match is None:
        sm.transition(RequestEvent.NO_TOKEN)
        return RedirectDecision(state=sm.state)
    sm.transition(RequestEvent.TOKEN_FOUND)

    entry = catalog.resolve(match.token)
    if entry is None:
        sm.transition(RequestEvent.UNKNOWN_TOKEN)
        return RedirectDecision(state=sm.state)
    sm.transition(RequestEvent.ENTRY_FOUND)

    try:
        destination = url_synthesizer.synthesize(entry, match.remainder)
    except url_synthesizer.InvalidTemplateError as e:
        logger.debug("Bang %r has an unusable template: %s", match.token, e)
        sm.transition(RequestEvent.INVALID_TEMPLATE)
        return RedirectDecision(state=sm.state)

    sm.transition(RequestEvent.URL_READY)
    return RedirectDecision(destination_url=destination, state=sm.state)


def resolve_request(
    request: RequestDescriptor,
    catalog: BangCatalog,
    machine: RequestStateMachine | None = None,
) -> RedirectDecision:
    """Decide whether ``request`` should be redirected. Never raises."""
    sm = machine or RequestStateMachine()
    sm.transition(RequestEvent.EXTRACT)
    try:
        query = query_extractor.extract(request.url, request.form_data)
        if query is None:
            sm.transition(RequestEvent.NO_QUERY)
            return RedirectDecision(state=sm.state)
        sm.transition(RequestEvent.QUERY_FOUND)
        return resolve_query(query, catalog, sm)
    except Exception:
        logger.exception("Bang resolution failed for %s", request.url)
        return PASS_THROUGH


def _machine_at(state: RequestState) -> RequestStateMachine:
    sm = RequestStateMachine()
    sm.state = state
    return sm


class RequestInterceptor:
    """Hooks the resolution pipeline onto outgoing requests."""

    def __init__(self, catalog: BangCatalog, dispatcher: NavigationDispatcher):
        self._catalog = catalog
        self._dispatcher = dispatcher

    @property
    def catalog(self) -> BangCatalog:
        return self._catalog

    def on_before_request(self, request: RequestDescriptor) -> None:
        """Observe one outgoing request.

        Always returns None (allow the request unmodified); a redirect, when
        one applies, is dispatched independently and supersedes the request.
        """
        sm = RequestStateMachine()
        decision = resolve_request(request, self._catalog, sm)
        if decision.should_redirect:
            logger.debug("Redirecting tab %s to %s", request.tab_id, decision.destination_url)
            self._dispatcher.dispatch(request.tab_id, decision.destination_url)
            sm.transition(RequestEvent.DISPATCHED)
        return None
