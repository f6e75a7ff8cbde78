"""Per-request state machine for bang interception."""

from __future__ import annotations

from enum import Enum, auto
import logging


class RequestState(Enum):
    OBSERVED = auto()
    EXTRACTING = auto()
    DETECTING = auto()
    RESOLVING = auto()
    SYNTHESIZING = auto()
    REDIRECTING = auto()
    DONE = auto()
    PASS_THROUGH = auto()


class RequestEvent(Enum):
    EXTRACT = auto()
    QUERY_FOUND = auto()
    NO_QUERY = auto()
    TOKEN_FOUND = auto()
    NO_TOKEN = auto()
    ENTRY_FOUND = auto()
    UNKNOWN_TOKEN = auto()
    URL_READY = auto()
    INVALID_TEMPLATE = auto()
    DISPATCHED = auto()


_TRANSITIONS = {
    RequestState.OBSERVED: {
        RequestEvent.EXTRACT: RequestState.EXTRACTING,
    },
    RequestState.EXTRACTING: {
        RequestEvent.QUERY_FOUND: RequestState.DETECTING,
        RequestEvent.NO_QUERY: RequestState.PASS_THROUGH,
    },
    RequestState.DETECTING: {
        RequestEvent.TOKEN_FOUND: RequestState.RESOLVING,
        RequestEvent.NO_TOKEN: RequestState.PASS_THROUGH,
    },
    RequestState.RESOLVING: {
        RequestEvent.ENTRY_FOUND: RequestState.SYNTHESIZING,
        RequestEvent.UNKNOWN_TOKEN: RequestState.PASS_THROUGH,
    },
    RequestState.SYNTHESIZING: {
        RequestEvent.URL_READY: RequestState.REDIRECTING,
        RequestEvent.INVALID_TEMPLATE: RequestState.PASS_THROUGH,
    },
    RequestState.REDIRECTING: {
        RequestEvent.DISPATCHED: RequestState.DONE,
    },
}

TERMINAL_STATES = frozenset({RequestState.DONE, RequestState.PASS_THROUGH})


class RequestStateMachine:
    def __init__(self):
        self.state = RequestState.OBSERVED

    @property
    def finished(self) -> bool:
        return self.state in TERMINAL_STATES

    def transition(self, event: RequestEvent) -> RequestState:
        next_state = _TRANSITIONS.get(self.state, {}).get(event, self.state)
        if next_state == self.state and event not in _TRANSITIONS.get(self.state, {}):
            logging.getLogger(__name__).warning(
                "Invalid state transition: %s --%s--> %s", self.state, event, next_state
            )
        self.state = next_state
        return self.state
