"""Bang detection in a search query."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TokenMatch:
    """A bang split off a query.

    Attributes:
        token: Lower-cased bang without the symbol (e.g. "w")
        remainder: The rest of the query, words joined by single spaces
    """

    token: str
    remainder: str


def detect(query: str, symbol: str) -> TokenMatch | None:
    """Split a bang off the first or last word of ``query``.

    The first word is checked before the last one, so a query such as
    ``"!a b !c"`` resolves to token ``a``.
    """
    if not query or not symbol:
        return None

    words = query.split()
    if not words:
        return None

    first, last = words[0], words[-1]
    if first.startswith(symbol):
        token = first[len(symbol):]
        remainder = words[1:]
    elif last.startswith(symbol):
        token = last[len(symbol):]
        remainder = words[:-1]
    else:
        return None

    return TokenMatch(token=token.lower(), remainder=" ".join(remainder))
