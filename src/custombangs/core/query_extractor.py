"""Pull the user's search query out of an outgoing request."""

from __future__ import annotations

from typing import Mapping, Sequence
from urllib.parse import parse_qs, urlsplit

# Suggestion/autocomplete endpoints must never trigger a redirect.
SKIP_PATH_FRAGMENTS = (
    "/ac",
    "suggest",
    "/complete",
    "/autocompleter",
    "/autocomplete",
    "/sugrec",
)

# Baidu sends its suggestion fetches to the regular search path with mod=1.
SKIP_PARAMS = (("mod", "1"),)

# Different search engines use different params for the query.
QUERY_PARAMS = ("q", "p", "query", "text", "eingabe", "wd")


def _first(values: Sequence[str] | str | None) -> str | None:
    if values is None:
        return None
    if isinstance(values, str):
        return values
    return values[0] if values else None


def should_skip(path: str, params: Mapping[str, list[str]]) -> bool:
    """Return True for requests that are suggestion fetches."""
    if any(fragment in path for fragment in SKIP_PATH_FRAGMENTS):
        return True
    return any(_first(params.get(name)) == value for name, value in SKIP_PARAMS)


def extract(
    request_url: str,
    form_data: Mapping[str, Sequence[str]] | None = None,
) -> str | None:
    """Return the best-guess query of a request, or None.

    Each known parameter name is looked up in the URL query first and in the
    form body second; the first non-empty value wins.
    """
    try:
        parts = urlsplit(request_url)
    except ValueError:
        return None

    params = parse_qs(parts.query, keep_blank_values=True)
    if should_skip(parts.path, params):
        return None

    for name in QUERY_PARAMS:
        value = _first(params.get(name))
        if not value and form_data is not None and name in form_data:
            value = _first(form_data[name])
        if value:
            return value
    return None
