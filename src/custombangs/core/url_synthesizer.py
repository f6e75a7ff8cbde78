"""Build the destination URL for a resolved bang."""

from __future__ import annotations

from urllib.parse import quote, urlsplit

from .catalog import CatalogEntry

PLACEHOLDER = "{{{s}}}"

# Characters left alone by JavaScript's encodeURIComponent besides [A-Za-z0-9_.~-].
_COMPONENT_SAFE = "!'()*"

_DEFAULT_PORTS = {"http": 80, "https": 443}


class InvalidTemplateError(ValueError):
    """Raised when a destination template is not an absolute URL."""


def encode_component(text: str) -> str:
    return quote(text, safe=_COMPONENT_SAFE)


def _absolute(template: str) -> str:
    if template.startswith("//"):
        template = "https:" + template
    parts = urlsplit(template)
    if not parts.scheme or not parts.netloc:
        raise InvalidTemplateError(f"Not an absolute URL template: {template!r}")
    return template


def base_url(template: str) -> str:
    """Origin of a template: scheme, lower-cased host and any non-default port."""
    parts = urlsplit(_absolute(template))
    try:
        port = parts.port
    except ValueError as e:
        raise InvalidTemplateError(f"Bad port in template {template!r}") from e
    host = parts.hostname
    if not host:
        raise InvalidTemplateError(f"No host in template {template!r}")
    if ":" in host:
        host = f"[{host}]"
    if port is not None and port != _DEFAULT_PORTS.get(parts.scheme):
        host = f"{host}:{port}"
    return f"{parts.scheme}://{host}"


def synthesize(entry: CatalogEntry, remainder: str) -> str:
    """Return the URL ``entry`` points at for ``remainder``."""
    template = _absolute(entry.destination_template)
    if not remainder and entry.open_base_url_on_empty_query:
        return base_url(template)

    query = encode_component(remainder) if entry.encode_query else remainder
    return template.replace(PLACEHOLDER, query)
