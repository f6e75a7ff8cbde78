"""proxy.py plugin that answers bang searches with a redirect.

Run the proxy in threaded mode so every connection sees the same catalog::

    BangRedirectPlugin.catalog = catalog
    with proxy.Proxy(input_args=[], plugins=[BangRedirectPlugin], threaded=True):
        proxy.sleep_loop()

Point the browser's HTTP proxy at it; a search for ``!w einstein`` comes back
as ``303 See Other`` to Wikipedia instead of reaching the search engine.
"""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import parse_qs

from proxy.http.parser import HttpParser
from proxy.http.proxy import HttpProxyBasePlugin
from proxy.http.responses import seeOthersResponse

from ..core.catalog import BangCatalog
from ..core.interceptor import RequestDescriptor, resolve_request

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = b"application/x-www-form-urlencoded"


def _text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


def descriptor_from_request(request) -> RequestDescriptor | None:
    """Build a RequestDescriptor from a parsed proxy request."""
    if not request.host:
        return None

    host = _text(request.host)
    scheme = "https" if request.port == 443 else "http"
    netloc = host if request.port in (None, 80, 443) else f"{host}:{request.port}"
    path = _text(request.path) or "/"

    form_data = None
    if request.body and request.has_header(b"content-type"):
        content_type = bytes(request.header(b"content-type")).lower()
        if content_type.startswith(FORM_CONTENT_TYPE):
            form_data = parse_qs(_text(request.body), keep_blank_values=True)

    return RequestDescriptor(url=f"{scheme}://{netloc}{path}", form_data=form_data)


class BangRedirectPlugin(HttpProxyBasePlugin):
    """Redirect search requests that carry a known bang."""

    catalog: Optional[BangCatalog] = None

    def handle_client_request(
            self, request: HttpParser,
    ) -> Optional[HttpParser]:
        catalog = type(self).catalog
        if catalog is None:
            return request

        descriptor = descriptor_from_request(request)
        if descriptor is None:
            return request

        decision = resolve_request(descriptor, catalog)
        if not decision.should_redirect:
            return request

        logger.debug("Redirecting %s to %s", descriptor.url, decision.destination_url)
        self.client.queue(seeOthersResponse(decision.destination_url.encode("utf-8")))
        return None
