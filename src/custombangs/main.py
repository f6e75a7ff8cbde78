#!/usr/bin/env python3
"""custombangs: turn "!w einstein" searches into direct navigations"""

from __future__ import annotations

import argparse
import asyncio
import ipaddress
import logging
import socket
import sys

from .adapters.catalog_source import HttpCatalogSource
from .adapters.config_env import load_app_config
from .adapters.navigation import BrowserTabNavigator
from .adapters.preference_store import JsonPreferenceStore
from .core.catalog import SYMBOL_KEY, BangCatalog, CatalogEntry, bang_key, is_bang_key
from .core.config_model import AppConfig
from .core.interceptor import resolve_query
from .core.migration import migrate_storage_schema
from .core.navigation import NavigationDispatcher
from .core.ports import PreferenceStoreError
from .core.result import write_with_retry

logger = logging.getLogger("custombangs")


class CustomBangs:
    """Wires the catalog, its sources and the preference store together."""

    def __init__(self, app_config: AppConfig):
        self.config = app_config
        self.store = JsonPreferenceStore(app_config.preferences_path)
        self.catalog = BangCatalog()
        self.primary = HttpCatalogSource(app_config.primary_catalog_url, app_config.fetch_timeout)
        self.fallback = HttpCatalogSource(app_config.fallback_catalog_url, app_config.fetch_timeout)
        self._unsubscribe = None

    def initialize(self):
        """Coroutine that loads the catalog."""
        return self.catalog.initialize(self.primary, self.fallback, self.store)

    def load(self) -> BangCatalog:
        """Load the catalog synchronously (one-shot commands)."""
        asyncio.run(self.initialize())
        return self.catalog

    def watch(self) -> None:
        """Apply preference changes to the catalog as they happen."""
        if self._unsubscribe is None:
            self._unsubscribe = self.store.subscribe(self.catalog.apply_changes)
            self.store.watch()

    def unwatch(self) -> None:
        if self._unsubscribe is not None:
            self.store.unwatch()
            self._unsubscribe()
            self._unsubscribe = None


def cmd_resolve(app: CustomBangs, args) -> int:
    decision = resolve_query(args.query, app.load())
    if not decision.should_redirect:
        print(f"No bang found in {args.query!r}", file=sys.stderr)
        return 1
    print(decision.destination_url)
    return 0


def cmd_open(app: CustomBangs, args) -> int:
    decision = resolve_query(args.query, app.load())
    if not decision.should_redirect:
        print(f"No bang found in {args.query!r}", file=sys.stderr)
        return 1
    NavigationDispatcher(BrowserTabNavigator(), background=False).redirect(None, decision.destination_url)
    print(f"✓ {decision.destination_url}")
    return 0


def proxy_address(host: str) -> ipaddress.IPv4Address | ipaddress.IPv6Address:
    """IP address to bind the proxy to; host names are resolved."""
    try:
        return ipaddress.ip_address(host)
    except ValueError:
        pass
    try:
        return ipaddress.ip_address(socket.gethostbyname(host))
    except OSError as e:
        raise ValueError(f"Cannot resolve proxy host {host!r}: {e}") from e


def _stored_preferences(app: CustomBangs) -> dict | None:
    try:
        return app.store.get_all()
    except PreferenceStoreError as e:
        print(f"Could not read preferences: {e}", file=sys.stderr)
        return None


def cmd_serve(app: CustomBangs, args) -> int:
    import proxy

    from .adapters.proxy_plugin import BangRedirectPlugin
    from .async_bridge import get_async_bridge

    host = args.host or app.config.proxy_host
    port = args.port or app.config.proxy_port
    try:
        address = proxy_address(host)
    except ValueError as e:
        print(str(e), file=sys.stderr)
        return 1

    app.watch()
    get_async_bridge().submit(app.initialize())
    BangRedirectPlugin.catalog = app.catalog

    print(f"🚀 custombangs proxy on {host}:{port} (symbol {app.catalog.symbol!r})")
    print("Press Ctrl+C to quit")
    try:
        with proxy.Proxy(
            input_args=[],
            hostname=address,
            port=port,
            threaded=True,
            plugins=[BangRedirectPlugin],
        ):
            proxy.sleep_loop()
    except KeyboardInterrupt:
        pass
    finally:
        app.unwatch()
    return 0


def cmd_bangs(app: CustomBangs, args) -> int:
    stored = _stored_preferences(app)
    if stored is None:
        return 1

    if args.action == "list":
        bangs = sorted(
            (value for key, value in stored.items() if is_bang_key(key) and isinstance(value, dict)),
            key=lambda value: value.get("order", 0),
        )
        for value in bangs:
            flags = [] if value.get("urlEncodeQuery", True) else ["no-encode"]
            if value.get("openBaseUrl"):
                flags.append("open-base-url")
            suffix = f" [{', '.join(flags)}]" if flags else ""
            print(f"{app.catalog.symbol}{value.get('bang')}\t{value.get('name', '')}\t{value.get('url')}{suffix}")
        return 0

    if args.action == "add":
        key = bang_key(args.token)
        if stored.get(key) is not None:
            print(f"Bang {args.token!r} already exists", file=sys.stderr)
            return 1
        value = {
            "name": args.name or args.token,
            "bang": args.token,
            "url": args.url,
            "urlEncodeQuery": not args.no_encode,
            "openBaseUrl": args.open_base_url,
            "order": sum(1 for k in stored if is_bang_key(k)),
        }
        try:
            CatalogEntry.from_preference(value)
        except ValueError as e:
            print(str(e), file=sys.stderr)
            return 1
        result = write_with_retry(lambda: app.store.set({key: value}))
    else:
        key = bang_key(args.token)
        if stored.get(key) is None:
            print(f"No custom bang {args.token!r}", file=sys.stderr)
            return 1
        result = write_with_retry(lambda: app.store.remove([key]))

    if not result.ok:
        print(f"Could not save preferences: {result.error}", file=sys.stderr)
        return 1
    return 0


def cmd_symbol(app: CustomBangs, args) -> int:
    if args.symbol is None:
        stored = _stored_preferences(app)
        if stored is None:
            return 1
        print(stored.get(SYMBOL_KEY) or app.catalog.symbol)
        return 0
    if not args.symbol or any(c.isspace() for c in args.symbol):
        print("The bang symbol must be non-empty and contain no whitespace", file=sys.stderr)
        return 1
    result = write_with_retry(lambda: app.store.set({SYMBOL_KEY: args.symbol}))
    if not result.ok:
        print(f"Could not save preferences: {result.error}", file=sys.stderr)
        return 1
    return 0


def cmd_migrate(app: CustomBangs, args) -> int:
    result = migrate_storage_schema(app.store)
    if result is None:
        print("Nothing to migrate")
        return 0
    if not result.ok:
        print(f"Migration failed after {result.attempts} attempt(s): {result.error}", file=sys.stderr)
        return 1
    print("✓ Preferences migrated")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="custombangs", description=__doc__)
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("resolve", help="Print the destination of a bang query")
    p.add_argument("query")
    p.set_defaults(func=cmd_resolve)

    p = sub.add_parser("open", help="Open the destination of a bang query in the browser")
    p.add_argument("query")
    p.set_defaults(func=cmd_open)

    p = sub.add_parser("serve", help="Run the redirecting HTTP proxy")
    p.add_argument("--host", default=None)
    p.add_argument("--port", type=int, default=None)
    p.set_defaults(func=cmd_serve)

    p = sub.add_parser("bangs", help="Manage custom bangs")
    actions = p.add_subparsers(dest="action", required=True)
    actions.add_parser("list")
    add = actions.add_parser("add")
    add.add_argument("token")
    add.add_argument("url", help="Template with {{{s}}} where the query goes")
    add.add_argument("--name", default=None)
    add.add_argument("--no-encode", action="store_true", help="Insert the query without percent-encoding")
    add.add_argument("--open-base-url", action="store_true", help="Open the site root when the query is empty")
    remove = actions.add_parser("remove")
    remove.add_argument("token")
    p.set_defaults(func=cmd_bangs)

    p = sub.add_parser("symbol", help="Show or set the bang symbol")
    p.add_argument("symbol", nargs="?", default=None)
    p.set_defaults(func=cmd_symbol)

    p = sub.add_parser("migrate", help="Migrate stored preferences to the current schema")
    p.set_defaults(func=cmd_migrate)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    app_config = load_app_config()
    logging.basicConfig(
        level=logging.DEBUG if app_config.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return args.func(CustomBangs(app_config), args)


if __name__ == "__main__":
    sys.exit(main())
