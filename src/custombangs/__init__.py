"""custombangs - DuckDuckGo-style bangs for any search engine"""

__version__ = "1.0.0"
__description__ = "Redirect bang searches (e.g. '!w einstein') straight to their destination"

__all__ = ["main", "BangCatalog", "__version__"]


def __getattr__(name: str):
    """Lazy import so that importing custombangs.core does not pull in proxy.py."""
    if name == "BangCatalog":
        from .core.catalog import BangCatalog

        return BangCatalog
    if name == "main":
        from .main import main

        return main
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
