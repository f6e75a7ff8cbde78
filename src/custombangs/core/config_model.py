"""Core configuration model (structured view)."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class AppConfig:
    debug: bool
    preferences_path: Path
    primary_catalog_url: str
    fallback_catalog_url: str
    fetch_timeout: float
    proxy_host: str
    proxy_port: int
