"""Env configuration adapter producing a structured AppConfig."""

from __future__ import annotations

from ..config import config as env_config
from ..core.config_model import AppConfig


def load_app_config() -> AppConfig:
    return AppConfig(
        debug=env_config.DEBUG,
        preferences_path=env_config.PREFERENCES_PATH,
        primary_catalog_url=env_config.PRIMARY_CATALOG_URL,
        fallback_catalog_url=env_config.FALLBACK_CATALOG_URL,
        fetch_timeout=env_config.FETCH_TIMEOUT,
        proxy_host=env_config.PROXY_HOST,
        proxy_port=env_config.PROXY_PORT,
    )
