"""Configuration for custombangs"""
import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()


class Config:
    """Environment-driven configuration"""

    # Paths
    CONFIG_DIR = Path.home() / ".config" / "custombangs"
    PREFERENCES_PATH = Path(
        os.getenv("CUSTOMBANGS_PREFERENCES_PATH", str(CONFIG_DIR / "preferences.json"))
    ).expanduser()

    # Default bang catalogs (same schema: [{"t": token, "u": template}, ...])
    PRIMARY_CATALOG_URL = os.getenv(
        "CUSTOMBANGS_PRIMARY_CATALOG_URL",
        "https://raw.githubusercontent.com/kagisearch/bangs/main/data/bangs.json",
    )
    FALLBACK_CATALOG_URL = os.getenv(
        "CUSTOMBANGS_FALLBACK_CATALOG_URL", "https://duckduckgo.com/bang.js"
    )
    FETCH_TIMEOUT = float(os.getenv("CUSTOMBANGS_FETCH_TIMEOUT", "15"))

    # Proxy
    PROXY_HOST = os.getenv("CUSTOMBANGS_PROXY_HOST", "127.0.0.1")
    PROXY_PORT = int(os.getenv("CUSTOMBANGS_PROXY_PORT", "8899"))

    DEBUG = os.getenv("DEBUG", "false").lower() == "true"


config = Config()
