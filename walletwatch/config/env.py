"""
Environment variable loading for walletwatch.

- APP_ENV: production | anything else (default: development)
- DATABASE_URL: SQLAlchemy URL; falls back to SQLite at WALLETWATCH_DB_PATH
- ETHERSCAN_API_KEY / BSCSCAN_API_KEY: explorer credentials
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Project root: config is walletwatch/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_PACKAGE_DIR = _CONFIG_DIR.parent
_ROOT = _PACKAGE_DIR.parent
_ENV_PATH = _ROOT / ".env"

PRODUCTION = "production"
DEVELOPMENT = "development"
DEFAULT_SQLITE_PATH = "walletwatch.db"


def load_walletwatch_env() -> None:
    """Load .env from project root. Existing variables win; safe to call repeatedly."""
    load_dotenv(_ENV_PATH, override=False)


def get_app_env() -> str:
    """Return APP_ENV lower-cased. Default: development."""
    load_walletwatch_env()
    return (os.getenv("APP_ENV") or DEVELOPMENT).strip().lower() or DEVELOPMENT


def is_production() -> bool:
    return get_app_env() == PRODUCTION


def get_database_url() -> str:
    """
    Resolve the database URL.
    Order: DATABASE_URL > sqlite:///WALLETWATCH_DB_PATH > sqlite:///walletwatch.db.
    """
    load_walletwatch_env()
    url = (os.getenv("DATABASE_URL") or "").strip()
    if url:
        return url
    path = (os.getenv("WALLETWATCH_DB_PATH") or "").strip() or DEFAULT_SQLITE_PATH
    return f"sqlite:///{path}"


def env_str(name: str, default: str = "") -> str:
    return (os.getenv(name) or "").strip() or default


def env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def mask_url(url: str) -> str:
    """Strip credentials and query string from a URL before logging it."""
    base = url.split("?")[0]
    if "@" in base:
        scheme, _, rest = base.partition("://")
        return f"{scheme}://***@{rest.split('@', 1)[1]}"
    return base
