"""
Environment variable loading for Steam Risk Audit.

- STEAM_STORE_LANGUAGE: store locale for app details (default: english)
- STEAM_STORE_COUNTRY: store country code for app details (default: us)
- STEAM_STORE_API_URL / STEAM_COMMUNITY_URL: endpoint overrides
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Project root: config is steam_risk_audit/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_PACKAGE_DIR = _CONFIG_DIR.parent
_ROOT = _PACKAGE_DIR.parent
_ENV_PATH = _ROOT / ".env"

DEFAULT_STORE_API_URL = "https://store.steampowered.com/api"
DEFAULT_STORE_PAGE_URL = "https://store.steampowered.com/app/{app_id}/"
DEFAULT_COMMUNITY_URL = "https://steamcommunity.com"
DEFAULT_STORE_LANGUAGE = "english"
DEFAULT_STORE_COUNTRY = "us"

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


def load_audit_env() -> None:
    """Load .env from project root. Safe to call multiple times."""
    load_dotenv(_ENV_PATH)


def env_str(name: str, default: str = "") -> str:
    load_audit_env()
    return (os.getenv(name) or default).strip()


def env_bool(name: str, default: bool = False) -> bool:
    raw = env_str(name).lower()
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    return default


def env_float(name: str, default: float) -> float:
    raw = env_str(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def env_int(name: str, default: int) -> int:
    raw = env_str(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def env_list(name: str) -> tuple[str, ...]:
    """Comma-separated env value as a tuple of non-empty, stripped items."""
    return tuple(item.strip() for item in env_str(name).split(",") if item.strip())


def get_store_api_url() -> str:
    return env_str("STEAM_STORE_API_URL", DEFAULT_STORE_API_URL).rstrip("/")


def get_community_url() -> str:
    return env_str("STEAM_COMMUNITY_URL", DEFAULT_COMMUNITY_URL).rstrip("/")


def get_store_locale() -> tuple[str, str]:
    """Return (language, country) pinned for app detail requests."""
    return (
        env_str("STEAM_STORE_LANGUAGE", DEFAULT_STORE_LANGUAGE),
        env_str("STEAM_STORE_COUNTRY", DEFAULT_STORE_COUNTRY),
    )


def store_page_url(app_id: int) -> str:
    return DEFAULT_STORE_PAGE_URL.format(app_id=app_id)
