"""
Run settings for an audit.

Every field defaults from the environment (.env supported), so a run can be
driven entirely by env vars or overridden field by field from the CLI.
validate() rejects malformed or conflicting identity input before any network
access.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlparse

from steam_risk_audit.config.env import env_bool, env_float, env_int, env_list, env_str
from steam_risk_audit.core.exceptions import ValidationError

DEFAULT_REQUEST_DELAY_SEC = 1.5
DEFAULT_LONG_PAUSE_EVERY = 50
DEFAULT_LONG_PAUSE_SEC = 30.0
DEFAULT_CACHE_PATH = "app_details_cache.json"
DEFAULT_REPORT_DIR = "reports"

STEAM_ID_RE = re.compile(r"^\d{17}$")
HANDLE_RE = re.compile(r"^[A-Za-z0-9_-]{2,32}$")


def _optional_env(name: str) -> str | None:
    return env_str(name) or None


def _optional_path_env(name: str) -> Path | None:
    raw = env_str(name)
    return Path(raw) if raw else None


def parse_identity(value: str) -> tuple[str | None, str | None]:
    """
    Split a free-form identity into (steam_id, handle).

    Accepts a 17-digit SteamID64, a vanity handle, or a community profile URL
    (``.../profiles/<id>`` or ``.../id/<handle>``).
    """
    value = (value or "").strip()
    if not value:
        return None, None
    if "://" in value or value.startswith("steamcommunity.com"):
        parsed = urlparse(value if "://" in value else f"https://{value}")
        parts = [p for p in parsed.path.split("/") if p]
        if len(parts) >= 2 and parts[0] == "profiles":
            return parts[1], None
        if len(parts) >= 2 and parts[0] == "id":
            return None, parts[1]
        raise ValidationError(f"Unrecognised profile URL: {value}")
    if value.isdigit():
        return value, None
    return None, value


@dataclass
class RunSettings:
    """Parameters consumed by the audit pipeline. Env-backed defaults."""

    steam_id: str | None = field(default_factory=lambda: _optional_env("STEAM_ID"))
    handle: str | None = field(default_factory=lambda: _optional_env("STEAM_HANDLE"))
    request_delay: float = field(default_factory=lambda: env_float("REQUEST_DELAY_SEC", DEFAULT_REQUEST_DELAY_SEC))
    long_pause_every: int = field(default_factory=lambda: env_int("LONG_PAUSE_EVERY", DEFAULT_LONG_PAUSE_EVERY))
    long_pause_sec: float = field(default_factory=lambda: env_float("LONG_PAUSE_SEC", DEFAULT_LONG_PAUSE_SEC))
    only_flagged: bool = field(default_factory=lambda: env_bool("ONLY_FLAGGED", False))
    cache_enabled: bool = field(default_factory=lambda: env_bool("CACHE_ENABLED", True))
    cache_path: Path = field(default_factory=lambda: Path(env_str("CACHE_PATH", DEFAULT_CACHE_PATH)))
    detect_origin: bool = field(default_factory=lambda: env_bool("DETECT_ORIGIN", True))
    detect_drm: bool = field(default_factory=lambda: env_bool("DETECT_DRM", True))
    detect_anticheat: bool = field(default_factory=lambda: env_bool("DETECT_ANTICHEAT", True))
    extra_origin_keywords: tuple[str, ...] = field(default_factory=lambda: env_list("EXTRA_ORIGIN_KEYWORDS"))
    report_dir: Path = field(default_factory=lambda: Path(env_str("REPORT_DIR", DEFAULT_REPORT_DIR)))
    drm_overrides_path: Path | None = field(default_factory=lambda: _optional_path_env("DRM_OVERRIDES_PATH"))

    def __post_init__(self) -> None:
        # 0 disables the periodic long pause
        if self.long_pause_every < 0:
            self.long_pause_every = 0
        self.extra_origin_keywords = tuple(
            kw.strip() for kw in self.extra_origin_keywords if kw and kw.strip()
        )

    def validate(self) -> "RunSettings":
        """Raise ValidationError for missing, conflicting or malformed input."""
        if self.steam_id and self.handle:
            raise ValidationError("Provide either a Steam ID or a profile handle, not both")
        if not self.steam_id and not self.handle:
            raise ValidationError("A Steam ID or a profile handle is required")
        if self.steam_id and not STEAM_ID_RE.match(self.steam_id):
            raise ValidationError(f"Malformed Steam ID (expected 17 digits): {self.steam_id}")
        if self.handle and not HANDLE_RE.match(self.handle):
            raise ValidationError(f"Malformed profile handle: {self.handle}")
        if self.request_delay < 0:
            raise ValidationError("Request delay must be non-negative")
        if self.long_pause_sec < 0:
            raise ValidationError("Long pause must be non-negative")
        return self


def get_settings() -> RunSettings:
    """Return run settings built from the current environment."""
    return RunSettings()
