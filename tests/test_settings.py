"""
Tests for run settings: identity parsing, env defaults and validation.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from steam_risk_audit.config.settings import RunSettings, parse_identity
from steam_risk_audit.core.exceptions import ValidationError

STEAM_ID = "76561197960287930"

ENV_VARS = (
    "STEAM_ID",
    "STEAM_HANDLE",
    "REQUEST_DELAY_SEC",
    "LONG_PAUSE_EVERY",
    "LONG_PAUSE_SEC",
    "ONLY_FLAGGED",
    "CACHE_ENABLED",
    "CACHE_PATH",
    "DETECT_ORIGIN",
    "DETECT_DRM",
    "DETECT_ANTICHEAT",
    "EXTRA_ORIGIN_KEYWORDS",
    "REPORT_DIR",
    "DRM_OVERRIDES_PATH",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.mark.parametrize(
    "value,expected",
    [
        (STEAM_ID, (STEAM_ID, None)),
        ("  gaben ", (None, "gaben")),
        (f"https://steamcommunity.com/profiles/{STEAM_ID}/", (STEAM_ID, None)),
        ("https://steamcommunity.com/id/gaben", (None, "gaben")),
        ("steamcommunity.com/id/gaben/games", (None, "gaben")),
        ("", (None, None)),
    ],
)
def test_parse_identity(value, expected):
    assert parse_identity(value) == expected


def test_parse_identity_rejects_unknown_url():
    with pytest.raises(ValidationError):
        parse_identity("https://steamcommunity.com/groups/valve")


def test_defaults_from_clean_env(clean_env):
    s = RunSettings()
    assert s.steam_id is None
    assert s.handle is None
    assert s.request_delay == 1.5
    assert s.long_pause_every == 50
    assert s.long_pause_sec == 30.0
    assert s.only_flagged is False
    assert s.cache_enabled is True
    assert s.cache_path == Path("app_details_cache.json")
    assert s.report_dir == Path("reports")
    assert s.extra_origin_keywords == ()
    assert s.drm_overrides_path is None


def test_env_overrides(clean_env):
    clean_env.setenv("STEAM_HANDLE", "gaben")
    clean_env.setenv("REQUEST_DELAY_SEC", "0.25")
    clean_env.setenv("LONG_PAUSE_EVERY", "-3")
    clean_env.setenv("ONLY_FLAGGED", "yes")
    clean_env.setenv("DETECT_DRM", "off")
    clean_env.setenv("EXTRA_ORIGIN_KEYWORDS", "acme, ,foo games")
    s = RunSettings()
    assert s.handle == "gaben"
    assert s.request_delay == 0.25
    assert s.long_pause_every == 0
    assert s.only_flagged is True
    assert s.detect_drm is False
    assert s.extra_origin_keywords == ("acme", "foo games")


def test_unparseable_numbers_fall_back(clean_env):
    clean_env.setenv("REQUEST_DELAY_SEC", "fast")
    clean_env.setenv("LONG_PAUSE_EVERY", "often")
    s = RunSettings()
    assert s.request_delay == 1.5
    assert s.long_pause_every == 50


def test_validate_accepts_either_identity(settings):
    assert settings.validate() is settings
    settings.steam_id, settings.handle = None, "some_handle-1"
    settings.validate()


@pytest.mark.parametrize(
    "changes",
    [
        {"steam_id": STEAM_ID, "handle": "gaben"},
        {"steam_id": None, "handle": None},
        {"steam_id": "12345"},
        {"steam_id": "7656119796028793x"},
        {"steam_id": None, "handle": "a"},
        {"steam_id": None, "handle": "bad handle!"},
        {"request_delay": -1.0},
        {"long_pause_sec": -0.1},
    ],
)
def test_validate_rejects(settings, changes):
    for key, value in changes.items():
        setattr(settings, key, value)
    with pytest.raises(ValidationError) as exc:
        settings.validate()
    assert exc.value.code == "invalid_parameters"
