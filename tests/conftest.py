"""
Pytest fixtures for Steam Risk Audit tests. No network: sessions, fetchers and
sleeps are fakes.
"""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import MagicMock

import pytest

from steam_risk_audit.config.rules import load_rules
from steam_risk_audit.config.settings import RunSettings


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, status_code: int = 200, text: str = "", headers: dict[str, str] | None = None) -> None:
        self.status_code = status_code
        self.text = text
        self.headers = headers or {}


def app_details_body(app_id: int, data: dict[str, Any] | None = None, success: bool = True) -> str:
    """Build an appdetails response body as the store returns it."""
    item: dict[str, Any] = {"success": success}
    if data is not None:
        item["data"] = data
    return json.dumps({str(app_id): item})


@pytest.fixture
def rules():
    return load_rules()


@pytest.fixture
def settings(tmp_path):
    """Explicit settings, independent of the caller's environment."""
    return RunSettings(
        steam_id="76561197960287930",
        handle=None,
        request_delay=0.5,
        long_pause_every=50,
        long_pause_sec=30.0,
        only_flagged=False,
        cache_enabled=True,
        cache_path=tmp_path / "cache.json",
        detect_origin=True,
        detect_drm=True,
        detect_anticheat=True,
        extra_origin_keywords=(),
        report_dir=tmp_path / "reports",
        drm_overrides_path=None,
    )


@pytest.fixture
def details_fetcher():
    """
    Fetcher whose fetch() serves appdetails bodies from a dict of app id -> data.
    Ids missing from the dict answer success=false.
    """
    catalog: dict[int, dict[str, Any]] = {}

    def _fetch(uri: str, params: dict[str, Any] | None = None) -> FakeResponse:
        app_id = int((params or {})["appids"])
        if app_id in catalog:
            return FakeResponse(text=app_details_body(app_id, catalog[app_id]))
        return FakeResponse(text=app_details_body(app_id, success=False))

    fetcher = MagicMock()
    fetcher.fetch.side_effect = _fetch
    fetcher.catalog = catalog
    return fetcher
