"""
Tests for the audit pipeline: dedupe, ordering, filtering, pacing, cache
reuse and partial results on abort.
"""

from __future__ import annotations

from dataclasses import replace
from unittest.mock import MagicMock

import pytest

from steam_risk_audit.analytics.analytics_pipeline import AuditPipeline, PipelineState, sort_rows
from steam_risk_audit.analytics.models import AntiCheatAssessment, DrmAssessment, OriginAssessment
from steam_risk_audit.core.exceptions import FetchError, ProfileUnavailableError
from steam_risk_audit.ingestion.detail_cache import DetailCacheStore
from steam_risk_audit.ingestion.models import DetailRecord, OwnedTitle

DENUVO_GAME = {"name": "Beta", "developers": ["Studio"], "about_the_game": "Protected by Denuvo."}
CALM_GAME = {"name": "Alpha", "developers": ["Indie"], "short_description": "A calm game."}


def _store(fetcher) -> DetailCacheStore:
    return DetailCacheStore(fetcher, details_url="https://store.example/api/appdetails", locale=("english", "us"), sleep=lambda s: None)


def _pipeline(fetcher, settings, rules, community=None, sleeps=None):
    sleeps = sleeps if sleeps is not None else []
    return AuditPipeline(community, _store(fetcher), settings, rules, sleep=sleeps.append)


def test_run_dedupes_scores_and_sorts(details_fetcher, settings, rules):
    details_fetcher.catalog.update({10: DENUVO_GAME, 20: CALM_GAME})
    community = MagicMock()
    community.get_owned_titles.return_value = [
        OwnedTitle(20, "alpha"),
        OwnedTitle(10, "Beta"),
        OwnedTitle(20, "Alpha again"),
    ]
    pipeline = _pipeline(details_fetcher, settings, rules, community=community)

    result = pipeline.run(settings.steam_id)

    community.get_owned_titles.assert_called_once_with(settings.steam_id)
    assert result.ok
    assert pipeline.state == PipelineState.DONE
    assert [(r.app_id, r.name, r.score) for r in result.rows] == [(10, "Beta", 2), (20, "alpha", 0)]
    assert result.titles_total == 2
    assert result.processed == 2
    assert result.fetched == 2
    assert result.cached == 0
    assert result.flagged == 1
    assert result.rows[0].store_url == "https://store.steampowered.com/app/10/"


def test_sort_ties_by_name_case_insensitive(details_fetcher, settings, rules):
    titles = [OwnedTitle(3, "charlie"), OwnedTitle(1, "Bravo"), OwnedTitle(2, "alpha")]
    result = _pipeline(details_fetcher, settings, rules).run_titles(titles)
    assert [r.name for r in result.rows] == ["alpha", "Bravo", "charlie"]
    assert [r.name for r in sort_rows(reversed(result.rows))] == ["alpha", "Bravo", "charlie"]


def test_only_flagged_drops_quiet_rows(details_fetcher, settings, rules):
    details_fetcher.catalog.update({10: DENUVO_GAME, 20: CALM_GAME})
    settings.only_flagged = True
    result = _pipeline(details_fetcher, settings, rules).run_titles([OwnedTitle(10, "Beta"), OwnedTitle(20, "Alpha")])
    assert [r.app_id for r in result.rows] == [10]
    assert result.processed == 2


def test_disabled_detectors_leave_none(details_fetcher, settings, rules):
    details_fetcher.catalog[10] = DENUVO_GAME
    settings.detect_drm = False
    settings.detect_anticheat = False
    result = _pipeline(details_fetcher, settings, rules).run_titles([OwnedTitle(10, "Beta")])
    row = result.rows[0]
    assert row.drm is None
    assert row.anticheat is None
    assert isinstance(row.origin, OriginAssessment)
    assert row.score == 0


def test_unparseable_details_yield_default_row(details_fetcher, settings, rules):
    result = _pipeline(details_fetcher, settings, rules).run_titles([OwnedTitle(99, "Gone")])
    row = result.rows[0]
    assert row.origin == OriginAssessment()
    assert row.drm == DrmAssessment()
    assert row.anticheat == AntiCheatAssessment()
    assert row.developers == ()
    assert row.score == 0
    assert row.risk.factors == ()
    assert result.fetched == 1


def test_warm_cache_makes_no_requests_and_same_rows(details_fetcher, settings, rules, tmp_path):
    details_fetcher.catalog.update({10: DENUVO_GAME, 20: CALM_GAME})
    titles = [OwnedTitle(10, "Beta"), OwnedTitle(20, "Alpha")]
    first_store = _store(details_fetcher)
    first = AuditPipeline(None, first_store, settings, rules, sleep=lambda s: None).run_titles(titles)
    first_store.save(tmp_path / "warm.json")

    cold_fetcher = MagicMock()
    warm_store = _store(cold_fetcher)
    assert warm_store.load(tmp_path / "warm.json") == 2
    sleeps: list[float] = []
    second = AuditPipeline(None, warm_store, settings, rules, sleep=sleeps.append).run_titles(titles)

    cold_fetcher.fetch.assert_not_called()
    assert sleeps == []
    assert second.rows == first.rows
    assert second.cached == 2
    assert second.fetched == 0


def test_abort_keeps_sorted_partial_rows(details_fetcher, settings, rules):
    details_fetcher.catalog.update({10: DENUVO_GAME, 30: CALM_GAME})
    serve = details_fetcher.fetch.side_effect

    def _fetch(uri, params=None):
        if params["appids"] == 20:
            raise FetchError("gave up", uri=uri, status_code=503)
        return serve(uri, params)

    details_fetcher.fetch.side_effect = _fetch
    pipeline = _pipeline(details_fetcher, settings, rules)
    result = pipeline.run_titles([OwnedTitle(30, "Alpha"), OwnedTitle(10, "Beta"), OwnedTitle(20, "Broken"), OwnedTitle(40, "Never")])

    assert result.state == PipelineState.ABORTED
    assert pipeline.state == PipelineState.ABORTED
    assert not result.ok
    assert isinstance(result.error, FetchError)
    assert [r.app_id for r in result.rows] == [10, 30]
    assert result.processed == 2
    requested = [c.kwargs["params"]["appids"] for c in details_fetcher.fetch.call_args_list]
    assert 40 not in requested


def test_pacing_and_long_pause(details_fetcher, settings, rules):
    settings.request_delay = 0.5
    settings.long_pause_every = 2
    settings.long_pause_sec = 30.0
    sleeps: list[float] = []
    titles = [OwnedTitle(i, f"Game {i}") for i in (1, 2, 3)]
    _pipeline(details_fetcher, settings, rules, sleeps=sleeps).run_titles(titles)
    assert sleeps == [0.5, 0.5, 30.0, 0.5]


def test_long_pause_disabled_and_zero_delay(details_fetcher, rules, settings):
    settings = replace(settings, request_delay=0.0, long_pause_every=0)
    sleeps: list[float] = []
    _pipeline(details_fetcher, settings, rules, sleeps=sleeps).run_titles([OwnedTitle(i, str(i)) for i in range(1, 5)])
    assert sleeps == []


def test_listing_failure_aborts_with_no_rows(details_fetcher, settings, rules):
    community = MagicMock()
    community.get_owned_titles.side_effect = ProfileUnavailableError("profile private or empty")
    result = _pipeline(details_fetcher, settings, rules, community=community).run(settings.steam_id)
    assert result.state == PipelineState.ABORTED
    assert result.rows == []
    assert result.error.code == "profile_private_or_empty"
    details_fetcher.fetch.assert_not_called()


def test_run_requires_community_client(details_fetcher, settings, rules):
    with pytest.raises(ValueError):
        _pipeline(details_fetcher, settings, rules).run(settings.steam_id)


def test_build_row_denuvo_account_and_non_kernel_anticheat(details_fetcher, settings, rules):
    record = DetailRecord(
        app_id=50,
        developers=("Studio",),
        about_the_game="Protected by denuvo. Requires Ubisoft Connect. PunkBuster enabled servers.",
    )
    row = _pipeline(details_fetcher, settings, rules).build_row(OwnedTitle(50, "Shooter"), record)
    assert row.drm.drm_vendors == ("Denuvo",)
    assert row.drm.account_vendor == "Ubisoft Connect"
    assert row.anticheat.vendors == ("PunkBuster",)
    assert row.anticheat.kernel_level is False
    assert row.score == 4
    assert row.risk.factors == (
        "Anti-cheat: PunkBuster (+1)",
        "DRM: Denuvo (+2)",
        "Third-party account: Ubisoft Connect (+1)",
    )
