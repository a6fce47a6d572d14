"""
Analytics pipeline: owned titles -> details -> detectors -> score -> sorted rows.

Titles are processed one at a time in listing order. Each title goes through
the cache store (a live fetch is followed by a pacing delay, and every N-th
live fetch by a longer pause), the enabled detectors, and the risk engine.
A fatal error during listing or per-item processing aborts the run, but the
rows collected so far are still sorted and returned.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable

from steam_risk_audit.analytics.anticheat_detector import assess_anticheat
from steam_risk_audit.analytics.drm_detector import assess_drm
from steam_risk_audit.analytics.models import (
    AntiCheatAssessment,
    DrmAssessment,
    OriginAssessment,
    ReportRow,
)
from steam_risk_audit.analytics.origin_detector import assess_origin
from steam_risk_audit.analytics.risk_engine import is_trusted_publisher, score_risk
from steam_risk_audit.analytics.text_normalizer import build_scan_corpus
from steam_risk_audit.audit_logging import bind_app, get_logger
from steam_risk_audit.config.env import store_page_url
from steam_risk_audit.config.rules import RuleTables
from steam_risk_audit.config.settings import RunSettings
from steam_risk_audit.core.exceptions import SteamRiskAuditError
from steam_risk_audit.ingestion.detail_cache import DetailCacheStore
from steam_risk_audit.ingestion.models import DetailRecord, OwnedTitle
from steam_risk_audit.ingestion.steam_store import SteamCommunityClient, dedupe_owned_titles

logger = get_logger(__name__)


class PipelineState(str, Enum):
    IDLE = "idle"
    LISTING = "listing"
    FETCHING = "fetching"
    CACHED = "cached"
    SCORING = "scoring"
    COLLECTING = "collecting"
    SORTING = "sorting"
    DONE = "done"
    ABORTED = "aborted"


@dataclass
class PipelineResult:
    """Sorted rows plus run counters. error is set when the run aborted."""

    rows: list[ReportRow] = field(default_factory=list)
    state: PipelineState = PipelineState.IDLE
    error: SteamRiskAuditError | None = None
    titles_total: int = 0
    processed: int = 0
    fetched: int = 0
    cached: int = 0

    @property
    def ok(self) -> bool:
        return self.state == PipelineState.DONE

    @property
    def flagged(self) -> int:
        return sum(1 for row in self.rows if row.is_interesting)


def sort_rows(rows: Iterable[ReportRow]) -> list[ReportRow]:
    """Score descending, then name ascending; app id makes the order total."""
    return sorted(rows, key=lambda r: (-r.score, r.name.casefold(), r.name, r.app_id))


class AuditPipeline:
    """Drives one audit run. Single-threaded; one title at a time."""

    def __init__(
        self,
        community: SteamCommunityClient | None,
        cache: DetailCacheStore,
        settings: RunSettings,
        rules: RuleTables,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._community = community
        self._cache = cache
        self._settings = settings
        self._rules = rules
        self._sleep = sleep
        self._live_fetches = 0
        self.state = PipelineState.IDLE

    def _set_state(self, state: PipelineState) -> None:
        self.state = state

    def _abort(self, result: PipelineResult, rows: list[ReportRow], error: SteamRiskAuditError) -> PipelineResult:
        self._set_state(PipelineState.ABORTED)
        result.rows = sort_rows(rows)
        result.state = PipelineState.ABORTED
        result.error = error
        logger.error(
            "audit_run_aborted",
            error=error.message,
            error_code=error.code,
            rows_kept=len(result.rows),
        )
        return result

    def run(self, steam_id: str) -> PipelineResult:
        """List the profile's titles and audit them."""
        if self._community is None:
            raise ValueError("run() needs a community client; use run_titles() for a prepared listing")
        self._set_state(PipelineState.LISTING)
        try:
            titles = self._community.get_owned_titles(steam_id)
        except SteamRiskAuditError as e:
            return self._abort(PipelineResult(), [], e)
        return self.run_titles(titles)

    def run_titles(self, titles: Iterable[OwnedTitle]) -> PipelineResult:
        """Audit an already obtained listing (deduplicated here again)."""
        unique = dedupe_owned_titles(titles)
        result = PipelineResult(titles_total=len(unique))
        rows: list[ReportRow] = []
        logger.info("audit_run_start", titles=len(unique), only_flagged=self._settings.only_flagged)

        for title in unique:
            try:
                row = self._process(title, result)
            except SteamRiskAuditError as e:
                return self._abort(result, rows, e)
            self._set_state(PipelineState.COLLECTING)
            result.processed += 1
            if not self._settings.only_flagged or row.is_interesting:
                rows.append(row)

        self._set_state(PipelineState.SORTING)
        result.rows = sort_rows(rows)
        self._set_state(PipelineState.DONE)
        result.state = PipelineState.DONE
        logger.info(
            "audit_run_done",
            titles=result.titles_total,
            rows=len(result.rows),
            flagged=result.flagged,
            fetched=result.fetched,
            cached=result.cached,
        )
        return result

    def _process(self, title: OwnedTitle, result: PipelineResult) -> ReportRow:
        log = bind_app(title.app_id)
        if title.app_id in self._cache:
            self._set_state(PipelineState.CACHED)
        else:
            self._set_state(PipelineState.FETCHING)

        lookup = self._cache.lookup(title.app_id)
        if lookup.fetched:
            result.fetched += 1
            self._pace()
        else:
            result.cached += 1

        self._set_state(PipelineState.SCORING)
        row = self.build_row(title, lookup.record)
        log.debug("title_scored", name=title.name, score=row.score, factors=list(row.risk.factors))
        return row

    def _pace(self) -> None:
        self._live_fetches += 1
        if self._settings.request_delay > 0:
            self._sleep(self._settings.request_delay)
        every = self._settings.long_pause_every
        if every and self._live_fetches % every == 0 and self._settings.long_pause_sec > 0:
            logger.info(
                "audit_long_pause",
                live_fetches=self._live_fetches,
                pause_sec=self._settings.long_pause_sec,
            )
            self._sleep(self._settings.long_pause_sec)

    def build_row(self, title: OwnedTitle, record: DetailRecord | None) -> ReportRow:
        """Run the enabled detectors and the scorer for one title."""
        settings = self._settings
        developers: tuple[str, ...] = record.developers if record else ()
        publishers: tuple[str, ...] = record.publishers if record else ()
        origin = drm = anticheat = None

        # A missing record yields no-signal defaults for every enabled detector
        if record is None:
            origin = OriginAssessment() if settings.detect_origin else None
            drm = DrmAssessment() if settings.detect_drm else None
            anticheat = AntiCheatAssessment() if settings.detect_anticheat else None
        else:
            corpus = build_scan_corpus(record) if (settings.detect_drm or settings.detect_anticheat) else ""
            if settings.detect_origin:
                origin = assess_origin(
                    developers,
                    publishers,
                    record.supported_languages,
                    title.name,
                    self._rules,
                )
            if settings.detect_drm:
                drm = assess_drm(record, self._rules, corpus=corpus)
            if settings.detect_anticheat:
                anticheat = assess_anticheat(record, self._rules, corpus=corpus)

        trusted = is_trusted_publisher(developers, publishers, self._rules)
        risk = score_risk(origin, drm, anticheat, trusted)
        return ReportRow(
            title=title,
            developers=developers,
            publishers=publishers,
            origin=origin,
            drm=drm,
            anticheat=anticheat,
            is_trusted_publisher=trusted,
            risk=risk,
            store_url=store_page_url(title.app_id),
        )
