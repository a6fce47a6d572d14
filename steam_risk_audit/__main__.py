"""
Audit a public Steam library from the command line.

How to run:
    python -m steam_risk_audit --handle gaben
    python -m steam_risk_audit --steam-id 76561197960287930 --only-flagged
    python -m steam_risk_audit --profile https://steamcommunity.com/id/gaben --no-anticheat

Every option falls back to its environment variable (see .env / RunSettings).
Writes <report dir>/steam_risk_<profile>.csv and .html, and saves the app
details cache when caching is enabled. Partial results are still written when
the run aborts.

Exit codes: 0 success, 1 run aborted, 2 invalid parameters.
"""

from __future__ import annotations

import argparse
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Sequence

import requests

from steam_risk_audit.analytics.analytics_pipeline import AuditPipeline, PipelineResult, PipelineState
from steam_risk_audit.audit_logging import get_logger
from steam_risk_audit.config.rules import load_rules
from steam_risk_audit.config.settings import RunSettings, get_settings, parse_identity
from steam_risk_audit.core.exceptions import (
    PersistenceError,
    SteamRiskAuditError,
    ValidationError,
)
from steam_risk_audit.ingestion.detail_cache import DetailCacheStore
from steam_risk_audit.ingestion.fetcher import RateLimitPolicy, ResilientFetcher, TransientRetryPolicy
from steam_risk_audit.ingestion.steam_store import SteamCommunityClient
from steam_risk_audit.reporting.report_writer import write_csv_report, write_html_report

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_ABORTED = 1
EXIT_INVALID = 2


@dataclass
class AuditOutcome:
    result: PipelineResult
    reports: list[Path] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="steam_risk_audit",
        description="Score the titles of a public Steam library for origin, DRM and anti-cheat risk.",
    )
    identity = parser.add_mutually_exclusive_group()
    identity.add_argument("--steam-id", help="17-digit SteamID64 (env STEAM_ID)")
    identity.add_argument("--handle", help="Custom profile handle (env STEAM_HANDLE)")
    identity.add_argument("--profile", help="Profile URL, SteamID64 or handle")
    parser.add_argument("--delay", type=float, default=None, help="Seconds between live store requests")
    parser.add_argument("--only-flagged", action="store_true", default=None, help="Only report titles with a signal")
    parser.add_argument("--no-cache", action="store_true", help="Do not read or write the details cache")
    parser.add_argument("--cache-path", type=Path, default=None, help="Details cache JSON file")
    parser.add_argument("--no-origin", action="store_true", help="Disable the origin detector")
    parser.add_argument("--no-drm", action="store_true", help="Disable the DRM / account detector")
    parser.add_argument("--no-anticheat", action="store_true", help="Disable the anti-cheat detector")
    parser.add_argument("--extra-keywords", default=None, help="Comma-separated extra origin keywords")
    parser.add_argument("--out-dir", type=Path, default=None, help="Report output directory")
    return parser


def settings_from_args(args: argparse.Namespace) -> RunSettings:
    """Env-backed RunSettings with CLI overrides applied."""
    settings = get_settings()
    if args.profile:
        settings.steam_id, settings.handle = parse_identity(args.profile)
    elif args.steam_id:
        settings.steam_id, settings.handle = args.steam_id.strip(), None
    elif args.handle:
        settings.steam_id, settings.handle = None, args.handle.strip()
    if args.delay is not None:
        settings.request_delay = args.delay
    if args.only_flagged:
        settings.only_flagged = True
    if args.no_cache:
        settings.cache_enabled = False
    if args.cache_path is not None:
        settings.cache_path = args.cache_path
    if args.no_origin:
        settings.detect_origin = False
    if args.no_drm:
        settings.detect_drm = False
    if args.no_anticheat:
        settings.detect_anticheat = False
    if args.extra_keywords:
        settings.extra_origin_keywords = settings.extra_origin_keywords + tuple(
            kw.strip() for kw in args.extra_keywords.split(",") if kw.strip()
        )
    if args.out_dir is not None:
        settings.report_dir = args.out_dir
    return settings


def _flush(outcome: AuditOutcome, settings: RunSettings, cache: DetailCacheStore, label: str) -> None:
    """Persist the cache and write every report. Failures become warnings."""
    if settings.cache_enabled and len(cache):
        try:
            cache.save(settings.cache_path)
        except PersistenceError as e:
            logger.warning("detail_cache_save_failed", path=str(settings.cache_path), error=e.message)
            outcome.warnings.append(e.message)

    rows = outcome.result.rows
    base = settings.report_dir / f"steam_risk_{label}"
    for writer, suffix in ((write_csv_report, ".csv"), (write_html_report, ".html")):
        try:
            outcome.reports.append(writer(rows, base.with_suffix(suffix)))
        except PersistenceError as e:
            logger.warning("report_write_failed", format=suffix.lstrip("."), error=e.message)
            outcome.warnings.append(e.message)


def _log_rate_limit_wait(remaining: float) -> None:
    logger.debug("rate_limit_wait", remaining_sec=round(remaining, 1))


def build_fetcher(
    sleep: Callable[[float], None] = time.sleep,
    session: requests.Session | None = None,
) -> ResilientFetcher:
    """Fetcher whose rate-limit waits report the remaining time as debug events."""
    return ResilientFetcher(
        session=session,
        rate_limit=RateLimitPolicy(sleep=sleep, on_wait=_log_rate_limit_wait),
        transient=TransientRetryPolicy(sleep=sleep),
    )


def run_audit(
    settings: RunSettings,
    fetcher: ResilientFetcher | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> AuditOutcome:
    """
    Run one audit end to end. Raises ValidationError before any network
    access; every other failure is reported through the outcome.
    """
    settings.validate()
    rules = load_rules(settings.extra_origin_keywords, settings.drm_overrides_path)
    fetcher = fetcher or build_fetcher(sleep)
    cache = DetailCacheStore(fetcher, sleep=sleep)
    if settings.cache_enabled:
        cache.load(settings.cache_path)
    community = SteamCommunityClient(fetcher)
    pipeline = AuditPipeline(community, cache, settings, rules, sleep=sleep)

    label = settings.steam_id or settings.handle or "profile"
    try:
        steam_id = settings.steam_id or community.resolve_profile_id(settings.handle or "")
    except SteamRiskAuditError as e:
        logger.error("profile_resolution_failed", handle=settings.handle, error=e.message)
        result = PipelineResult(state=PipelineState.ABORTED, error=e)
    else:
        result = pipeline.run(steam_id)

    outcome = AuditOutcome(result=result)
    _flush(outcome, settings, cache, label)
    return outcome


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = settings_from_args(args)
        outcome = run_audit(settings)
    except ValidationError as e:
        logger.error("invalid_parameters", error=e.message)
        print(f"error: {e.message}", file=sys.stderr)
        return EXIT_INVALID

    result = outcome.result
    for path in outcome.reports:
        print(f"Report written: {path}")
    if not result.ok:
        message = result.error.message if result.error else "run aborted"
        print(f"error: {message} ({len(result.rows)} rows written)", file=sys.stderr)
        return EXIT_ABORTED
    print(f"Audited {result.processed} titles, {result.flagged} flagged.")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
