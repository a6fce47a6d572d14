"""
DRM / third-party account detector.

A per-title manual override wins outright. Otherwise the explicit DRM notice
field is preferred for display, every DRM pattern is matched against the scan
corpus (labels deduplicated, order kept), and the first matching account
pattern names the third-party account vendor.
"""

from __future__ import annotations

from steam_risk_audit.analytics.models import DrmAssessment
from steam_risk_audit.analytics.text_normalizer import build_scan_corpus, normalize_text
from steam_risk_audit.config.rules import RuleTables
from steam_risk_audit.ingestion.models import DetailRecord


def detect_drm_vendors(corpus: str, rules: RuleTables) -> tuple[str, ...]:
    labels: list[str] = []
    for pattern, label in rules.drm_patterns:
        if label not in labels and pattern.search(corpus):
            labels.append(label)
    return tuple(labels)


def detect_account_vendor(corpus: str, rules: RuleTables) -> str | None:
    for pattern, label in rules.account_patterns:
        if pattern.search(corpus):
            return label
    return None


def assess_drm(record: DetailRecord, rules: RuleTables, corpus: str | None = None) -> DrmAssessment:
    override = rules.drm_overrides.get(record.app_id)
    if override is not None:
        return DrmAssessment(notice=override)

    if corpus is None:
        corpus = build_scan_corpus(record)
    explicit = normalize_text(record.drm_notice)
    vendors = detect_drm_vendors(corpus, rules)
    account = detect_account_vendor(corpus, rules)

    if explicit:
        notice: str | None = explicit
    elif vendors:
        notice = ", ".join(vendors)
    elif account:
        notice = f"Requires third-party account: {account}"
    else:
        notice = None
    return DrmAssessment(notice=notice, account_vendor=account, drm_vendors=vendors)
