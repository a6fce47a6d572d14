"""
Anti-cheat detector.

Every keyword of the vendor map found in the scan corpus contributes its vendor
label and the raw keyword; kernel-flagged vendors set kernel_level. Generic
kernel-mode / ring-0 phrases also set kernel_level; a generic "anti-cheat"
mention only adds to the keyword trail.
"""

from __future__ import annotations

from steam_risk_audit.analytics.models import AntiCheatAssessment
from steam_risk_audit.analytics.text_normalizer import build_scan_corpus
from steam_risk_audit.config.rules import (
    GENERIC_ANTICHEAT_KEYWORD,
    GENERIC_KERNEL_KEYWORD,
    RuleTables,
)
from steam_risk_audit.ingestion.models import DetailRecord


def _summary(vendors: list[str], kernel_level: bool) -> str | None:
    if kernel_level and vendors:
        return f"Kernel-level: {', '.join(vendors)}"
    if vendors:
        return ", ".join(vendors)
    if kernel_level:
        return "Kernel-level anti-cheat (unspecified vendor)"
    return None


def assess_anticheat(record: DetailRecord, rules: RuleTables, corpus: str | None = None) -> AntiCheatAssessment:
    if corpus is None:
        corpus = build_scan_corpus(record)
    text = corpus.lower()

    vendors: list[str] = []
    keywords: list[str] = []
    kernel_level = False

    for keyword, (label, is_kernel) in rules.anticheat_keywords.items():
        if keyword not in text:
            continue
        if label not in vendors:
            vendors.append(label)
        if keyword not in keywords:
            keywords.append(keyword)
        if is_kernel:
            kernel_level = True

    if rules.generic_kernel.search(corpus):
        kernel_level = True
        keywords.append(GENERIC_KERNEL_KEYWORD)
    if rules.generic_anticheat.search(corpus):
        keywords.append(GENERIC_ANTICHEAT_KEYWORD)

    return AntiCheatAssessment(
        vendors=tuple(vendors),
        kernel_level=kernel_level,
        keywords=tuple(keywords),
        summary=_summary(vendors, kernel_level),
    )
