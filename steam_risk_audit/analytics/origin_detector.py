"""
Origin detector: Chinese developer/publisher origin signals.

Strong signals, first match wins (case-insensitive):
1. a developer/publisher name contains an origin keyword;
2. a developer/publisher name contains a CJK Unified Ideograph;
3. the title contains a known-title entry.

Only when no strong signal is found, the supported-languages field is checked:
a Chinese language marker is a weak signal, and the marker followed directly by
the full-audio asterisk is a full-audio signal (which implies weak).
"""

from __future__ import annotations

from typing import Iterable, Sequence

from steam_risk_audit.analytics.models import OriginAssessment
from steam_risk_audit.analytics.text_normalizer import normalize_text
from steam_risk_audit.config.rules import (
    CHINESE_FULL_AUDIO_MARKER,
    CHINESE_LANGUAGE_MARKER,
    RuleTables,
)

# CJK Unified Ideographs and Extension A
_CJK_RANGES = ((0x4E00, 0x9FFF), (0x3400, 0x4DBF))


def contains_cjk(text: str) -> bool:
    for ch in text:
        cp = ord(ch)
        if any(lo <= cp <= hi for lo, hi in _CJK_RANGES):
            return True
    return False


def _keywords(rules: RuleTables, extra_keywords: Iterable[str]) -> list[str]:
    merged = list(rules.origin_keywords)
    for kw in extra_keywords:
        kw = (kw or "").strip().lower()
        if kw and kw not in merged:
            merged.append(kw)
    return merged


def assess_origin(
    developers: Sequence[str],
    publishers: Sequence[str],
    supported_languages: str | None,
    title: str,
    rules: RuleTables,
    extra_keywords: Iterable[str] = (),
) -> OriginAssessment:
    names = [n for n in (*developers, *publishers) if n]
    lowered = [n.lower() for n in names]

    for kw in _keywords(rules, extra_keywords):
        for name, low in zip(names, lowered):
            if kw in low:
                return OriginAssessment(is_strong_origin=True, evidence=f"keyword: {kw}")

    for name in names:
        if contains_cjk(name):
            return OriginAssessment(is_strong_origin=True, evidence=f"CJK name: {name}")

    low_title = (title or "").lower()
    for known in rules.known_titles:
        if known in low_title:
            return OriginAssessment(is_strong_origin=True, evidence=f"title: {known}")

    languages = normalize_text(supported_languages) or ""
    if CHINESE_FULL_AUDIO_MARKER.search(languages):
        return OriginAssessment(
            weak_language_signal=True,
            full_audio_signal=True,
            evidence="Chinese localization with full audio",
        )
    if CHINESE_LANGUAGE_MARKER.search(languages):
        return OriginAssessment(weak_language_signal=True, evidence="Chinese localization")
    return OriginAssessment()
