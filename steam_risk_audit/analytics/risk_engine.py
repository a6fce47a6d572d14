"""
Risk engine: 0-10 risk score and factor trail from the three assessments.

Fixed evaluation order:
  origin     strong +5 | full audio +2 | weak +1
  anti-cheat kernel +4 | any vendor +1
  DRM        Denuvo 2 | any other DRM text 1 (max, never summed)
  account    third-party account +1
  trusted    -1, floored at 0
Final score is capped at 10. A None assessment means the detector was not run
and contributes nothing.
"""

from __future__ import annotations

from typing import Sequence

from steam_risk_audit.analytics.models import (
    AntiCheatAssessment,
    DrmAssessment,
    OriginAssessment,
    RiskAssessment,
)
from steam_risk_audit.config.rules import RuleTables

WEIGHT_STRONG_ORIGIN = 5
WEIGHT_FULL_AUDIO = 2
WEIGHT_WEAK_LANGUAGE = 1
WEIGHT_KERNEL_ANTICHEAT = 4
WEIGHT_ANTICHEAT_VENDOR = 1
WEIGHT_DRM_DENUVO = 2
WEIGHT_DRM_OTHER = 1
WEIGHT_THIRD_PARTY_ACCOUNT = 1
TRUSTED_PUBLISHER_ADJUSTMENT = 1
SCORE_MIN = 0
SCORE_MAX = 10


def drm_weight(drm: DrmAssessment) -> int:
    """2 for a Denuvo mention, 1 for any other DRM text, else 0."""
    text = " ".join(filter(None, (drm.notice, ", ".join(drm.drm_vendors)))).strip()
    if "denuvo" in text.lower():
        return WEIGHT_DRM_DENUVO
    if text:
        return WEIGHT_DRM_OTHER
    return 0


def score_risk(
    origin: OriginAssessment | None,
    drm: DrmAssessment | None,
    anticheat: AntiCheatAssessment | None,
    trusted_publisher: bool = False,
) -> RiskAssessment:
    score = 0
    factors: list[str] = []

    if origin is not None:
        if origin.is_strong_origin:
            score += WEIGHT_STRONG_ORIGIN
            factors.append(f"Strong origin signal (+{WEIGHT_STRONG_ORIGIN})")
        elif origin.full_audio_signal:
            score += WEIGHT_FULL_AUDIO
            factors.append(f"Chinese full audio (+{WEIGHT_FULL_AUDIO})")
        elif origin.weak_language_signal:
            score += WEIGHT_WEAK_LANGUAGE
            factors.append(f"Chinese localization (+{WEIGHT_WEAK_LANGUAGE})")

    if anticheat is not None:
        if anticheat.kernel_level:
            score += WEIGHT_KERNEL_ANTICHEAT
            factors.append(f"Kernel-level anti-cheat (+{WEIGHT_KERNEL_ANTICHEAT})")
        elif anticheat.vendors:
            score += WEIGHT_ANTICHEAT_VENDOR
            factors.append(f"Anti-cheat: {', '.join(anticheat.vendors)} (+{WEIGHT_ANTICHEAT_VENDOR})")

    if drm is not None:
        weight = drm_weight(drm)
        if weight == WEIGHT_DRM_DENUVO:
            score += weight
            factors.append(f"DRM: Denuvo (+{weight})")
        elif weight:
            score += weight
            factors.append(f"DRM (+{weight})")
        if drm.account_vendor:
            score += WEIGHT_THIRD_PARTY_ACCOUNT
            factors.append(f"Third-party account: {drm.account_vendor} (+{WEIGHT_THIRD_PARTY_ACCOUNT})")

    if trusted_publisher and score > SCORE_MIN:
        score = max(SCORE_MIN, score - TRUSTED_PUBLISHER_ADJUSTMENT)
        factors.append(f"Trusted publisher (-{TRUSTED_PUBLISHER_ADJUSTMENT})")

    score = min(SCORE_MAX, score)
    return RiskAssessment(score=score, factors=tuple(factors))


def is_trusted_publisher(
    developers: Sequence[str],
    publishers: Sequence[str],
    rules: RuleTables,
) -> bool:
    """Exact, case-insensitive match of any developer/publisher against the allowlist."""
    for name in (*developers, *publishers):
        if (name or "").strip().lower() in rules.trusted_publishers:
            return True
    return False
