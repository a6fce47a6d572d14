"""
Data models for detector and scorer output.

Assessments are immutable; a disabled detector is represented by None in a
ReportRow, never by a "negative" assessment.
"""

from __future__ import annotations

from dataclasses import dataclass

from steam_risk_audit.ingestion.models import OwnedTitle


@dataclass(frozen=True)
class OriginAssessment:
    is_strong_origin: bool = False
    weak_language_signal: bool = False
    full_audio_signal: bool = False
    evidence: str = ""

    @property
    def has_signal(self) -> bool:
        return self.is_strong_origin or self.weak_language_signal or self.full_audio_signal


@dataclass(frozen=True)
class DrmAssessment:
    notice: str | None = None
    account_vendor: str | None = None
    drm_vendors: tuple[str, ...] = ()

    @property
    def has_signal(self) -> bool:
        return bool(self.notice or self.account_vendor or self.drm_vendors)


@dataclass(frozen=True)
class AntiCheatAssessment:
    vendors: tuple[str, ...] = ()
    kernel_level: bool = False
    keywords: tuple[str, ...] = ()
    summary: str | None = None

    @property
    def has_signal(self) -> bool:
        return self.kernel_level or bool(self.vendors)


@dataclass(frozen=True)
class RiskAssessment:
    """Score in [0, 10] plus the factor trail, in evaluation order."""

    score: int = 0
    factors: tuple[str, ...] = ()


@dataclass(frozen=True)
class ReportRow:
    """One processed title. Created once, never mutated."""

    title: OwnedTitle
    developers: tuple[str, ...]
    publishers: tuple[str, ...]
    origin: OriginAssessment | None
    drm: DrmAssessment | None
    anticheat: AntiCheatAssessment | None
    is_trusted_publisher: bool
    risk: RiskAssessment
    store_url: str

    @property
    def app_id(self) -> int:
        return self.title.app_id

    @property
    def name(self) -> str:
        return self.title.name

    @property
    def score(self) -> int:
        return self.risk.score

    @property
    def is_interesting(self) -> bool:
        """Any enabled detector found something, or the score is non-zero."""
        return (
            (self.origin is not None and self.origin.has_signal)
            or (self.drm is not None and self.drm.has_signal)
            or (self.anticheat is not None and self.anticheat.has_signal)
            or self.risk.score > 0
        )
