"""
Steam Risk Audit analytics engine.

Text normalization, the origin / DRM / anti-cheat detectors, the risk engine,
and the pipeline that drives them over an owned-games listing.
"""

from steam_risk_audit.analytics.analytics_pipeline import AuditPipeline, PipelineResult, PipelineState
from steam_risk_audit.analytics.anticheat_detector import assess_anticheat
from steam_risk_audit.analytics.drm_detector import assess_drm
from steam_risk_audit.analytics.origin_detector import assess_origin
from steam_risk_audit.analytics.risk_engine import is_trusted_publisher, score_risk
from steam_risk_audit.analytics.text_normalizer import build_scan_corpus, normalize_text

__all__ = [
    "AuditPipeline",
    "PipelineResult",
    "PipelineState",
    "assess_anticheat",
    "assess_drm",
    "assess_origin",
    "build_scan_corpus",
    "is_trusted_publisher",
    "normalize_text",
    "score_risk",
]
