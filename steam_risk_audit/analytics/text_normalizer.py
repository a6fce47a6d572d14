"""
Text normalizer: markup-bearing store fields -> plain scan text.

normalize_text() turns line-break tags into newlines, strips every other tag,
decodes HTML entities and collapses whitespace. build_scan_corpus() joins the
free-text fields of a DetailRecord, in a fixed order, into the single string
all detectors scan.
"""

from __future__ import annotations

import html
import re

from steam_risk_audit.ingestion.models import DetailRecord

CORPUS_SEPARATOR = "\n"

_BREAK_TAG = re.compile(r"<\s*br\s*/?\s*>", re.IGNORECASE)
_ANY_TAG = re.compile(r"<[^>]*>")
_NEWLINE_RUN = re.compile(r"\s*\n\s*")
_SPACE_RUN = re.compile(r"[^\S\n]+")


def normalize_text(raw: str | None) -> str | None:
    """Return cleaned text, or None when nothing but markup/whitespace remains."""
    if not raw or not raw.strip():
        return None
    text = _BREAK_TAG.sub("\n", raw)
    text = _ANY_TAG.sub("", text)
    text = html.unescape(text)
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _SPACE_RUN.sub(" ", text)
    text = _NEWLINE_RUN.sub("\n", text)
    text = text.strip()
    return text or None


def corpus_fields(record: DetailRecord) -> tuple[str | None, ...]:
    return (
        record.drm_notice,
        record.account_notice,
        record.legal_notice,
        record.short_description,
        record.about_the_game,
        record.detailed_description,
        *record.requirements,
    )


def build_scan_corpus(record: DetailRecord) -> str:
    """Join the normalized free-text fields of record; absent fields skipped."""
    parts = []
    for raw in corpus_fields(record):
        clean = normalize_text(raw)
        if clean is not None:
            parts.append(clean)
    return CORPUS_SEPARATOR.join(parts)
