"""
Report writers.

Both outputs consume the same sorted rows and the same fixed column order:
write_csv_report() for plain delimited export, write_html_report() for a
single self-contained table to open in a browser. Write failures raise
PersistenceError; callers log them as warnings.
"""

from __future__ import annotations

import csv
import html
from pathlib import Path
from typing import Any, Sequence

from steam_risk_audit.analytics.models import ReportRow
from steam_risk_audit.audit_logging import get_logger
from steam_risk_audit.core.exceptions import PersistenceError

logger = get_logger(__name__)

REPORT_COLUMNS: tuple[str, ...] = (
    "Score",
    "Name",
    "AppID",
    "Strong Origin",
    "Chinese Language",
    "Chinese Full Audio",
    "Origin Evidence",
    "DRM Notice",
    "Third-Party Account",
    "DRM Keywords",
    "Anti-Cheat",
    "Kernel-Level Anti-Cheat",
    "Anti-Cheat Keywords",
    "Developers",
    "Publishers",
    "Trusted Publisher",
    "Risk Factors",
    "Store Page",
)

LIST_SEPARATOR = "; "


def _flag(value: bool | None) -> str:
    if value is None:
        return ""
    return "Yes" if value else "No"


def row_to_record(row: ReportRow) -> dict[str, Any]:
    """Flatten a row into REPORT_COLUMNS. Disabled detectors leave their cells blank."""
    origin, drm, ac = row.origin, row.drm, row.anticheat
    return {
        "Score": row.risk.score,
        "Name": row.name,
        "AppID": row.app_id,
        "Strong Origin": _flag(origin.is_strong_origin if origin else None),
        "Chinese Language": _flag(origin.weak_language_signal if origin else None),
        "Chinese Full Audio": _flag(origin.full_audio_signal if origin else None),
        "Origin Evidence": origin.evidence if origin else "",
        "DRM Notice": (drm.notice or "") if drm else "",
        "Third-Party Account": (drm.account_vendor or "") if drm else "",
        "DRM Keywords": LIST_SEPARATOR.join(drm.drm_vendors) if drm else "",
        "Anti-Cheat": (ac.summary or "") if ac else "",
        "Kernel-Level Anti-Cheat": _flag(ac.kernel_level if ac else None),
        "Anti-Cheat Keywords": LIST_SEPARATOR.join(ac.keywords) if ac else "",
        "Developers": LIST_SEPARATOR.join(row.developers),
        "Publishers": LIST_SEPARATOR.join(row.publishers),
        "Trusted Publisher": _flag(row.is_trusted_publisher),
        "Risk Factors": LIST_SEPARATOR.join(row.risk.factors),
        "Store Page": row.store_url,
    }


def write_csv_report(rows: Sequence[ReportRow], path: Path) -> Path:
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", newline="", encoding="utf-8") as f:
            w = csv.DictWriter(f, fieldnames=list(REPORT_COLUMNS))
            w.writeheader()
            for row in rows:
                w.writerow(row_to_record(row))
    except OSError as e:
        raise PersistenceError(f"Could not write CSV report {path}: {e}") from e
    logger.info("report_written", format="csv", path=str(path), rows=len(rows))
    return path


def _cell(column: str, value: Any) -> str:
    text = html.escape(str(value))
    if column == "Store Page" and value:
        return f'<td><a href="{text}">store</a></td>'
    return f"<td>{text}</td>"


def render_html(rows: Sequence[ReportRow], title: str = "Steam library risk audit") -> str:
    head = "".join(f"<th>{html.escape(c)}</th>" for c in REPORT_COLUMNS)
    body = []
    for row in rows:
        record = row_to_record(row)
        body.append("<tr>" + "".join(_cell(c, record[c]) for c in REPORT_COLUMNS) + "</tr>")
    return (
        "<!DOCTYPE html>\n"
        '<html><head><meta charset="utf-8">'
        f"<title>{html.escape(title)}</title>"
        "<style>table{border-collapse:collapse;font-family:sans-serif;font-size:13px}"
        "th,td{border:1px solid #ccc;padding:4px 6px;vertical-align:top}"
        "th{background:#eee;position:sticky;top:0}</style></head><body>"
        f"<h1>{html.escape(title)}</h1>"
        f"<table><thead><tr>{head}</tr></thead><tbody>\n"
        + "\n".join(body)
        + "\n</tbody></table></body></html>\n"
    )


def write_html_report(rows: Sequence[ReportRow], path: Path) -> Path:
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(render_html(rows), encoding="utf-8")
    except OSError as e:
        raise PersistenceError(f"Could not write HTML report {path}: {e}") from e
    logger.info("report_written", format="html", path=str(path), rows=len(rows))
    return path
