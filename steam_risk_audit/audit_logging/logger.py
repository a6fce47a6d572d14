"""
Structured logging for audit runs: timestamp, event_type, app_id.

structlog writes one line per event to stderr, so reports and the CLI summary
stay on stdout. LOG_LEVEL and LOG_FORMAT (json or console) are read from the
environment or the project .env once, at import.

No steam_risk_audit imports: config imports this package.
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import structlog
from dotenv import load_dotenv

# Project root: audit_logging is steam_risk_audit/audit_logging/, root is 2 levels up
_ENV_PATH = Path(__file__).resolve().parent.parent.parent / ".env"


def read_log_settings(env_path: Path | None = None) -> tuple[str, str]:
    """
    Return (LOG_LEVEL, LOG_FORMAT) after loading the project .env.

    Loaded here rather than through config.env, which imports this package.
    JSON output by default; LOG_FORMAT=console for local runs.
    """
    load_dotenv(env_path or _ENV_PATH)
    level = (os.getenv("LOG_LEVEL") or "INFO").strip().upper()
    fmt = (os.getenv("LOG_FORMAT") or "json").strip().lower()
    return level, fmt


LOG_LEVEL, LOG_FORMAT = read_log_settings()


def _add_timestamp(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Ensure timestamp is always present (ISO 8601)."""
    if "timestamp" not in event_dict:
        event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def _normalize_event(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Rename structlog 'event' to event_type; keep message if present."""
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    if "message" not in event_dict and "event_type" in event_dict:
        event_dict["message"] = str(event_dict["event_type"])
    return event_dict


def configure_structlog(level: str = LOG_LEVEL, fmt: str = LOG_FORMAT) -> None:
    """Configure structlog: renderer, timestamp, level, event_type. Runs once at import."""
    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _add_timestamp,
        _normalize_event,
    ]
    if fmt == "json":
        shared_processors.append(structlog.processors.JSONRenderer())
    else:
        shared_processors.append(
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
        )
    structlog.configure(
        processors=shared_processors,
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level, logging.INFO)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    configure_structlog()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Return a structured logger for the given module name.

    Log with event_type (first arg) and optional app_id etc.:
        logger = get_logger(__name__)
        logger.info("title_scored", app_id=570, score=3)
    """
    return structlog.get_logger(name).bind(logger=name)


def bind_app(app_id: int) -> structlog.BoundLogger:
    """Return a logger with app_id bound to all subsequent log calls."""
    return get_logger("steam_risk_audit").bind(app_id=app_id)
