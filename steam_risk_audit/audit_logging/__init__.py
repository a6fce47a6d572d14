"""
Structured logging for Steam Risk Audit.

JSON logs with timestamp, app_id, event_type.
Use get_logger() in all modules for aggregation-friendly output.
"""

from steam_risk_audit.audit_logging.logger import bind_app, get_logger

__all__ = ["get_logger", "bind_app"]
