"""
Configuration management for Steam Risk Audit.

Loads run settings from environment variables and optional .env, and the
static rule tables used by the detectors.
"""

from steam_risk_audit.config.rules import RuleTables, load_rules  # noqa: F401
from steam_risk_audit.config.settings import RunSettings, get_settings  # noqa: F401

__all__ = ["RunSettings", "RuleTables", "get_settings", "load_rules"]
