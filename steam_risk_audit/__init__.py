"""
Steam Risk Audit: risk assessment for a public Steam game library.

Reads a public owned-games listing, fetches store metadata per title,
and scores each title on publisher origin, DRM / third-party account
requirements, and anti-cheat invasiveness. Modular architecture with clear
separation between ingestion, analytics, and reporting.
"""

__version__ = "0.1.0"
