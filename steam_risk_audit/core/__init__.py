"""
Core utilities: shared exceptions and cross-cutting concerns used across
ingestion, analytics, and reporting.
"""
