"""
Application-level exceptions.

Each error carries a short machine-readable ``code`` so the CLI and logs can
report failures consistently. Rate limiting and per-item parse failures are
recoverable; identity, validation and exhausted fetch errors are fatal for the
run; persistence errors are reported as warnings.
"""

from __future__ import annotations


class SteamRiskAuditError(Exception):
    """Base class for all audit errors."""

    code = "audit_error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code)
        self.message = message or self.code


class FetchError(SteamRiskAuditError):
    """A request failed and the bounded retry budget is exhausted."""

    code = "fetch_failed"

    def __init__(self, message: str = "", uri: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message)
        self.uri = uri
        self.status_code = status_code


class RateLimited(SteamRiskAuditError):
    """HTTP 429 from the remote API. Always retried, never escapes fetch()."""

    code = "rate_limited"

    def __init__(self, retry_after: float | None = None) -> None:
        super().__init__("rate limited")
        self.retry_after = retry_after


class ParseError(SteamRiskAuditError):
    """A response could not be turned into a usable record."""

    code = "parse_error"


class IdentityResolutionError(SteamRiskAuditError):
    """The profile handle or id could not be resolved to a public profile."""

    code = "identity_resolution_failed"


class ProfileUnavailableError(IdentityResolutionError):
    """The profile's game list is private or empty."""

    code = "profile_private_or_empty"


class PersistenceError(SteamRiskAuditError):
    """Writing the cache or a report failed."""

    code = "persistence_failed"


class ValidationError(SteamRiskAuditError):
    """Run parameters are malformed or conflicting."""

    code = "invalid_parameters"
