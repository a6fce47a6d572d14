"""
Resilient HTTP fetcher for the read-only store and community endpoints.

Two separate retry strategies are composed in fetch():

- RateLimitPolicy: HTTP 429 is retried without bound. The wait comes from the
  server's Retry-After header (seconds or HTTP-date); otherwise exponential
  backoff min(90, 2^min(attempt+1, 6)) s plus up to 1 s of jitter. 429s never
  count against the transient budget.
- TransientRetryPolicy: connection errors, timeouts and any other HTTP error
  status are retried a bounded number of times with a fixed delay, then
  FetchError propagates.
"""

from __future__ import annotations

import math
import random
import time
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Callable, TypeVar

import requests

from steam_risk_audit import __version__
from steam_risk_audit.audit_logging import get_logger
from steam_risk_audit.core.exceptions import FetchError, RateLimited

logger = get_logger(__name__)

T = TypeVar("T")

USER_AGENT = f"steam-risk-audit/{__version__}"
REQUEST_TIMEOUT = 30
MAX_TRANSIENT_ATTEMPTS = 6
TRANSIENT_RETRY_DELAY_SEC = 5.0
MAX_BACKOFF_SEC = 90
MAX_BACKOFF_EXPONENT = 6
WAIT_SLICE_SEC = 1.0


def parse_retry_after(value: str | None, now: datetime | None = None) -> float | None:
    """
    Convert a Retry-After header to a non-negative wait in seconds.

    Accepts a seconds count or an HTTP-date. Returns None when absent or invalid.
    """
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    try:
        seconds = float(value)
    except ValueError:
        pass
    else:
        # nan and inf are not a usable delay
        return max(0.0, seconds) if math.isfinite(seconds) else None
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if when is None:
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    return max(0.0, (when - now).total_seconds())


def backoff_seconds(attempt: int, jitter: Callable[[], float] | None = None) -> float:
    """Exponential backoff for the attempt-th consecutive 429 (0-based)."""
    base = min(MAX_BACKOFF_SEC, 2 ** min(attempt + 1, MAX_BACKOFF_EXPONENT))
    extra = jitter() if jitter is not None else random.random()
    return base + extra


class RateLimitPolicy:
    """Unbounded wait-and-retry on RateLimited."""

    def __init__(
        self,
        sleep: Callable[[float], None] = time.sleep,
        jitter: Callable[[], float] | None = None,
        on_wait: Callable[[float], None] | None = None,
    ) -> None:
        self._sleep = sleep
        self._jitter = jitter
        self._on_wait = on_wait

    def wait_seconds(self, retry_after: float | None, attempt: int) -> float:
        if retry_after is not None:
            return retry_after
        return backoff_seconds(attempt, self._jitter)

    def wait(self, seconds: float) -> None:
        """Sleep in slices, reporting the remaining time before each slice."""
        remaining = seconds
        while remaining > 0:
            if self._on_wait is not None:
                self._on_wait(remaining)
            step = min(WAIT_SLICE_SEC, remaining)
            self._sleep(step)
            remaining -= step

    def run(self, func: Callable[[], T], uri: str = "") -> T:
        attempt = 0
        while True:
            try:
                return func()
            except RateLimited as e:
                wait = self.wait_seconds(e.retry_after, attempt)
                logger.warning(
                    "fetch_rate_limited",
                    uri=uri,
                    attempt=attempt + 1,
                    wait_sec=round(wait, 1),
                    server_directed=e.retry_after is not None,
                )
                self.wait(wait)
                attempt += 1


class TransientRetryPolicy:
    """Bounded retry with a fixed delay; raises FetchError when exhausted."""

    def __init__(
        self,
        max_attempts: int = MAX_TRANSIENT_ATTEMPTS,
        delay_sec: float = TRANSIENT_RETRY_DELAY_SEC,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.max_attempts = max(1, max_attempts)
        self.delay_sec = delay_sec
        self._sleep = sleep

    def run(self, func: Callable[[], T], uri: str = "") -> T:
        last_err: Exception | None = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                return func()
            except (requests.RequestException, FetchError) as e:
                last_err = e
                logger.warning(
                    "fetch_transient_error",
                    uri=uri,
                    attempt=attempt,
                    max_attempts=self.max_attempts,
                    error=str(e),
                )
                if attempt < self.max_attempts:
                    self._sleep(self.delay_sec)
        status_code = getattr(last_err, "status_code", None)
        logger.error("fetch_retries_exhausted", uri=uri, error=str(last_err))
        raise FetchError(
            f"Request failed after {self.max_attempts} attempts: {last_err}",
            uri=uri,
            status_code=status_code,
        ) from last_err


class ResilientFetcher:
    """
    GET with rate-limit-aware backoff and bounded transient retries.

    Every request carries a stable User-Agent and a per-attempt timeout.
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        timeout: float = REQUEST_TIMEOUT,
        rate_limit: RateLimitPolicy | None = None,
        transient: TransientRetryPolicy | None = None,
    ) -> None:
        self._session = session or requests.Session()
        self._timeout = timeout
        self._headers = {"User-Agent": USER_AGENT}
        self._rate_limit = rate_limit or RateLimitPolicy()
        self._transient = transient or TransientRetryPolicy()

    def _attempt(self, uri: str, params: dict[str, Any] | None) -> requests.Response:
        resp = self._session.get(uri, params=params, headers=self._headers, timeout=self._timeout)
        if resp.status_code == 429:
            raise RateLimited(parse_retry_after(resp.headers.get("Retry-After")))
        if resp.status_code >= 400:
            raise FetchError(f"HTTP {resp.status_code}", uri=uri, status_code=resp.status_code)
        return resp

    def fetch(self, uri: str, params: dict[str, Any] | None = None) -> requests.Response:
        """Return the response for uri or raise FetchError."""
        return self._transient.run(
            lambda: self._rate_limit.run(lambda: self._attempt(uri, params), uri),
            uri,
        )
