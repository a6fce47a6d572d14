"""
Detail cache store: app id -> store metadata, cache-first.

A lookup for an id already in the store never touches the network; a miss
fetches app details once and inserts the record only when the store reports
success. Failed or malformed responses are not cached, so a later lookup in
the same run fetches again.

The store persists to a single JSON document keyed by the string form of the
app id, holding the raw ``data`` payloads. save() writes a temp file next to
the destination and replaces it in one step, retrying both steps with
backoff.
"""

from __future__ import annotations

import json
import os
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

from steam_risk_audit.audit_logging import get_logger
from steam_risk_audit.config.env import get_store_api_url, get_store_locale
from steam_risk_audit.core.exceptions import ParseError, PersistenceError
from steam_risk_audit.ingestion.fetcher import ResilientFetcher
from steam_risk_audit.ingestion.models import DetailRecord

logger = get_logger(__name__)

SAVE_ATTEMPTS = 5
SAVE_BACKOFF_SEC = 0.2


@dataclass(frozen=True)
class DetailLookup:
    """Result of one cache lookup; fetched is True only for a live fetch."""

    record: DetailRecord | None
    fetched: bool


def parse_app_details(app_id: int, body: str) -> tuple[DetailRecord, dict[str, Any]]:
    """
    Parse an app-details response body.

    Returns (record, raw data payload). Raises ParseError for invalid JSON,
    a missing per-id entry, a false success flag, or a non-object payload.
    """
    try:
        payload = json.loads(body)
    except ValueError as e:
        raise ParseError(f"app {app_id}: invalid JSON: {e}") from e
    if not isinstance(payload, dict):
        raise ParseError(f"app {app_id}: response is not an object")
    item = payload.get(str(app_id))
    if not isinstance(item, dict):
        raise ParseError(f"app {app_id}: no entry in response")
    if item.get("success") is not True:
        raise ParseError(f"app {app_id}: success flag missing or false")
    data = item.get("data")
    if not isinstance(data, dict):
        raise ParseError(f"app {app_id}: data is not an object")
    return DetailRecord.from_store_payload(app_id, data), data


class DetailCacheStore:
    """Owns every DetailRecord fetched during a run (and across runs via save/load)."""

    def __init__(
        self,
        fetcher: ResilientFetcher,
        details_url: str | None = None,
        locale: tuple[str, str] | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._fetcher = fetcher
        self._details_url = details_url or f"{get_store_api_url()}/appdetails"
        self._language, self._country = locale or get_store_locale()
        self._sleep = sleep
        self._records: dict[int, DetailRecord] = {}
        self._payloads: dict[int, dict[str, Any]] = {}

    def __contains__(self, app_id: object) -> bool:
        return app_id in self._records

    def __len__(self) -> int:
        return len(self._records)

    def _insert(self, app_id: int, record: DetailRecord, data: dict[str, Any]) -> None:
        # Insert-once: a stored record is never replaced
        if app_id in self._records:
            return
        self._records[app_id] = record
        self._payloads[app_id] = data

    def lookup(self, app_id: int) -> DetailLookup:
        """Return the cached record, or fetch it. FetchError propagates."""
        cached = self._records.get(app_id)
        if cached is not None:
            return DetailLookup(cached, fetched=False)

        resp = self._fetcher.fetch(
            self._details_url,
            params={"appids": app_id, "l": self._language, "cc": self._country},
        )
        try:
            record, data = parse_app_details(app_id, resp.text)
        except ParseError as e:
            logger.warning("detail_parse_failed", app_id=app_id, error=e.message)
            return DetailLookup(None, fetched=True)
        self._insert(app_id, record, data)
        logger.debug("detail_fetched", app_id=app_id)
        return DetailLookup(record, fetched=True)

    def get_details(self, app_id: int) -> DetailRecord | None:
        return self.lookup(app_id).record

    def load(self, path: Path) -> int:
        """
        Populate from a cache file. Missing file is a no-op; a corrupt file
        leaves the store empty. Returns the number of records loaded.
        """
        path = Path(path)
        if not path.is_file():
            logger.debug("detail_cache_missing", path=str(path))
            return 0
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("detail_cache_load_failed", path=str(path), error=str(e))
            return 0
        if not isinstance(data, dict):
            logger.warning("detail_cache_not_object", path=str(path))
            return 0
        loaded = 0
        for key, payload in data.items():
            try:
                app_id = int(key)
            except (TypeError, ValueError):
                continue
            if not isinstance(payload, dict):
                continue
            self._insert(app_id, DetailRecord.from_store_payload(app_id, payload), payload)
            loaded += 1
        logger.info("detail_cache_loaded", path=str(path), records=loaded)
        return loaded

    def _write_temp(self, path: Path, doc: dict[str, Any]) -> str:
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(doc, f, ensure_ascii=False)
        except BaseException:
            _remove_quietly(tmp_name)
            raise
        return tmp_name

    def _retry(self, action: Callable[[], Any], what: str, path: Path) -> Any:
        last_err: OSError | None = None
        for attempt in range(SAVE_ATTEMPTS):
            try:
                return action()
            except OSError as e:
                last_err = e
                backoff = SAVE_BACKOFF_SEC * (2 ** attempt)
                logger.warning(
                    "detail_cache_save_retry",
                    step=what,
                    path=str(path),
                    attempt=attempt + 1,
                    backoff_sec=round(backoff, 2),
                    error=str(e),
                )
                if attempt < SAVE_ATTEMPTS - 1:
                    self._sleep(backoff)
        raise PersistenceError(f"Could not {what} cache file {path}: {last_err}") from last_err

    def save(self, path: Path) -> None:
        """Atomically write the store to path. Raises PersistenceError."""
        path = Path(path)
        doc = {str(app_id): payload for app_id, payload in self._payloads.items()}
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PersistenceError(f"Could not create cache directory {path.parent}: {e}") from e
        tmp_name = self._retry(lambda: self._write_temp(path, doc), "write", path)
        try:
            self._retry(lambda: os.replace(tmp_name, path), "replace", path)
        except PersistenceError:
            _remove_quietly(tmp_name)
            raise
        logger.info("detail_cache_saved", path=str(path), records=len(doc))


def _remove_quietly(name: str) -> None:
    try:
        os.unlink(name)
    except OSError:
        pass
