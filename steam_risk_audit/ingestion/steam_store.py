"""
Steam community client: profile resolution and the public owned-games list.

Uses the public XML views of the community site (no API key), so only data a
visitor could see on the profile page is read:

- /id/<handle>/?xml=1 -> <steamID64>
- /profiles/<id>/games/?tab=all&xml=1 -> <games><game><appID/><name/></game>...
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Iterable

from steam_risk_audit.audit_logging import get_logger
from steam_risk_audit.config.env import get_community_url
from steam_risk_audit.core.exceptions import IdentityResolutionError, ProfileUnavailableError
from steam_risk_audit.ingestion.fetcher import ResilientFetcher
from steam_risk_audit.ingestion.models import OwnedTitle

logger = get_logger(__name__)


def _parse_xml(body: str, what: str) -> ET.Element:
    try:
        return ET.fromstring(body)
    except ET.ParseError as e:
        raise IdentityResolutionError(f"Unreadable {what} response: {e}") from e


def parse_profile_xml(body: str, handle: str) -> str:
    """Extract the SteamID64 from a profile XML document."""
    root = _parse_xml(body, "profile")
    error = (root.findtext("error") or "").strip()
    if error:
        raise IdentityResolutionError(f"Profile '{handle}' could not be resolved: {error}")
    steam_id = (root.findtext("steamID64") or "").strip()
    if not steam_id.isdigit():
        raise IdentityResolutionError(f"Profile '{handle}' is not publicly discoverable")
    return steam_id


def parse_games_xml(body: str) -> list[OwnedTitle]:
    """Extract (app id, name) pairs in listing order. Entries without a numeric id are skipped."""
    root = _parse_xml(body, "games list")
    error = (root.findtext("error") or "").strip()
    if error:
        raise ProfileUnavailableError(f"profile private or empty: {error}")
    titles: list[OwnedTitle] = []
    for game in root.iter("game"):
        raw_id = (game.findtext("appID") or "").strip()
        if not raw_id.isdigit() or int(raw_id) <= 0:
            continue
        name = (game.findtext("name") or "").strip()
        titles.append(OwnedTitle(app_id=int(raw_id), name=name or f"App {raw_id}"))
    return titles


def dedupe_owned_titles(titles: Iterable[OwnedTitle]) -> list[OwnedTitle]:
    """Collapse duplicate app ids; first occurrence wins, order preserved."""
    seen: set[int] = set()
    out: list[OwnedTitle] = []
    for title in titles:
        if title.app_id in seen:
            continue
        seen.add(title.app_id)
        out.append(title)
    return out


class SteamCommunityClient:
    """Read-only access to a public profile."""

    def __init__(self, fetcher: ResilientFetcher, base_url: str | None = None) -> None:
        self._fetcher = fetcher
        self._base_url = (base_url or get_community_url()).rstrip("/")

    def resolve_profile_id(self, handle: str) -> str:
        """Map a vanity handle to its SteamID64. Raises IdentityResolutionError."""
        resp = self._fetcher.fetch(f"{self._base_url}/id/{handle}/", params={"xml": 1})
        steam_id = parse_profile_xml(resp.text, handle)
        logger.info("profile_resolved", handle=handle, steam_id=steam_id)
        return steam_id

    def get_owned_titles(self, steam_id: str) -> list[OwnedTitle]:
        """Return the deduplicated owned-games list. Raises ProfileUnavailableError if empty."""
        resp = self._fetcher.fetch(
            f"{self._base_url}/profiles/{steam_id}/games/",
            params={"tab": "all", "xml": 1},
        )
        raw = parse_games_xml(resp.text)
        if not raw:
            raise ProfileUnavailableError("profile private or empty")
        titles = dedupe_owned_titles(raw)
        logger.info(
            "owned_titles_listed",
            steam_id=steam_id,
            titles=len(titles),
            duplicates=len(raw) - len(titles),
        )
        return titles
