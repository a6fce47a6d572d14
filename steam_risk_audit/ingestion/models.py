"""
Data models for ingestion output.

OwnedTitle is one entry of a profile's public game list. DetailRecord is the
single normalized view of a store app-details payload; detectors only ever
consume this structure, never the raw payload.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

REQUIREMENT_PLATFORMS = ("pc", "mac", "linux")
REQUIREMENT_LEVELS = ("minimum", "recommended")


@dataclass(frozen=True)
class OwnedTitle:
    """A title from the owned-games listing, keyed by app_id."""

    app_id: int
    name: str


def _opt_str(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _str_tuple(value: Any) -> tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(str(v).strip() for v in value if isinstance(v, str) and v.strip())


def _requirement_blocks(data: dict[str, Any]) -> tuple[str, ...]:
    # The store sends [] instead of an object when a platform has no requirements
    blocks: list[str] = []
    for platform in REQUIREMENT_PLATFORMS:
        reqs = data.get(f"{platform}_requirements")
        if not isinstance(reqs, dict):
            continue
        for level in REQUIREMENT_LEVELS:
            text = _opt_str(reqs.get(level))
            if text is not None:
                blocks.append(text)
    return tuple(blocks)


@dataclass(frozen=True)
class DetailRecord:
    """
    Normalized store metadata for one app.

    Text fields keep their raw markup; the text normalizer cleans them when
    building the scan corpus. requirements holds minimum then recommended
    blocks for pc, mac and linux in that order.
    """

    app_id: int
    name: str | None = None
    developers: tuple[str, ...] = ()
    publishers: tuple[str, ...] = ()
    supported_languages: str | None = None
    drm_notice: str | None = None
    account_notice: str | None = None
    legal_notice: str | None = None
    short_description: str | None = None
    about_the_game: str | None = None
    detailed_description: str | None = None
    requirements: tuple[str, ...] = ()

    @classmethod
    def from_store_payload(cls, app_id: int, data: dict[str, Any]) -> "DetailRecord":
        """Build from the ``data`` object of an app-details response."""
        return cls(
            app_id=app_id,
            name=_opt_str(data.get("name")),
            developers=_str_tuple(data.get("developers")),
            publishers=_str_tuple(data.get("publishers")),
            supported_languages=_opt_str(data.get("supported_languages")),
            drm_notice=_opt_str(data.get("drm_notice")),
            account_notice=_opt_str(data.get("ext_user_account_notice")),
            legal_notice=_opt_str(data.get("legal_notice")),
            short_description=_opt_str(data.get("short_description")),
            about_the_game=_opt_str(data.get("about_the_game")),
            detailed_description=_opt_str(data.get("detailed_description")),
            requirements=_requirement_blocks(data),
        )
