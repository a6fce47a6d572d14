"""
Static rule tables for the detectors and scorer.

Keyword lists, regex pattern tables, the anti-cheat vendor map, the trusted
publisher allowlist, and per-title DRM overrides. Loaded once per process by
load_rules() into an immutable RuleTables and passed explicitly to every
detector call.

Patterns are unanchored substring matches on purpose: recall over precision.
Short tokens such as "vac" or "tages" also match inside longer words.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterable, Mapping

from steam_risk_audit.audit_logging import get_logger

logger = get_logger(__name__)

# ---------------------------------------------------------------------------
# Origin: developer / publisher name keywords (lowercase)
# ---------------------------------------------------------------------------
ORIGIN_KEYWORDS: tuple[str, ...] = (
    "tencent",
    "netease",
    "mihoyo",
    "hoyoverse",
    "perfect world",
    "bilibili",
    "seasun",
    "kingsoft",
    "lilith games",
    "papergames",
    "hypergryph",
    "gryphline",
    "kuro games",
    "game science",
    "24 entertainment",
    "x.d. network",
    "xd inc",
    "37games",
    "snail games",
    "giant network",
    "shengqu",
    "bytedance",
    "nuverse",
    "timi studio",
    "lightspeed studios",
    "everstone",
    "leiting",
    "funplus",
    "century games",
    "yostar",
)

# Titles known to ship from the origin above even when the store lists a
# regional publisher (lowercase substrings)
KNOWN_TITLES: tuple[str, ...] = (
    "genshin impact",
    "honkai",
    "zenless zone zero",
    "wuthering waves",
    "naraka: bladepoint",
    "tower of fantasy",
    "arknights",
    "black myth: wukong",
    "punishing: gray raven",
    "once human",
    "where winds meet",
)

CHINESE_LANGUAGE_MARKER = re.compile(r"(?:simplified |traditional |s|t)?chinese", re.IGNORECASE)
CHINESE_FULL_AUDIO_MARKER = re.compile(r"(?:simplified |traditional |s|t)?chinese\*", re.IGNORECASE)

# ---------------------------------------------------------------------------
# DRM: (pattern, vendor label), scanned in order, all matches kept
# ---------------------------------------------------------------------------
DRM_PATTERNS: tuple[tuple[str, str], ...] = (
    (r"denuvo", "Denuvo"),
    (r"securom", "SecuROM"),
    (r"vmprotect", "VMProtect"),
    (r"arxan|guardit", "Arxan"),
    (r"starforce", "StarForce"),
    (r"tages", "TAGES"),
    (r"third[- ]party drm", "DRM (unspecified)"),
    (r"\bdrm\b", "DRM (unspecified)"),
    (r"online activation|requires? activation|activation required", "Online activation"),
)

# Third-party account / launcher: (pattern, vendor label), first match wins
ACCOUNT_PATTERNS: tuple[tuple[str, str], ...] = (
    (r"ubisoft connect|uplay|ubisoft account", "Ubisoft Connect"),
    (r"\bea app\b|\bea account|origin client|\borigin account", "EA app"),
    (r"rockstar games launcher|social club", "Rockstar Games Launcher"),
    (r"battle\.net", "Battle.net"),
    (r"epic games account|epic online services", "Epic Games account"),
    (r"2k account", "2K account"),
    (r"bethesda\.net", "Bethesda.net"),
    (r"microsoft account|xbox live", "Microsoft account"),
    (r"playstation network|\bpsn\b", "PlayStation Network"),
    (r"square enix account", "Square Enix account"),
    (r"nexon account", "Nexon account"),
    (r"hoyoverse account|mihoyo account", "HoYoverse account"),
    (r"third[- ]party account", "Third-party account (unspecified)"),
)

# ---------------------------------------------------------------------------
# Anti-cheat: lowercase keyword -> (vendor label, kernel level)
# ---------------------------------------------------------------------------
ANTICHEAT_KEYWORDS: dict[str, tuple[str, bool]] = {
    "easy anti-cheat": ("Easy Anti-Cheat", True),
    "easyanticheat": ("Easy Anti-Cheat", True),
    "battleye": ("BattlEye", True),
    "vanguard": ("Riot Vanguard", True),
    "ricochet": ("Ricochet", True),
    "xigncode": ("XIGNCODE3", True),
    "nprotect": ("nProtect GameGuard", True),
    "gameguard": ("nProtect GameGuard", True),
    "mhyprot": ("mhyprot", True),
    "anti-cheat expert": ("ACE (Anti-Cheat Expert)", True),
    "ace anti-cheat": ("ACE (Anti-Cheat Expert)", True),
    "equ8": ("EQU8", True),
    "faceit": ("FACEIT Anti-Cheat", True),
    "javelin": ("EA Javelin", True),
    "hackshield": ("AhnLab HackShield", True),
    "punkbuster": ("PunkBuster", False),
    "fairfight": ("FairFight", False),
    "valve anti-cheat": ("Valve Anti-Cheat", False),
    "vac": ("Valve Anti-Cheat", False),
}

GENERIC_KERNEL_PATTERN = r"kernel[- ]?(?:mode|level)|ring[- ]?0\b"
GENERIC_ANTICHEAT_PATTERN = r"anti[- ]?cheat"
GENERIC_KERNEL_KEYWORD = "kernel-mode (generic)"
GENERIC_ANTICHEAT_KEYWORD = "anti-cheat (generic)"

# ---------------------------------------------------------------------------
# Trusted publishers: exact, case-insensitive name match
# ---------------------------------------------------------------------------
TRUSTED_PUBLISHERS: frozenset[str] = frozenset({
    "valve",
    "cd projekt red",
    "cd projekt",
    "devolver digital",
    "paradox interactive",
    "team17",
    "annapurna interactive",
    "klei entertainment",
    "supergiant games",
    "re-logic",
    "larian studios",
    "raw fury",
    "coffee stain publishing",
})

# Per-title manual DRM notices; takes precedence over all scanning
DRM_OVERRIDES: dict[int, str] = {
    271590: "Rockstar Games Launcher and Social Club account required",
    1174180: "Rockstar Games Launcher and Social Club account required",
}


def _compile(pairs: Iterable[tuple[str, str]]) -> tuple[tuple[re.Pattern[str], str], ...]:
    return tuple((re.compile(pattern, re.IGNORECASE), label) for pattern, label in pairs)


@dataclass(frozen=True)
class RuleTables:
    """Immutable detector configuration. Build with load_rules()."""

    origin_keywords: tuple[str, ...] = ORIGIN_KEYWORDS
    known_titles: tuple[str, ...] = KNOWN_TITLES
    trusted_publishers: frozenset[str] = TRUSTED_PUBLISHERS
    drm_patterns: tuple[tuple[re.Pattern[str], str], ...] = field(
        default_factory=lambda: _compile(DRM_PATTERNS)
    )
    account_patterns: tuple[tuple[re.Pattern[str], str], ...] = field(
        default_factory=lambda: _compile(ACCOUNT_PATTERNS)
    )
    anticheat_keywords: Mapping[str, tuple[str, bool]] = field(
        default_factory=lambda: MappingProxyType(dict(ANTICHEAT_KEYWORDS))
    )
    generic_kernel: re.Pattern[str] = field(
        default_factory=lambda: re.compile(GENERIC_KERNEL_PATTERN, re.IGNORECASE)
    )
    generic_anticheat: re.Pattern[str] = field(
        default_factory=lambda: re.compile(GENERIC_ANTICHEAT_PATTERN, re.IGNORECASE)
    )
    drm_overrides: Mapping[int, str] = field(
        default_factory=lambda: MappingProxyType(dict(DRM_OVERRIDES))
    )


def _load_override_file(path: Path) -> dict[int, str]:
    """Load {"<app id>": "notice"} from JSON. Returns empty dict on failure."""
    if not path.is_file():
        logger.debug("drm_overrides_missing", path=str(path))
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            data: Any = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning("drm_overrides_load_failed", path=str(path), error=str(e))
        return {}
    if not isinstance(data, dict):
        logger.warning("drm_overrides_not_object", path=str(path))
        return {}
    out: dict[int, str] = {}
    for key, notice in data.items():
        try:
            app_id = int(key)
        except (TypeError, ValueError):
            continue
        if isinstance(notice, str) and notice.strip():
            out[app_id] = notice.strip()
    return out


def load_rules(
    extra_origin_keywords: Iterable[str] = (),
    drm_overrides_path: Path | None = None,
) -> RuleTables:
    """
    Build the rule tables for one run.

    Extra origin keywords are lowercased and appended after the built-in
    list (duplicates dropped). A DRM override file merges over the built-in
    overrides.
    """
    keywords = list(ORIGIN_KEYWORDS)
    for kw in extra_origin_keywords:
        kw = (kw or "").strip().lower()
        if kw and kw not in keywords:
            keywords.append(kw)

    overrides = dict(DRM_OVERRIDES)
    if drm_overrides_path is not None:
        overrides.update(_load_override_file(Path(drm_overrides_path)))

    rules = RuleTables(
        origin_keywords=tuple(keywords),
        drm_overrides=MappingProxyType(overrides),
    )
    logger.debug(
        "rules_loaded",
        origin_keywords=len(rules.origin_keywords),
        drm_overrides=len(rules.drm_overrides),
    )
    return rules
