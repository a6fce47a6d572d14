"""
Ingestion layer: resilient fetching, the app-details cache, and the public
profile client.
"""

from steam_risk_audit.ingestion.detail_cache import DetailCacheStore, DetailLookup
from steam_risk_audit.ingestion.fetcher import ResilientFetcher
from steam_risk_audit.ingestion.models import DetailRecord, OwnedTitle
from steam_risk_audit.ingestion.steam_store import SteamCommunityClient, dedupe_owned_titles

__all__ = [
    "DetailCacheStore",
    "DetailLookup",
    "DetailRecord",
    "OwnedTitle",
    "ResilientFetcher",
    "SteamCommunityClient",
    "dedupe_owned_titles",
]
