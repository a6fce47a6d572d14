"""
Tests for the community client: profile XML, owned-games XML, dedupe.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from conftest import FakeResponse
from steam_risk_audit.core.exceptions import IdentityResolutionError, ProfileUnavailableError
from steam_risk_audit.ingestion.models import OwnedTitle
from steam_risk_audit.ingestion.steam_store import (
    SteamCommunityClient,
    dedupe_owned_titles,
    parse_games_xml,
    parse_profile_xml,
)

PROFILE_XML = """<?xml version="1.0" encoding="UTF-8" standalone="yes"?>
<profile><steamID64>76561197960287930</steamID64><steamID><![CDATA[Rabscuttle]]></steamID></profile>"""

GAMES_XML = """<?xml version="1.0" encoding="UTF-8" standalone="yes"?>
<gamesList>
  <steamID64>76561197960287930</steamID64>
  <games>
    <game><appID>570</appID><name><![CDATA[Dota 2]]></name></game>
    <game><appID>440</appID><name><![CDATA[Team Fortress 2]]></name></game>
    <game><appID>570</appID><name><![CDATA[Dota 2 (again)]]></name></game>
    <game><appID>abc</appID><name>Broken</name></game>
    <game><appID>10</appID></game>
  </games>
</gamesList>"""

EMPTY_GAMES_XML = "<gamesList><steamID64>1</steamID64><games></games></gamesList>"
PRIVATE_XML = "<gamesList><error><![CDATA[This profile is private.]]></error></gamesList>"


def _client(*bodies: str):
    fetcher = MagicMock()
    fetcher.fetch.side_effect = [FakeResponse(text=b) for b in bodies]
    return SteamCommunityClient(fetcher, base_url="https://community.example/"), fetcher


def test_parse_profile_xml():
    assert parse_profile_xml(PROFILE_XML, "rabscuttle") == "76561197960287930"


@pytest.mark.parametrize(
    "body",
    [
        "<response><error><![CDATA[The specified profile could not be found.]]></error></response>",
        "<profile><steamID>nobody</steamID></profile>",
        "<html>not xml",
    ],
)
def test_parse_profile_xml_failures(body):
    with pytest.raises(IdentityResolutionError):
        parse_profile_xml(body, "nobody")


def test_parse_games_xml_keeps_order_and_skips_bad_ids():
    titles = parse_games_xml(GAMES_XML)
    assert [t.app_id for t in titles] == [570, 440, 570, 10]
    assert titles[-1].name == "App 10"


def test_parse_games_xml_private_profile():
    with pytest.raises(ProfileUnavailableError):
        parse_games_xml(PRIVATE_XML)


def test_dedupe_first_occurrence_wins():
    titles = [OwnedTitle(1, "a"), OwnedTitle(2, "b"), OwnedTitle(1, "a2")]
    assert dedupe_owned_titles(titles) == [OwnedTitle(1, "a"), OwnedTitle(2, "b")]


def test_resolve_profile_id_requests_xml_view():
    client, fetcher = _client(PROFILE_XML)
    assert client.resolve_profile_id("rabscuttle") == "76561197960287930"
    fetcher.fetch.assert_called_once_with("https://community.example/id/rabscuttle/", params={"xml": 1})


def test_get_owned_titles_dedupes():
    client, fetcher = _client(GAMES_XML)
    titles = client.get_owned_titles("76561197960287930")
    assert [t.name for t in titles] == ["Dota 2", "Team Fortress 2", "App 10"]
    fetcher.fetch.assert_called_once_with(
        "https://community.example/profiles/76561197960287930/games/",
        params={"tab": "all", "xml": 1},
    )


def test_get_owned_titles_empty_list_is_unavailable():
    client, _ = _client(EMPTY_GAMES_XML)
    with pytest.raises(ProfileUnavailableError) as exc:
        client.get_owned_titles("1")
    assert exc.value.code == "profile_private_or_empty"
