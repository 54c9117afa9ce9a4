"""Tests for the StatsPlus endpoint catalog."""

import asyncio

import pytest

from conftest import BASE_URL, POLL_URL
from statsplus_mcp.agents.data_fetcher import DataFetcherAgent
from statsplus_mcp.agents.ratings_job import InvalidJobHandle
from statsplus_mcp.agents.transport import HttpError
from statsplus_mcp.settings import Settings

PLAYERS_CSV = (
    "ID,First Name,Last Name,Team ID,Parent Team ID\n"
    "1,Mike,Trout,10,0\n"
    "2,Troy,Tulowitzki,21,10\n"
    "3,Jose,Ramirez,30,0\n"
)

CONTRACTS_CSV = (
    "player_id,contract_team_id,salary0\n"
    "1,10,35000000\n"
    "2,10,500000\n"
    "3,30,17000000\n"
)


@pytest.mark.parametrize(
    "method,path",
    [
        ("get_player_batting_stats", "/playerbatstatsv2/"),
        ("get_player_fielding_stats", "/playerfieldstatsv2/"),
        ("get_player_pitching_stats", "/playerpitchstatsv2/"),
    ],
)
def test_player_stats_endpoints_pass_params(fetcher, session, method, path):
    session.queue("pid,split_id,avg\n7,2,0.301\n")

    rows = asyncio.run(getattr(fetcher, method)(year=2024, pid=7, split=2))

    url = session.urls[0]
    assert url.startswith(f"{BASE_URL}{path}?")
    for fragment in ("year=2024", "pid=7", "split=2"):
        assert fragment in url
    assert rows == [{"pid": 7, "split_id": 2, "avg": 0.301}]


def test_player_stats_without_params_has_no_query(fetcher, session):
    session.queue("")

    asyncio.run(fetcher.get_player_batting_stats())

    assert session.urls == [f"{BASE_URL}/playerbatstatsv2/"]


@pytest.mark.parametrize(
    "method,path",
    [("get_team_batting_stats", "/teambatstats/"), ("get_team_pitching_stats", "/teampitchstats/")],
)
def test_team_stats_endpoints(fetcher, session, method, path):
    session.queue("")

    asyncio.run(getattr(fetcher, method)(year=2058, split=1))

    assert session.urls == [f"{BASE_URL}{path}?year=2058&split=1"]


@pytest.mark.parametrize(
    "method,path",
    [
        ("get_teams", "/teams/"),
        ("get_game_history", "/gamehistory/"),
        ("get_contract_extensions", "/contractextension/"),
    ],
)
def test_parameterless_endpoints(fetcher, session, method, path):
    session.queue("a\n1\n")

    rows = asyncio.run(getattr(fetcher, method)())

    assert session.urls == [f"{BASE_URL}{path}"]
    assert rows == [{"a": 1}]


def test_draft_passes_league_id(fetcher, session):
    session.queue("")

    asyncio.run(fetcher.get_draft(lid=101))

    assert session.urls == [f"{BASE_URL}/draftv2/?lid=101"]


def test_get_players_by_team_is_server_side(fetcher, session):
    session.queue(PLAYERS_CSV)

    rows = asyncio.run(fetcher.get_players(team_id=10))

    assert session.urls == [f"{BASE_URL}/players/?team_id=10"]
    assert len(rows) == 3


def test_get_players_by_org_includes_affiliates(fetcher, session):
    session.queue(PLAYERS_CSV)

    rows = asyncio.run(fetcher.get_players(org_id=10))

    assert [r["Last Name"] for r in rows] == ["Trout", "Tulowitzki"]


@pytest.mark.parametrize(
    "query,expected",
    [("trout", ["Trout"]), ("TRO", ["Trout", "Tulowitzki"]), ("jose ram", ["Ramirez"]), ("zzz", [])],
)
def test_find_player_matches_names(fetcher, session, query, expected):
    session.queue(PLAYERS_CSV)

    rows = asyncio.run(fetcher.find_player(query))

    assert [r["Last Name"] for r in rows] == expected
    assert session.urls == [f"{BASE_URL}/players/"]


def test_contracts_filter_client_side(fetcher, session):
    session.queue(CONTRACTS_CSV).queue(CONTRACTS_CSV).queue(CONTRACTS_CSV)

    by_team = asyncio.run(fetcher.get_contracts(team_id=10))
    by_player = asyncio.run(fetcher.get_contracts(player_id=3))
    both = asyncio.run(fetcher.get_contracts(team_id=10, player_id=2))

    assert [c["player_id"] for c in by_team] == [1, 2]
    assert [c["player_id"] for c in by_player] == [3]
    assert [c["player_id"] for c in both] == [2]
    assert session.urls == [f"{BASE_URL}/contract/"] * 3


def test_exports_returns_json_object(fetcher, session):
    session.queue('{"csv": "game_id,date\\n1,2024-04-01"}')

    assert asyncio.run(fetcher.get_exports()) == {"csv": "game_id,date\n1,2024-04-01"}


def test_exports_wraps_raw_csv(fetcher, session):
    csv_text = "game_id,date\n1,2024-04-01"
    session.queue(csv_text)

    assert asyncio.run(fetcher.get_exports()) == {"csv": csv_text}


def test_http_errors_propagate(fetcher, session):
    session.queue("", status=403, reason="Forbidden")

    with pytest.raises(HttpError, match="403"):
        asyncio.run(fetcher.get_teams())


def test_start_ratings_job_returns_poll_url(fetcher, session):
    session.queue(f"Request received. Results will be at {POLL_URL}.")

    assert asyncio.run(fetcher.start_ratings_job()) == {"poll_url": POLL_URL}


def test_get_ratings_with_poll_url_skips_start(fetcher, session, sleeper):
    session.queue("ID,Overall\n65,55\n99,40\n")

    rows = asyncio.run(fetcher.get_ratings(poll_url=POLL_URL, player_ids=[99]))

    assert rows == [{"ID": 99, "Overall": 40}]
    assert session.urls == [POLL_URL]
    assert sleeper.calls == []


@pytest.mark.parametrize("poll_url", ["abc", "/ratings/job/1", "statsplus.net/lg/job/1", "https:// x"])
def test_get_ratings_rejects_non_absolute_poll_url(fetcher, session, poll_url):
    with pytest.raises(InvalidJobHandle, match="start_ratings_job"):
        asyncio.run(fetcher.get_ratings(poll_url=poll_url))

    assert session.requests == []


def test_from_settings_wires_transport_and_policy():
    settings = Settings(
        league_url="/myleague/",
        cookie="sid=1",
        ratings_max_attempts=5,
        ratings_poll_interval_seconds=2,
        ratings_pending_phrases=["queued"],
    )

    fetcher = DataFetcherAgent.from_settings(settings)

    assert fetcher.transport.base_url == "https://statsplus.net/myleague/api"
    assert fetcher.transport.headers["Cookie"] == "sid=1"
    assert fetcher.ratings.policy.max_attempts == 5
    assert fetcher.ratings.policy.poll_interval_seconds == 2
    assert fetcher.ratings.policy.pending_phrases == ("queued",)
    assert fetcher.ratings.policy.initial_delay_seconds == 30
