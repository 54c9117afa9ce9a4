"""
StatsPlus Data Fetcher Agent.

This module provides the DataFetcherAgent class that wraps the read-only
StatsPlus league endpoints: player and team stat lines, teams, draft, players,
contracts, game history, exports, and the asynchronous ratings export.
"""

import json
from typing import Any, Dict, Iterable, List, Optional

from loguru import logger
from pydantic import ValidationError

from ..models.ratings import RatingsJobHandle, SplitId
from ..settings import Settings
from ..utils import constants as endpoints
from ..utils.csv_parser import CsvRow
from .ratings_job import InvalidJobHandle, RatingsJobOrchestrator, RatingsJobPolicy, Sleep
from .transport import StatsPlusTransport


class DataFetcherAgent:
    """
    Agent responsible for fetching league data from the StatsPlus API.

    This agent handles:
    - Cookie-authenticated GET requests against the league API
    - CSV/JSON decoding of endpoint responses
    - Light client-side filtering the API does not offer
    - The start/poll workflow of the ratings export
    """

    def __init__(
        self,
        transport: StatsPlusTransport,
        ratings_policy: Optional[RatingsJobPolicy] = None,
        sleep: Optional[Sleep] = None,
    ):
        """
        Initialize the data fetcher agent.

        Args:
            transport: Authenticated StatsPlus transport
            ratings_policy: Timing rules for the ratings export
            sleep: Async sleep used by the ratings poll loop
        """
        self.transport = transport
        self.ratings = RatingsJobOrchestrator(transport, ratings_policy, sleep=sleep)

        logger.info(f"DataFetcherAgent initialized for {transport.base_url}")

    @classmethod
    def from_settings(cls, settings: Settings) -> "DataFetcherAgent":
        """Build a fetcher from server settings."""
        transport = StatsPlusTransport(
            league_url=settings.league_url,
            cookie=settings.cookie,
            host=settings.host,
            timeout_seconds=settings.request_timeout_seconds,
        )
        policy = RatingsJobPolicy(
            initial_delay_seconds=settings.ratings_initial_delay_seconds,
            poll_interval_seconds=settings.ratings_poll_interval_seconds,
            max_attempts=settings.ratings_max_attempts,
            pending_phrases=tuple(settings.ratings_pending_phrases),
            pending_prefixes=tuple(settings.ratings_pending_prefixes),
        )
        return cls(transport, policy)

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.cleanup()

    async def cleanup(self) -> None:
        """Clean up resources."""
        await self.transport.close()
        logger.info("DataFetcherAgent cleaned up")

    # ----- Player and team stats -----

    async def get_player_batting_stats(
        self, year: Optional[int] = None, pid: Optional[int] = None, split: Optional[SplitId] = None
    ) -> List[CsvRow]:
        """Player batting stat lines, optionally narrowed by season, player and split."""
        return await self.transport.get_csv(
            endpoints.PLAYER_BATTING_STATS, {"year": year, "pid": pid, "split": split}
        )

    async def get_player_fielding_stats(
        self, year: Optional[int] = None, pid: Optional[int] = None, split: Optional[SplitId] = None
    ) -> List[CsvRow]:
        """Player fielding stat lines by position."""
        return await self.transport.get_csv(
            endpoints.PLAYER_FIELDING_STATS, {"year": year, "pid": pid, "split": split}
        )

    async def get_player_pitching_stats(
        self, year: Optional[int] = None, pid: Optional[int] = None, split: Optional[SplitId] = None
    ) -> List[CsvRow]:
        """Player pitching stat lines."""
        return await self.transport.get_csv(
            endpoints.PLAYER_PITCHING_STATS, {"year": year, "pid": pid, "split": split}
        )

    async def get_team_batting_stats(
        self, year: Optional[int] = None, split: Optional[SplitId] = None
    ) -> List[CsvRow]:
        return await self.transport.get_csv(
            endpoints.TEAM_BATTING_STATS, {"year": year, "split": split}
        )

    async def get_team_pitching_stats(
        self, year: Optional[int] = None, split: Optional[SplitId] = None
    ) -> List[CsvRow]:
        return await self.transport.get_csv(
            endpoints.TEAM_PITCHING_STATS, {"year": year, "split": split}
        )

    # ----- League structure -----

    async def get_teams(self) -> List[CsvRow]:
        return await self.transport.get_csv(endpoints.TEAMS)

    async def get_draft(self, lid: Optional[int] = None) -> List[CsvRow]:
        """Draft picks; ``lid`` selects one league of a multi-league association."""
        return await self.transport.get_csv(endpoints.DRAFT, {"lid": lid})

    async def get_players(
        self, team_id: Optional[int] = None, org_id: Optional[int] = None
    ) -> List[CsvRow]:
        """
        Get the player list.

        Args:
            team_id: Restrict to one team (server-side)
            org_id: Keep players whose team or parent organization matches (client-side)

        Returns:
            Player rows
        """
        players = await self.transport.get_csv(endpoints.PLAYERS, {"team_id": team_id})
        if org_id is not None:
            players = [
                p for p in players
                if p.get("Parent Team ID") == org_id or p.get("Team ID") == org_id
            ]
        return players

    async def find_player(self, name: str) -> List[CsvRow]:
        """Case-insensitive search on first name, last name or full name."""
        players = await self.transport.get_csv(endpoints.PLAYERS)
        query = name.strip().lower()

        matches = []
        for p in players:
            first = str(p.get("First Name", "")).lower()
            last = str(p.get("Last Name", "")).lower()
            if query in first or query in last or query in f"{first} {last}":
                matches.append(p)

        logger.debug(f"find_player({name!r}) matched {len(matches)} of {len(players)} players")
        return matches

    async def get_game_history(self) -> List[CsvRow]:
        return await self.transport.get_csv(endpoints.GAME_HISTORY)

    async def get_contracts(
        self, team_id: Optional[int] = None, player_id: Optional[int] = None
    ) -> List[CsvRow]:
        """Current contracts, filtered client-side by team and/or player."""
        contracts = await self.transport.get_csv(endpoints.CONTRACTS)
        if team_id is not None:
            contracts = [c for c in contracts if c.get("contract_team_id") == team_id]
        if player_id is not None:
            contracts = [c for c in contracts if c.get("player_id") == player_id]
        return contracts

    async def get_contract_extensions(self) -> List[CsvRow]:
        return await self.transport.get_csv(endpoints.CONTRACT_EXTENSIONS)

    async def get_exports(self) -> Dict[str, Any]:
        """
        Get the games export.

        The endpoint answers with a JSON object; deployments that stream the
        CSV directly are wrapped as ``{"csv": <text>}``.
        """
        text = await self.transport.get_text(endpoints.EXPORTS)
        try:
            payload = json.loads(text)
        except json.JSONDecodeError:
            return {"csv": text}
        if isinstance(payload, dict):
            return payload
        return {"csv": text}

    # ----- Ratings export -----

    async def start_ratings_job(self) -> Dict[str, str]:
        """Queue the ratings export and return its poll URL immediately."""
        handle = await self.ratings.start()
        return {"poll_url": handle.poll_url}

    async def get_ratings(
        self,
        poll_url: Optional[str] = None,
        player_ids: Optional[Iterable[int]] = None,
    ) -> List[CsvRow]:
        """
        Get player ratings from the asynchronous export.

        Args:
            poll_url: URL from ``start_ratings_job``; when omitted the export is
                started here and the initial delay is waited out first
            player_ids: Optional player ids to keep

        Returns:
            Ratings rows
        """
        handle = None
        if poll_url:
            try:
                handle = RatingsJobHandle(poll_url=poll_url)
            except ValidationError as e:
                raise InvalidJobHandle(
                    f"Invalid poll_url {poll_url!r}: expected the absolute URL "
                    f"returned by start_ratings_job"
                ) from e
        return await self.ratings.fetch(handle, player_ids=player_ids)
