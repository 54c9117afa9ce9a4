#!/usr/bin/env python3
"""
StatsPlus MCP Server
MCP server exposing a StatsPlus fantasy-baseball league's read-only API as
agent tools, including the asynchronous ratings export.
"""

import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Annotated, Any, AsyncIterator, Dict, List, Optional

from dotenv import load_dotenv
from loguru import logger
from mcp.server.fastmcp import FastMCP
from pydantic import Field

from .agents.data_fetcher import DataFetcherAgent
from .agents.ratings_job import RatingsJobTimedOut
from .agents.transport import HttpError, StatsPlusError
from .models.ratings import SplitId
from .settings import Settings

load_dotenv()

Year = Annotated[int, Field(ge=1900, le=2100)]
PositiveId = Annotated[int, Field(gt=0)]

SPLIT_DESCRIPTION = "Split ID: 1 = Overall, 2 = vs Left-handed, 3 = vs Right-handed"


class StatsPlusService:
    """StatsPlus service for MCP integration."""

    def __init__(self, settings: Optional[Settings] = None):
        """Initialize the StatsPlus service."""
        self.settings = settings or Settings()
        self.data_fetcher: Optional[DataFetcherAgent] = None

    def _setup_logging(self) -> None:
        """Configure logging for the server."""
        log_path = Path(self.settings.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        logger.add(
            self.settings.log_file,
            rotation="10 MB",
            retention="7 days",
            level=self.settings.log_level,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{function}:{line} - {message}"
        )

    def fetcher(self) -> DataFetcherAgent:
        """Return the data fetcher, creating it on first use."""
        if self.data_fetcher is None:
            self.data_fetcher = DataFetcherAgent.from_settings(self.settings)
        return self.data_fetcher

    async def shutdown(self) -> None:
        if self.data_fetcher is not None:
            await self.data_fetcher.cleanup()


# Initialize the service
statsplus_service = StatsPlusService()


@asynccontextmanager
async def server_lifespan(server: FastMCP) -> AsyncIterator[None]:
    """Release the HTTP session when the server stops."""
    try:
        yield
    finally:
        await statsplus_service.shutdown()


# Create the MCP server instance
mcp = FastMCP("StatsPlus MCP Server", lifespan=server_lifespan)


def _success(key: str, rows: List[Dict[str, Any]], **extra: Any) -> Dict[str, Any]:
    return {"status": "success", "count": len(rows), key: rows, **extra}


def _error(action: str, e: StatsPlusError) -> Dict[str, Any]:
    """Log a failed tool call and build its error payload."""
    logger.error(f"Failed to {action}: {e}")
    response: Dict[str, Any] = {
        "status": "error",
        "error": str(e),
        "error_type": type(e).__name__,
    }
    if isinstance(e, RatingsJobTimedOut):
        response["recommendation"] = (
            "The export is still running. Call start_ratings_job early, do other "
            "lookups, then call get_ratings with the poll_url."
        )
    elif isinstance(e, HttpError) and e.status in (401, 403):
        response["recommendation"] = "Check STATSPLUS_COOKIE is a valid, logged-in session cookie"
    return response


@mcp.tool()
async def get_player_batting_stats(
    year: Annotated[Optional[Year], Field(description="Season year, e.g. 2024")] = None,
    pid: Annotated[Optional[PositiveId], Field(description="Player ID for a single player")] = None,
    split: Annotated[Optional[SplitId], Field(description=SPLIT_DESCRIPTION)] = None,
) -> Dict[str, Any]:
    """
    Retrieve player batting statistics. Returns stat lines with splits.
    Omit all params to get all players for all seasons.
    """
    try:
        rows = await statsplus_service.fetcher().get_player_batting_stats(year=year, pid=pid, split=split)
        return _success("stats", rows, year=year, pid=pid, split=split)
    except StatsPlusError as e:
        return _error("get player batting stats", e)


@mcp.tool()
async def get_player_fielding_stats(
    year: Annotated[Optional[Year], Field(description="Season year, e.g. 2024")] = None,
    pid: Annotated[Optional[PositiveId], Field(description="Player ID for a single player")] = None,
    split: Annotated[Optional[SplitId], Field(description=SPLIT_DESCRIPTION)] = None,
) -> Dict[str, Any]:
    """
    Retrieve player fielding statistics by position. Returns stat lines with splits.
    Omit all params to get all players for all seasons.
    """
    try:
        rows = await statsplus_service.fetcher().get_player_fielding_stats(year=year, pid=pid, split=split)
        return _success("stats", rows, year=year, pid=pid, split=split)
    except StatsPlusError as e:
        return _error("get player fielding stats", e)


@mcp.tool()
async def get_player_pitching_stats(
    year: Annotated[Optional[Year], Field(description="Season year, e.g. 2024")] = None,
    pid: Annotated[Optional[PositiveId], Field(description="Player ID for a single player")] = None,
    split: Annotated[Optional[SplitId], Field(description=SPLIT_DESCRIPTION)] = None,
) -> Dict[str, Any]:
    """
    Retrieve player pitching statistics. Returns stat lines with splits.
    Omit all params to get all players for all seasons.
    """
    try:
        rows = await statsplus_service.fetcher().get_player_pitching_stats(year=year, pid=pid, split=split)
        return _success("stats", rows, year=year, pid=pid, split=split)
    except StatsPlusError as e:
        return _error("get player pitching stats", e)


@mcp.tool()
async def get_team_batting_stats(
    year: Annotated[Optional[Year], Field(description="Season year, e.g. 2058")] = None,
    split: Annotated[Optional[SplitId], Field(description=SPLIT_DESCRIPTION)] = None,
) -> Dict[str, Any]:
    """Retrieve team batting statistics. Omit params to get all teams for all seasons."""
    try:
        rows = await statsplus_service.fetcher().get_team_batting_stats(year=year, split=split)
        return _success("stats", rows, year=year, split=split)
    except StatsPlusError as e:
        return _error("get team batting stats", e)


@mcp.tool()
async def get_team_pitching_stats(
    year: Annotated[Optional[Year], Field(description="Season year, e.g. 2058")] = None,
    split: Annotated[Optional[SplitId], Field(description=SPLIT_DESCRIPTION)] = None,
) -> Dict[str, Any]:
    """Retrieve team pitching statistics. Omit params to get all teams for all seasons."""
    try:
        rows = await statsplus_service.fetcher().get_team_pitching_stats(year=year, split=split)
        return _success("stats", rows, year=year, split=split)
    except StatsPlusError as e:
        return _error("get team pitching stats", e)


@mcp.tool()
async def get_teams() -> Dict[str, Any]:
    """Retrieve the list of teams in the league with their IDs and abbreviations."""
    try:
        rows = await statsplus_service.fetcher().get_teams()
        return _success("teams", rows)
    except StatsPlusError as e:
        return _error("get teams", e)


@mcp.tool()
async def get_draft(
    lid: Annotated[
        Optional[PositiveId], Field(description="League ID for associations with multiple drafts")
    ] = None,
) -> Dict[str, Any]:
    """Retrieve draft data. For multi-league associations, specify the league ID."""
    try:
        rows = await statsplus_service.fetcher().get_draft(lid=lid)
        return _success("picks", rows, lid=lid)
    except StatsPlusError as e:
        return _error("get draft", e)


@mcp.tool()
async def get_exports() -> Dict[str, Any]:
    """
    Retrieve a CSV export of all major league games since the league started,
    including scores, starting pitchers, winning/losing pitchers, and game dates.
    """
    try:
        export = await statsplus_service.fetcher().get_exports()
        return {"status": "success", "export": export}
    except StatsPlusError as e:
        return _error("get exports", e)


@mcp.tool()
async def get_players(
    team_id: Annotated[Optional[PositiveId], Field(description="Team ID to filter by")] = None,
    org_id: Annotated[
        Optional[PositiveId],
        Field(description="Organization ID; includes the parent club and all its affiliates"),
    ] = None,
) -> Dict[str, Any]:
    """
    Retrieve the player roster. Optionally filter by team_id to get a single
    team's players, or by org_id to get a whole organization.
    """
    try:
        rows = await statsplus_service.fetcher().get_players(team_id=team_id, org_id=org_id)
        return _success("players", rows, team_id=team_id, org_id=org_id)
    except StatsPlusError as e:
        return _error("get players", e)


@mcp.tool()
async def find_player(
    name: Annotated[str, Field(min_length=1, description="First, last or full player name")],
) -> Dict[str, Any]:
    """Find players by name. Matches first name, last name or full name, case-insensitively."""
    try:
        rows = await statsplus_service.fetcher().find_player(name)
        return _success("players", rows, query=name)
    except StatsPlusError as e:
        return _error("find player", e)


@mcp.tool()
async def get_game_history() -> Dict[str, Any]:
    """
    Retrieve all major league games since the league started, including scores,
    hitting, pitchers, and game dates.
    """
    try:
        rows = await statsplus_service.fetcher().get_game_history()
        return _success("games", rows)
    except StatsPlusError as e:
        return _error("get game history", e)


@mcp.tool()
async def get_contracts(
    team_id: Annotated[Optional[PositiveId], Field(description="Only contracts held by this team")] = None,
    player_id: Annotated[Optional[PositiveId], Field(description="Only this player's contract")] = None,
) -> Dict[str, Any]:
    """Retrieve all current and active player contracts."""
    try:
        rows = await statsplus_service.fetcher().get_contracts(team_id=team_id, player_id=player_id)
        return _success("contracts", rows, team_id=team_id, player_id=player_id)
    except StatsPlusError as e:
        return _error("get contracts", e)


@mcp.tool()
async def get_contract_extensions() -> Dict[str, Any]:
    """Retrieve signed contract extensions that take effect in future seasons."""
    try:
        rows = await statsplus_service.fetcher().get_contract_extensions()
        return _success("contracts", rows)
    except StatsPlusError as e:
        return _error("get contract extensions", e)


@mcp.tool()
async def start_ratings_job() -> Dict[str, Any]:
    """
    Start the player ratings export and return its poll_url immediately.

    The export takes a minute or more. Call this at the start of a workflow,
    do the other lookups, then pass the poll_url to get_ratings.
    """
    try:
        result = await statsplus_service.fetcher().start_ratings_job()
        return {"status": "success", **result}
    except StatsPlusError as e:
        return _error("start ratings job", e)


@mcp.tool()
async def get_ratings(
    poll_url: Annotated[
        Optional[str],
        Field(description="poll_url returned by start_ratings_job; omit to start a new export here"),
    ] = None,
    player_ids: Annotated[
        Optional[List[PositiveId]],
        Field(description="Only return ratings for these player IDs"),
    ] = None,
) -> Dict[str, Any]:
    """
    Retrieve player ratings (overall, potential, and per-attribute).

    This is an async export. With a poll_url from start_ratings_job, polling
    starts right away; without one the export is started and the tool waits
    up to ~5 minutes for the data to be ready before returning.
    """
    try:
        rows = await statsplus_service.fetcher().get_ratings(poll_url=poll_url, player_ids=player_ids)
        return _success("ratings", rows)
    except StatsPlusError as e:
        return _error("get ratings", e)


def main() -> None:
    """Run the MCP server over stdio."""
    settings = statsplus_service.settings
    if not settings.league_url:
        logger.error("STATSPLUS_LEAGUE_URL environment variable is required.")
        logger.error("  Set it to your league's URL slug, e.g. 'mlb2025' or 'myleague'")
        sys.exit(1)

    statsplus_service._setup_logging()
    logger.info(
        f"Starting {settings.mcp_server_name} v{settings.mcp_server_version} "
        f"for league '{settings.league_url}'"
    )
    mcp.run()


if __name__ == "__main__":
    main()
