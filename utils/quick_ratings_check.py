#!/usr/bin/env python3
"""
Smoke-test the two-phase ratings export against a live league.

Starts the export, fetches teams while it runs, then polls for the ratings.
Uses STATSPLUS_LEAGUE_URL / STATSPLUS_COOKIE from the environment or .env.
"""
import asyncio
import json
import sys
from pathlib import Path

# Ensure repo root is on sys.path
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from statsplus_mcp.agents.data_fetcher import DataFetcherAgent
from statsplus_mcp.agents.transport import StatsPlusError
from statsplus_mcp.settings import Settings


async def main() -> int:
    settings = Settings()
    if not settings.league_url:
        print(json.dumps({"status": "error", "error": "STATSPLUS_LEAGUE_URL not set"}))
        return 1

    async with DataFetcherAgent.from_settings(settings) as fetcher:
        try:
            job = await fetcher.start_ratings_job()
            teams = await fetcher.get_teams()
            ratings = await fetcher.get_ratings(poll_url=job["poll_url"])
        except StatsPlusError as e:
            print(json.dumps({"status": "error", "error": str(e)}))
            return 1

    print(json.dumps({
        "status": "success",
        "league": settings.league_url,
        "poll_url": job["poll_url"],
        "team_count": len(teams),
        "rating_rows": len(ratings),
        "rating_columns": list(ratings[0].keys()) if ratings else [],
    }, indent=2))
    return 0

if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
