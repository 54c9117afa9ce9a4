"""Settings for the StatsPlus MCP server."""

from pathlib import Path
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .utils.constants import (
    DEFAULT_HOST,
    RATINGS_INITIAL_DELAY_SECONDS,
    RATINGS_MAX_ATTEMPTS,
    RATINGS_PENDING_PHRASES,
    RATINGS_PENDING_PREFIXES,
    RATINGS_POLL_INTERVAL_SECONDS,
)


class Settings(BaseSettings):
    """Server settings, read from ``STATSPLUS_*`` environment variables or ``.env``."""

    model_config = SettingsConfigDict(
        env_prefix="STATSPLUS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # League slug, e.g. "mlb2025"; the server refuses to start without it
    league_url: str = ""
    cookie: Optional[str] = None
    host: str = DEFAULT_HOST
    request_timeout_seconds: float = Field(default=60.0, gt=0)

    ratings_initial_delay_seconds: float = Field(default=RATINGS_INITIAL_DELAY_SECONDS, ge=0)
    ratings_poll_interval_seconds: float = Field(default=RATINGS_POLL_INTERVAL_SECONDS, ge=0)
    ratings_max_attempts: int = Field(default=RATINGS_MAX_ATTEMPTS, ge=1)
    ratings_pending_phrases: List[str] = Field(default_factory=lambda: list(RATINGS_PENDING_PHRASES))
    ratings_pending_prefixes: List[str] = Field(default_factory=lambda: list(RATINGS_PENDING_PREFIXES))

    mcp_server_name: str = "statsplus-mcp"
    mcp_server_version: str = "0.1.0"
    log_level: str = "INFO"
    log_file: Path = Path("./logs/statsplus_mcp.log")
