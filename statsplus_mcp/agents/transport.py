"""
StatsPlus HTTP transport.

Performs authenticated GET requests against a league-scoped base URL,
normalizes non-2xx statuses into ``HttpError`` and decodes bodies as text,
JSON or CSV rows.
"""

import asyncio
import json
from typing import Any, Dict, List, Mapping, Optional, Union

import aiohttp
from loguru import logger
from yarl import URL

from ..utils.constants import DEFAULT_HOST
from ..utils.csv_parser import CsvRow, parse_csv

QueryValue = Union[str, int, float, None]


class StatsPlusError(RuntimeError):
    """Base class for StatsPlus API failures."""
    pass


class HttpError(StatsPlusError):
    """Raised when the API answers with a non-2xx status."""

    def __init__(self, status: int, reason: Optional[str], url: str):
        self.status = status
        self.reason = reason or ""
        self.url = url
        super().__init__(f"StatsPlus API error: {status} {self.reason} for {url}")


class TransportError(StatsPlusError):
    """Raised when the API could not be reached at all."""
    pass


class ResponseDecodeError(StatsPlusError):
    """Raised when a response body cannot be decoded."""
    pass


def build_base_url(league_url: str, host: str = DEFAULT_HOST) -> str:
    """Compose ``https://<host>/<league>/api`` from a league slug."""
    return f"https://{host}/{league_url.strip('/')}/api"


class StatsPlusTransport:
    """
    Authenticated GET client for one StatsPlus league.

    The aiohttp session is created lazily inside the running event loop. A
    session passed in by the caller is used as-is and never closed here.
    """

    def __init__(
        self,
        league_url: str,
        cookie: Optional[str] = None,
        host: str = DEFAULT_HOST,
        timeout_seconds: float = 60.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Initialize the transport.

        Args:
            league_url: League slug, with or without surrounding slashes
            cookie: Pre-obtained session cookie, forwarded verbatim
            host: StatsPlus host name
            timeout_seconds: Total timeout for a single request
            session: Optional externally managed aiohttp session
        """
        self.base_url = build_base_url(league_url, host)
        self.timeout_seconds = timeout_seconds

        self.headers: Dict[str, str] = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if cookie:
            self.headers["Cookie"] = cookie

        self._session = session
        self._owns_session = session is None

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def close(self) -> None:
        """Close the HTTP session if this transport created it."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
            logger.debug("StatsPlus transport session closed")
        if self._owns_session:
            self._session = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True
        return self._session

    def build_url(self, path: str, params: Optional[Mapping[str, QueryValue]] = None) -> URL:
        """
        Resolve ``path`` against the league base URL and attach query params.

        Absolute URLs (such as backend-issued poll URLs) are used unchanged.
        Params whose value is ``None`` are dropped.
        """
        if "://" in path:
            url = URL(path)
        else:
            url = URL(f"{self.base_url}{path}")

        query = {key: str(value) for key, value in (params or {}).items() if value is not None}
        if query:
            url = url.update_query(query)
        return url

    async def get_text(self, path: str, params: Optional[Mapping[str, QueryValue]] = None) -> str:
        """
        Perform one GET and return the raw body.

        Args:
            path: Path relative to the league API, or an absolute URL
            params: Query parameters; ``None`` values are omitted

        Returns:
            Response body as text

        Raises:
            HttpError: Status outside 200-299
            TransportError: Network failure or timeout
        """
        url = self.build_url(path, params)
        session = self._get_session()
        logger.debug(f"GET {url}")

        try:
            async with session.get(url, headers=self.headers) as response:
                if not 200 <= response.status < 300:
                    raise HttpError(response.status, response.reason, str(url))
                return await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(f"Request failed for {url}: {e}") from e
        except (UnicodeDecodeError, LookupError) as e:
            raise ResponseDecodeError(f"Undecodable response body from {url}: {e}") from e

    async def get_json(self, path: str, params: Optional[Mapping[str, QueryValue]] = None) -> Any:
        """GET ``path`` and decode the body as JSON."""
        text = await self.get_text(path, params)
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise ResponseDecodeError(f"Invalid JSON from {self.build_url(path, params)}") from e

    async def get_csv(self, path: str, params: Optional[Mapping[str, QueryValue]] = None) -> List[CsvRow]:
        """GET ``path`` and decode the body as CSV rows."""
        text = await self.get_text(path, params)
        rows = parse_csv(text)
        logger.debug(f"Decoded {len(rows)} rows from {path}")
        return rows
