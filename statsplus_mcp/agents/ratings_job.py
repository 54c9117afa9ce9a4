"""
Ratings export job orchestration.

``/ratings/`` does not return data directly. It queues an export on the
backend and answers with a sentence containing a poll URL. Polling that URL
returns a "still in progress" notice until the export is done, then the CSV
payload itself. The backend offers no status code, retry-after hint or cancel
endpoint, so the job state is inferred from the body text.

The work is split in two entry points so an agent can start the export early,
run its other lookups, and only block on what is left of the wait:

    handle = await orchestrator.start()
    ...                                      # unrelated lookups
    rows = await orchestrator.fetch(handle)
"""

import asyncio
import re
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, List, Optional, Sequence

from loguru import logger
from pydantic import ValidationError

from ..models.ratings import RatingsJobHandle
from ..utils.constants import (
    PLAYER_ID_FIELDS,
    RATINGS,
    RATINGS_INITIAL_DELAY_SECONDS,
    RATINGS_MAX_ATTEMPTS,
    RATINGS_PENDING_PHRASES,
    RATINGS_PENDING_PREFIXES,
    RATINGS_POLL_INTERVAL_SECONDS,
)
from ..utils.csv_parser import CsvRow, CsvValue, parse_csv
from .transport import HttpError, StatsPlusError, StatsPlusTransport

_POLL_URL_RE = re.compile(r"(?<![A-Za-z0-9+.-])[A-Za-z][A-Za-z0-9+-]*://\S+")

Sleep = Callable[[float], Awaitable[None]]


class RatingsJobError(StatsPlusError):
    """Base class for ratings export failures."""
    pass


class MalformedJobResponse(RatingsJobError):
    """Raised when the initiation response carries no usable poll URL."""
    pass


class InvalidJobHandle(RatingsJobError):
    """Raised when a caller-supplied poll URL is not an absolute URL."""
    pass


class PollError(RatingsJobError):
    """Raised when a poll request answers with a non-2xx status."""

    def __init__(self, status: int, reason: str, url: str):
        self.status = status
        self.reason = reason
        self.url = url
        super().__init__(f"Ratings poll error: {status} {reason}")


class RatingsJobTimedOut(RatingsJobError):
    """Raised when the export is still pending after the last poll attempt."""
    pass


@dataclass(frozen=True)
class RatingsJobPolicy:
    """Timing and classification rules for the ratings export."""

    # Documented minimum processing time before the first poll
    initial_delay_seconds: float = RATINGS_INITIAL_DELAY_SECONDS
    poll_interval_seconds: float = RATINGS_POLL_INTERVAL_SECONDS
    max_attempts: int = RATINGS_MAX_ATTEMPTS
    pending_phrases: Sequence[str] = RATINGS_PENDING_PHRASES
    pending_prefixes: Sequence[str] = RATINGS_PENDING_PREFIXES
    player_id_fields: Sequence[str] = PLAYER_ID_FIELDS

    @property
    def timeout_description(self) -> str:
        minutes = self.max_attempts * self.poll_interval_seconds / 60
        return f"~{minutes:g} minutes"


def extract_poll_url(text: str) -> Optional[str]:
    """Return the first URL in ``text`` minus trailing sentence punctuation."""
    match = _POLL_URL_RE.search(text)
    if not match:
        return None
    return match.group(0).rstrip(".)") or None


def is_job_pending(
    body: str,
    phrases: Iterable[str] = RATINGS_PENDING_PHRASES,
    prefixes: Iterable[str] = RATINGS_PENDING_PREFIXES,
) -> bool:
    """
    Classify a poll response body as pending (True) or ready (False).

    Matching is case-insensitive; prefixes are checked after leading whitespace.
    """
    lowered = body.lower()
    if any(phrase.lower() in lowered for phrase in phrases):
        return True
    head = lowered.lstrip()
    return any(head.startswith(prefix.lower()) for prefix in prefixes)


def player_id_of(row: CsvRow, fields: Sequence[str] = PLAYER_ID_FIELDS) -> Optional[CsvValue]:
    """Return the player identifier of a ratings row, whichever column holds it."""
    for field in fields:
        if field in row:
            return row[field]
    return None


def filter_by_player_ids(
    rows: List[CsvRow],
    player_ids: Optional[Iterable[CsvValue]],
    fields: Sequence[str] = PLAYER_ID_FIELDS,
) -> List[CsvRow]:
    """Keep rows whose player id is in ``player_ids``; an empty or missing set keeps all."""
    wanted = set(player_ids or ())
    if not wanted:
        return rows
    return [row for row in rows if player_id_of(row, fields) in wanted]


class RatingsJobOrchestrator:
    """
    Start/poll state machine for the asynchronous ratings export.

    Holds no per-job state: the handle returned by ``start`` is the only value
    passed between the two phases, so any number of jobs can be in flight.
    """

    def __init__(
        self,
        transport: StatsPlusTransport,
        policy: Optional[RatingsJobPolicy] = None,
        sleep: Optional[Sleep] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            transport: Authenticated transport used for initiation and polling
            policy: Delays, attempt budget and pending markers
            sleep: Async sleep used at every wait point (defaults to asyncio.sleep)
        """
        self.transport = transport
        self.policy = policy or RatingsJobPolicy()
        self._sleep = sleep or asyncio.sleep

    async def start(self) -> RatingsJobHandle:
        """
        Queue a ratings export and return its handle without waiting.

        Raises:
            MalformedJobResponse: The acknowledgement contains no poll URL
        """
        text = await self.transport.get_text(RATINGS)
        poll_url = extract_poll_url(text)
        if not poll_url:
            logger.error(f"Unexpected {RATINGS} response: {text[:200]!r}")
            raise MalformedJobResponse(f"Unexpected {RATINGS} response: {text}")

        try:
            handle = RatingsJobHandle(poll_url=poll_url)
        except ValidationError as e:
            raise MalformedJobResponse(f"Unusable poll URL in {RATINGS} response: {poll_url}") from e

        logger.info(f"Ratings export queued, poll URL: {poll_url}")
        return handle

    async def fetch(
        self,
        handle: Optional[RatingsJobHandle] = None,
        player_ids: Optional[Iterable[CsvValue]] = None,
    ) -> List[CsvRow]:
        """
        Resolve ratings rows, starting the export first when no handle is given.

        A supplied handle is polled immediately. Without one the export is
        queued and the initial delay is spent before the first poll.

        Args:
            handle: Handle from a previous ``start`` call
            player_ids: Optional player ids to keep; empty means all rows

        Returns:
            Decoded ratings rows

        Raises:
            MalformedJobResponse: Export could not be started
            PollError: A poll answered with a non-2xx status
            RatingsJobTimedOut: Still pending after the attempt budget
        """
        if handle is None:
            handle = await self.start()
            logger.info(
                f"Waiting {self.policy.initial_delay_seconds:g}s before first ratings poll"
            )
            await self._sleep(self.policy.initial_delay_seconds)

        body = await self._poll_until_ready(handle)
        rows = parse_csv(body)
        result = filter_by_player_ids(rows, player_ids, self.policy.player_id_fields)
        logger.info(f"Ratings export ready: {len(rows)} rows, returning {len(result)}")
        return result

    async def _poll_until_ready(self, handle: RatingsJobHandle) -> str:
        attempts = self.policy.max_attempts

        for attempt in range(1, attempts + 1):
            try:
                body = await self.transport.get_text(handle.poll_url)
            except HttpError as e:
                logger.error(f"Ratings poll failed with {e.status} {e.reason}")
                raise PollError(e.status, e.reason, e.url) from e

            if not is_job_pending(
                body, self.policy.pending_phrases, self.policy.pending_prefixes
            ):
                return body

            logger.info(f"Ratings export still pending (attempt {attempt}/{attempts})")
            if attempt < attempts:
                await self._sleep(self.policy.poll_interval_seconds)

        logger.warning(f"Ratings export still pending after {attempts} attempts")
        raise RatingsJobTimedOut(
            f"Ratings export timed out after {self.policy.timeout_description}. Try again later."
        )
