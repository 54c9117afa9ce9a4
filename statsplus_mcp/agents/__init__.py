"""Agents that talk to the StatsPlus API."""

from .data_fetcher import DataFetcherAgent
from .ratings_job import (
    InvalidJobHandle,
    MalformedJobResponse,
    PollError,
    RatingsJobError,
    RatingsJobOrchestrator,
    RatingsJobPolicy,
    RatingsJobTimedOut,
)
from .transport import (
    HttpError,
    ResponseDecodeError,
    StatsPlusError,
    StatsPlusTransport,
    TransportError,
)

__all__ = [
    "DataFetcherAgent",
    "HttpError",
    "InvalidJobHandle",
    "MalformedJobResponse",
    "PollError",
    "RatingsJobError",
    "RatingsJobOrchestrator",
    "RatingsJobPolicy",
    "RatingsJobTimedOut",
    "ResponseDecodeError",
    "StatsPlusError",
    "StatsPlusTransport",
    "TransportError",
]
