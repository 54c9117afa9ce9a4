"""Shared fixtures: an in-memory aiohttp-shaped session and a recording sleep."""

from types import SimpleNamespace

import pytest

from statsplus_mcp.agents.data_fetcher import DataFetcherAgent
from statsplus_mcp.agents.transport import StatsPlusTransport

LEAGUE = "testleague"
BASE_URL = f"https://statsplus.net/{LEAGUE}/api"
POLL_URL = "https://statsplus.net/testleague/api/ratings/job/abc123"


class FakeResponse:
    def __init__(self, text="", status=200, reason=None, text_error=None):
        self._text = text
        self._text_error = text_error
        self.status = status
        self.reason = reason or ("OK" if status == 200 else "Error")

    async def text(self):
        if self._text_error is not None:
            raise self._text_error
        return self._text

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """Replays queued responses and records every request made."""

    def __init__(self):
        self.closed = False
        self.requests = []
        self._default = []
        self._routes = {}

    def queue(self, text="", status=200, reason=None, url=None):
        """Queue a response, optionally only for requests to ``url``."""
        item = FakeResponse(text, status, reason)
        self._queue_for(url).append(item)
        return self

    def queue_undecodable(self, error, url=None):
        """Queue a 2xx response whose body fails to decode with ``error``."""
        self._queue_for(url).append(FakeResponse(text_error=error))
        return self

    def queue_error(self, exc, url=None):
        self._queue_for(url).append(exc)
        return self

    def _queue_for(self, url):
        if url is None:
            return self._default
        return self._routes.setdefault(url, [])

    @property
    def pending(self):
        return len(self._default) + sum(len(q) for q in self._routes.values())

    @property
    def urls(self):
        return [r.url for r in self.requests]

    def get(self, url, headers=None, **kwargs):
        url = str(url)
        self.requests.append(SimpleNamespace(url=url, headers=dict(headers or {})))
        queue = self._routes.get(url) or self._default
        if not queue:
            raise AssertionError(f"Unexpected request to {url}")
        item = queue.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    async def close(self):
        self.closed = True


class RecordingSleep:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


async def forbid_sleep(seconds):
    raise AssertionError(f"unexpected sleep({seconds})")


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def transport(session):
    return StatsPlusTransport(LEAGUE, cookie="session=abc123", session=session)


@pytest.fixture
def sleeper():
    return RecordingSleep()


@pytest.fixture
def fetcher(transport, sleeper):
    return DataFetcherAgent(transport, sleep=sleeper)
