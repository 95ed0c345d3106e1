"""Fixtures for acquisition monitor tests: synthetic store, fetch collaborator and Redis."""

import asyncio
import fnmatch

import pytest

from src.acquisition.fetch import FetchCollaborator
from src.acquisition.store import InMemoryCoverageStore
from src.models.coverage import FetchRequest, IndustryCountryPair


def pair(industry: str, country: str) -> IndustryCountryPair:
    return IndustryCountryPair(industry=industry, country=country)


class RecordingFetcher(FetchCollaborator):
    """Synthetic slow collaborator that records every call.

    Tracks the number of concurrently active calls and the (start, end)
    interval of each, so tests can check the concurrency bound.
    """

    def __init__(
        self,
        *,
        delay_s: float = 0.0,
        failures: dict[IndustryCountryPair, BaseException] | None = None,
        records: int = 5,
        store: InMemoryCoverageStore | None = None,
    ) -> None:
        self.delay_s = delay_s
        self.failures = failures or {}
        self.records = records
        self.store = store
        self.requests: list[FetchRequest] = []
        self.deadlines: list[float | None] = []
        self.intervals: list[tuple[IndustryCountryPair, float, float]] = []
        self.active = 0
        self.max_active = 0

    @property
    def name(self) -> str:
        return "recording"

    @property
    def started(self) -> list[IndustryCountryPair]:
        return [r.pair for r in self.requests]

    async def fetch_and_persist(self, request: FetchRequest, *, deadline: float | None = None) -> int:
        loop = asyncio.get_running_loop()
        start = loop.time()
        self.requests.append(request)
        self.deadlines.append(deadline)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delay_s)
            exc = self.failures.get(request.pair)
            if exc is not None:
                raise exc
            if self.store is not None:
                self.store.add(request.pair, self.records)
            return self.records
        finally:
            self.active -= 1
            self.intervals.append((request.pair, start, loop.time()))


class FakeRedis:
    """The slice of redis.asyncio.Redis the tracker uses, over a dict.

    Expiry is not simulated; ``ttls`` records the ``ex`` of each SET.
    """

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int | None] = {}

    async def set(self, key, value, *, ex=None, nx=False):
        if nx and key in self.data:
            return None
        self.data[key] = value
        self.ttls[key] = ex
        return True

    async def exists(self, *keys) -> int:
        return sum(1 for k in keys if k in self.data)

    async def delete(self, *keys) -> int:
        removed = [k for k in keys if self.data.pop(k, None) is not None]
        return len(removed)

    async def scan_iter(self, match=None):
        for key in list(self.data):
            if match is None or fnmatch.fnmatchcase(key, match):
                yield key


@pytest.fixture
def small_store() -> InMemoryCoverageStore:
    """Two industries x two countries.

    tattoo/US: 5, tattoo/DE: 150, gym/US: 40, gym/DE: none.
    """
    return InMemoryCoverageStore(
        {
            pair("tattoo", "US"): 5,
            pair("tattoo", "DE"): 150,
            pair("gym", "US"): 40,
        },
        industries=["tattoo", "gym"],
        countries=["US", "DE"],
    )


@pytest.fixture
def fetcher() -> RecordingFetcher:
    return RecordingFetcher()


@pytest.fixture
def make_fetcher() -> type[RecordingFetcher]:
    """The RecordingFetcher class, for tests that need custom delays or failures."""
    return RecordingFetcher


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()
