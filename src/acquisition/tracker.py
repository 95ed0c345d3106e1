"""In-flight fetch tracking.

Marks a pair while a fetch for it is running so another batch skips it
instead of fetching the same pair twice. Marks expire after a TTL so a
crashed job cannot block a pair forever.

- InMemoryFetchTracker: one process only (tests, inline runs).
- RedisFetchTracker: shared by every worker process through Redis; used by
  the scheduled jobs.
"""

import asyncio
import json
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from src.models.coverage import IndustryCountryPair

DEFAULT_TTL_S = 3600.0
KEY_PREFIX = "data_fetch"


class FetchTracker(ABC):
    """TTL registry of pairs with a fetch in flight."""

    @abstractmethod
    async def mark(self, pair: IndustryCountryPair) -> None:
        ...

    @abstractmethod
    async def is_in_progress(self, pair: IndustryCountryPair) -> bool:
        ...

    @abstractmethod
    async def try_mark(self, pair: IndustryCountryPair) -> bool:
        """Mark ``pair`` unless it is already in flight. True if marked."""
        ...

    @abstractmethod
    async def clear(self, pair: IndustryCountryPair) -> None:
        ...

    @abstractmethod
    async def in_progress(self) -> list[IndustryCountryPair]:
        ...


class InMemoryFetchTracker(FetchTracker):
    """Process-local tracker guarded by an asyncio.Lock."""

    def __init__(
        self,
        ttl_s: float = DEFAULT_TTL_S,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl_s = ttl_s
        self._clock = clock
        self._started: dict[IndustryCountryPair, float] = {}
        self._lock = asyncio.Lock()

    async def mark(self, pair: IndustryCountryPair) -> None:
        async with self._lock:
            self._started[pair] = self._clock()

    async def is_in_progress(self, pair: IndustryCountryPair) -> bool:
        async with self._lock:
            return self._live(pair)

    async def try_mark(self, pair: IndustryCountryPair) -> bool:
        async with self._lock:
            if self._live(pair):
                return False
            self._started[pair] = self._clock()
            return True

    async def clear(self, pair: IndustryCountryPair) -> None:
        async with self._lock:
            self._started.pop(pair, None)

    async def in_progress(self) -> list[IndustryCountryPair]:
        async with self._lock:
            return [p for p in list(self._started) if self._live(p)]

    def _live(self, pair: IndustryCountryPair) -> bool:
        started = self._started.get(pair)
        if started is None:
            return False
        if self._clock() - started >= self._ttl_s:
            del self._started[pair]
            return False
        return True


class RedisFetchTracker(FetchTracker):
    """Tracker shared across processes: one Redis key per pair.

    ``try_mark`` is a single ``SET key NX EX ttl``, so two workers racing on
    the same pair cannot both win. Expiry is left to Redis.
    """

    def __init__(
        self,
        client: Any,
        *,
        ttl_s: float = DEFAULT_TTL_S,
        prefix: str = KEY_PREFIX,
    ) -> None:
        """
        Args:
            client: ``redis.asyncio.Redis`` created with ``decode_responses=True``.
            ttl_s: Lifetime of a mark, in seconds.
            prefix: Key namespace, ``{prefix}:{industry}:{country}``.
        """
        self._client = client
        self._ttl_s = max(1, int(ttl_s))
        self._prefix = prefix

    def key(self, pair: IndustryCountryPair) -> str:
        return f"{self._prefix}:{pair.industry}:{pair.country}"

    async def mark(self, pair: IndustryCountryPair) -> None:
        await self._client.set(self.key(pair), self._value(), ex=self._ttl_s)

    async def is_in_progress(self, pair: IndustryCountryPair) -> bool:
        return bool(await self._client.exists(self.key(pair)))

    async def try_mark(self, pair: IndustryCountryPair) -> bool:
        marked = await self._client.set(
            self.key(pair), self._value(), nx=True, ex=self._ttl_s,
        )
        return bool(marked)

    async def clear(self, pair: IndustryCountryPair) -> None:
        await self._client.delete(self.key(pair))

    async def in_progress(self) -> list[IndustryCountryPair]:
        pairs = []
        async for key in self._client.scan_iter(match=f"{self._prefix}:*"):
            _, industry, country = key.rsplit(":", 2)
            pairs.append(IndustryCountryPair(industry=industry, country=country))
        return pairs

    def _value(self) -> str:
        return json.dumps({"status": "in_progress", "started_at": int(time.time())})
