"""CoverageStore abstract interface.

Read-only query surface over the lead dataset. The monitor never writes
through it; remediation writes belong to the fetch collaborator.
"""

from abc import ABC, abstractmethod
from collections import Counter
from collections.abc import Iterable, Sequence

from src.acquisition.catalog import KNOWN_COUNTRIES, KNOWN_INDUSTRIES
from src.models.coverage import IndustryCountryPair


class CoverageStore(ABC):
    """Abstract coverage query surface.

    ``counts_by_pair`` has a default built on ``count_for_pair``; stores that
    can aggregate in one query should override it.
    """

    @abstractmethod
    async def count_for_pair(self, pair: IndustryCountryPair) -> int:
        """Number of records stored for one pair."""
        ...

    @abstractmethod
    async def all_known_industries(self) -> Sequence[str]:
        ...

    @abstractmethod
    async def all_known_countries(self) -> Sequence[str]:
        ...

    async def counts_by_pair(self) -> dict[IndustryCountryPair, int]:
        """Record count for every pair that has at least one record.

        Stores may return pairs outside the known pair space; callers filter.
        """
        counts: dict[IndustryCountryPair, int] = {}
        for industry in await self.all_known_industries():
            for country in await self.all_known_countries():
                pair = IndustryCountryPair(industry=industry, country=country)
                n = await self.count_for_pair(pair)
                if n > 0:
                    counts[pair] = n
        return counts

    async def has_records(self, pair: IndustryCountryPair) -> bool:
        return await self.count_for_pair(pair) > 0


class InMemoryCoverageStore(CoverageStore):
    """Dict-backed store. Production uses SqlCoverageStore."""

    def __init__(
        self,
        counts: dict[IndustryCountryPair, int] | None = None,
        *,
        industries: Iterable[str] = KNOWN_INDUSTRIES,
        countries: Iterable[str] = KNOWN_COUNTRIES,
    ) -> None:
        self._counts: Counter[IndustryCountryPair] = Counter()
        for pair, n in (counts or {}).items():
            self._counts[pair] += n
        self._industries = list(industries)
        self._countries = list(countries)

    def add(self, pair: IndustryCountryPair, n: int = 1) -> None:
        """Record ``n`` more records for ``pair``."""
        self._counts[pair] += n

    async def count_for_pair(self, pair: IndustryCountryPair) -> int:
        return self._counts.get(pair, 0)

    async def all_known_industries(self) -> list[str]:
        return list(self._industries)

    async def all_known_countries(self) -> list[str]:
        return list(self._countries)

    async def counts_by_pair(self) -> dict[IndustryCountryPair, int]:
        return {pair: n for pair, n in self._counts.items() if n > 0}
