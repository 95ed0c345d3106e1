"""PairSpace: the full industry x country cross-product. Pure and stateless."""

from collections.abc import Iterable, Iterator

from src.acquisition.store import CoverageStore
from src.models.coverage import IndustryCountryPair


class PairSpace:
    """Ordered, duplicate-free cross-product of industries and countries.

    Iteration is industry-major in the order the dimensions were given.
    """

    def __init__(self, industries: Iterable[str], countries: Iterable[str]) -> None:
        self._industries = tuple(dict.fromkeys(industries))
        self._countries = tuple(dict.fromkeys(countries))

    @classmethod
    async def from_store(cls, store: CoverageStore) -> "PairSpace":
        """Build the pair space from the store's known dimensions."""
        industries = await store.all_known_industries()
        countries = await store.all_known_countries()
        return cls(industries, countries)

    @property
    def industries(self) -> tuple[str, ...]:
        return self._industries

    @property
    def countries(self) -> tuple[str, ...]:
        return self._countries

    def __iter__(self) -> Iterator[IndustryCountryPair]:
        for industry in self._industries:
            for country in self._countries:
                yield IndustryCountryPair(industry=industry, country=country)

    def __len__(self) -> int:
        return len(self._industries) * len(self._countries)

    def __contains__(self, pair: object) -> bool:
        if not isinstance(pair, IndustryCountryPair):
            return False
        return pair.industry in self._industries and pair.country in self._countries
