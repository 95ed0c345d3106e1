"""Tests for PopulationStatsAggregator."""

import pytest

from src.acquisition.errors import InvalidArgumentError, UpstreamReadFailure
from src.acquisition.stats import PopulationStatsAggregator
from src.acquisition.store import InMemoryCoverageStore
from src.models.coverage import IndustryCountryPair


def _p(industry: str, country: str) -> IndustryCountryPair:
    return IndustryCountryPair(industry=industry, country=country)


class TestPopulationStats:
    @pytest.mark.anyio
    async def test_totals_and_breakdowns(self, small_store) -> None:
        stats = await PopulationStatsAggregator(small_store).compute()
        assert stats.total_records == 195
        assert stats.per_industry_counts == {"tattoo": 155, "gym": 40}
        assert stats.per_country_counts == {"DE": 150, "US": 45}
        assert stats.total_combinations == 3

    @pytest.mark.anyio
    async def test_breakdowns_sorted_descending(self, small_store) -> None:
        stats = await PopulationStatsAggregator(small_store).compute()
        assert list(stats.per_country_counts) == ["DE", "US"]

    @pytest.mark.anyio
    async def test_coverage_and_tiers(self, small_store) -> None:
        stats = await PopulationStatsAggregator(small_store).compute(threshold=100)
        assert stats.pair_space_size == 4
        assert stats.coverage_ratio == pytest.approx(0.75)
        assert stats.threshold == 100
        assert stats.tier_counts == {"missing": 1, "low": 2, "healthy": 1}

    @pytest.mark.anyio
    async def test_tiers_follow_threshold(self, small_store) -> None:
        stats = await PopulationStatsAggregator(small_store).compute(threshold=10)
        assert stats.tier_counts == {"missing": 1, "low": 1, "healthy": 2}

    @pytest.mark.anyio
    async def test_records_outside_space_counted_in_totals_only(self) -> None:
        store = InMemoryCoverageStore(
            {_p("a", "X"): 3, _p("z", "Q"): 7}, industries=["a"], countries=["X"],
        )
        stats = await PopulationStatsAggregator(store).compute()
        assert stats.total_records == 10
        assert stats.pair_space_size == 1
        assert stats.coverage_ratio == 1.0
        assert sum(stats.tier_counts.values()) == 1

    @pytest.mark.anyio
    async def test_empty_space(self) -> None:
        store = InMemoryCoverageStore(industries=[], countries=[])
        stats = await PopulationStatsAggregator(store).compute()
        assert stats.total_records == 0
        assert stats.coverage_ratio == 0.0

    @pytest.mark.anyio
    async def test_fresh_snapshot_each_call(self, small_store) -> None:
        aggregator = PopulationStatsAggregator(small_store)
        before = await aggregator.compute()
        small_store.add(_p("gym", "DE"), 12)
        after = await aggregator.compute()
        assert after.total_records == before.total_records + 12
        assert after.tier_counts["missing"] == 0

    @pytest.mark.anyio
    async def test_invalid_threshold(self, small_store) -> None:
        with pytest.raises(InvalidArgumentError):
            await PopulationStatsAggregator(small_store).compute(threshold=0)

    @pytest.mark.anyio
    async def test_store_error(self) -> None:
        class BrokenStore(InMemoryCoverageStore):
            async def all_known_industries(self):
                msg = "catalog unavailable"
                raise RuntimeError(msg)

        with pytest.raises(UpstreamReadFailure, match="catalog unavailable"):
            await PopulationStatsAggregator(BrokenStore()).compute()
