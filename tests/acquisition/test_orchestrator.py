"""Tests for AutoPopulateOrchestrator: detect, merge, truncate, remediate."""

import pytest

from src.acquisition.config import MonitorDefaults
from src.acquisition.errors import BatchExhausted, UpstreamReadFailure
from src.acquisition.fetch import FetchJob
from src.acquisition.inspector import CoverageInspector
from src.acquisition.orchestrator import AutoPopulateOrchestrator
from src.acquisition.scheduler import BatchScheduler
from src.acquisition.store import InMemoryCoverageStore
from src.models.coverage import IndustryCountryPair


def _p(industry: str, country: str) -> IndustryCountryPair:
    return IndustryCountryPair(industry=industry, country=country)


def _orchestrator(store, fetcher, defaults=None) -> AutoPopulateOrchestrator:
    return AutoPopulateOrchestrator(
        CoverageInspector(store),
        BatchScheduler(FetchJob(fetcher)),
        defaults,
    )


class BrokenStore(InMemoryCoverageStore):
    async def counts_by_pair(self):
        msg = "database unavailable"
        raise OSError(msg)


@pytest.fixture
def gap_store() -> InMemoryCoverageStore:
    """Three low-data pairs (a/X, a/Y, b/X) and three missing (b/Y, c/X, c/Y)."""
    return InMemoryCoverageStore(
        {_p("a", "X"): 5, _p("a", "Y"): 10, _p("b", "X"): 99, _p("d", "X"): 500},
        industries=["a", "b", "c"],
        countries=["X", "Y"],
    )


class TestNoOp:
    """Nothing to remediate is a successful no-op."""

    @pytest.mark.anyio
    async def test_empty_store_low_data_only(self, fetcher) -> None:
        store = InMemoryCoverageStore()
        result = await _orchestrator(store, fetcher).run()
        assert result.count == 0
        assert result.pairs == []
        assert not result.triggered
        assert result.batch is None
        assert fetcher.requests == []

    @pytest.mark.anyio
    async def test_healthy_store(self, fetcher) -> None:
        store = InMemoryCoverageStore(
            {_p("a", "X"): 200}, industries=["a"], countries=["X"],
        )
        result = await _orchestrator(store, fetcher).run(include_missing=True)
        assert result.count == 0
        assert fetcher.requests == []

    @pytest.mark.anyio
    async def test_noop_echoes_configuration(self, fetcher) -> None:
        result = await _orchestrator(InMemoryCoverageStore(), fetcher).run(
            threshold=50, count=4, max_concurrent=2, limit=300,
        )
        assert result.to_dict() == {
            "count": 0,
            "requested_count": 4,
            "threshold": 50,
            "limit": 300,
            "max_concurrent": 2,
            "include_missing": False,
            "pairs": [],
            "batch": None,
        }


class TestSelection:
    """Low-data first, missing appended, truncated after merging."""

    @pytest.mark.anyio
    async def test_low_data_only_by_default(self, gap_store, fetcher) -> None:
        result = await _orchestrator(gap_store, fetcher).run()
        assert result.pairs == [_p("a", "X"), _p("a", "Y"), _p("b", "X")]
        assert set(fetcher.started) == set(result.pairs)

    @pytest.mark.anyio
    async def test_missing_appended_after_low_data(self, gap_store, fetcher) -> None:
        result = await _orchestrator(gap_store, fetcher).run(include_missing=True)
        assert result.pairs == [
            _p("a", "X"), _p("a", "Y"), _p("b", "X"),
            _p("b", "Y"), _p("c", "X"), _p("c", "Y"),
        ]

    @pytest.mark.anyio
    @pytest.mark.parametrize("count", [1, 2, 3])
    async def test_count_within_low_data_excludes_missing(
        self, gap_store, fetcher, count,
    ) -> None:
        result = await _orchestrator(gap_store, fetcher).run(
            count=count, include_missing=True,
        )
        low = {_p("a", "X"), _p("a", "Y"), _p("b", "X")}
        assert len(result.pairs) == count
        assert set(result.pairs) <= low

    @pytest.mark.anyio
    async def test_truncation_spills_into_missing(self, gap_store, fetcher) -> None:
        result = await _orchestrator(gap_store, fetcher).run(count=4, include_missing=True)
        assert result.pairs[-1] == _p("b", "Y")
        assert result.count == 4
        assert result.batch.submitted == 4

    @pytest.mark.anyio
    async def test_batch_size_never_exceeds_count(self, gap_store, fetcher) -> None:
        result = await _orchestrator(gap_store, fetcher).run(count=2, include_missing=True)
        assert result.batch.submitted <= 2
        assert len(fetcher.requests) <= 2

    @pytest.mark.anyio
    async def test_threshold_moves_pairs_into_low_data(self, gap_store, fetcher) -> None:
        result = await _orchestrator(gap_store, fetcher).run(threshold=6)
        assert result.pairs == [_p("a", "X")]


class TestDefaults:
    """Zero or unset parameters take the configured defaults."""

    @pytest.mark.anyio
    async def test_zero_parameters_take_defaults(self, gap_store, fetcher) -> None:
        result = await _orchestrator(gap_store, fetcher).run(
            threshold=0, count=0, max_concurrent=0, limit=0,
        )
        assert result.threshold == 100
        assert result.requested_count == 10
        assert result.max_concurrent == 3
        assert result.limit == 1000
        assert {r.limit for r in fetcher.requests} == {1000}

    @pytest.mark.anyio
    async def test_custom_defaults(self, gap_store, fetcher) -> None:
        defaults = MonitorDefaults(count=1, limit=25, include_missing=True)
        result = await _orchestrator(gap_store, fetcher, defaults).run()
        assert result.pairs == [_p("a", "X")]
        assert result.include_missing is True
        assert fetcher.requests[0].limit == 25


class TestFailures:
    @pytest.mark.anyio
    async def test_detection_failure_starts_no_fetch(self, fetcher) -> None:
        store = BrokenStore(industries=["a"], countries=["X"])
        with pytest.raises(UpstreamReadFailure):
            await _orchestrator(store, fetcher).run(include_missing=True)
        assert fetcher.requests == []

    @pytest.mark.anyio
    async def test_partial_failure_reported(self, gap_store, make_fetcher) -> None:
        fetcher = make_fetcher(failures={_p("a", "Y"): RuntimeError("boom")})
        result = await _orchestrator(gap_store, fetcher).run()
        assert result.triggered
        assert result.batch.failed == [_p("a", "Y")]
        assert len(result.batch.succeeded) == 2

    @pytest.mark.anyio
    async def test_all_failed_propagates(self, gap_store, make_fetcher) -> None:
        failures = {p: RuntimeError("boom") for p in [_p("a", "X"), _p("a", "Y"), _p("b", "X")]}
        fetcher = make_fetcher(failures=failures)
        with pytest.raises(BatchExhausted):
            await _orchestrator(gap_store, fetcher).run()
