"""Tests for coverage value objects."""

import pytest
from pydantic import ValidationError

from src.acquisition.errors import FetchFailure
from src.models.coverage import (
    AutoPopulateResult,
    BatchPolicy,
    BatchResult,
    FetchFailureKind,
    FetchOutcome,
    FetchRequest,
    FetchStatus,
    IndustryCountryPair,
)

GYM_US = IndustryCountryPair(industry="gym", country="US")
GYM_DE = IndustryCountryPair(industry="gym", country="DE")


class TestIndustryCountryPair:
    def test_identity_is_the_pair(self) -> None:
        assert GYM_US == IndustryCountryPair(industry="gym", country="US")
        assert len({GYM_US, IndustryCountryPair(industry="gym", country="US")}) == 1

    def test_str(self) -> None:
        assert str(GYM_US) == "gym/US"

    def test_immutable(self) -> None:
        with pytest.raises(ValidationError):
            GYM_US.country = "DE"  # type: ignore[misc]

    @pytest.mark.parametrize(("industry", "country"), [("", "US"), ("gym", ""), ("gym", "USA")])
    def test_invalid(self, industry, country) -> None:
        with pytest.raises(ValidationError):
            IndustryCountryPair(industry=industry, country=country)


class TestFetchRequest:
    def test_limit_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            FetchRequest(pair=GYM_US, limit=0)

    def test_batch_policy_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            BatchPolicy(max_concurrent=0, limit=10)


class TestBatchResult:
    def _result(self, *outcomes: FetchOutcome) -> BatchResult:
        result = BatchResult(policy=BatchPolicy(max_concurrent=2, limit=10))
        for o in outcomes:
            result.outcomes[o.pair] = o
        return result

    def test_counts(self) -> None:
        error = FetchFailure("reset", kind=FetchFailureKind.NETWORK, pair=GYM_DE)
        result = self._result(
            FetchOutcome(pair=GYM_US, status=FetchStatus.SUCCEEDED, records=7),
            FetchOutcome(pair=GYM_DE, status=FetchStatus.FAILED, error=error),
        )
        assert result.submitted == 2
        assert result.succeeded == [GYM_US]
        assert result.failed == [GYM_DE]
        assert result.failures == {GYM_DE: error}
        assert result.records_fetched == 7
        assert not result.exhausted

    def test_skipped_only_is_not_exhausted(self) -> None:
        result = self._result(FetchOutcome(pair=GYM_US, status=FetchStatus.SKIPPED))
        assert not result.exhausted
        assert result.skipped == [GYM_US]

    def test_skipped_and_failed_without_success_is_exhausted(self) -> None:
        error = FetchFailure("reset", kind=FetchFailureKind.NETWORK, pair=GYM_DE)
        result = self._result(
            FetchOutcome(pair=GYM_US, status=FetchStatus.SKIPPED),
            FetchOutcome(pair=GYM_DE, status=FetchStatus.FAILED, error=error),
        )
        assert result.exhausted

    def test_empty_is_not_exhausted(self) -> None:
        assert not self._result().exhausted

    def test_batch_ids_are_unique(self) -> None:
        assert self._result().batch_id != self._result().batch_id


class TestFetchFailure:
    def test_str_includes_kind_and_pair(self) -> None:
        error = FetchFailure("HTTP 429", kind=FetchFailureKind.RATE_LIMITED, pair=GYM_US)
        assert str(error) == "[RATE_LIMITED] gym/US: HTTP 429"

    def test_str_without_pair(self) -> None:
        assert str(FetchFailure("boom")) == "[UNKNOWN] boom"


class TestAutoPopulateResult:
    def test_noop(self) -> None:
        result = AutoPopulateResult(
            pairs=[], threshold=100, requested_count=10,
            max_concurrent=3, limit=1000, include_missing=False,
        )
        assert result.count == 0
        assert not result.triggered
        assert result.to_dict()["batch"] is None
