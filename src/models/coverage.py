"""Coverage data model: pairs, fetch requests, batch outcomes, statistics.

Every object here is transient. Nothing is persisted by the monitor itself;
the fetched records live in the external dataset.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from pydantic import Field

from src.models.common import (
    CountryCode,
    IndustryName,
    MonitorBase,
    UTCTimestamp,
    UUIDv7,
    new_uuid7,
    utc_now,
)

if TYPE_CHECKING:
    from src.acquisition.errors import FetchFailure


class IndustryCountryPair(MonitorBase):
    """An (industry, country) coordinate in the coverage space.

    Identity is the pair itself, so instances are frozen and hashable.
    """

    model_config = {"frozen": True}

    industry: IndustryName
    country: CountryCode

    def __str__(self) -> str:
        return f"{self.industry}/{self.country}"


class FetchRequest(MonitorBase):
    """Unit of work dispatched to the external provider."""

    model_config = {"frozen": True}

    pair: IndustryCountryPair
    limit: int = Field(..., gt=0, description="Max records requested for the pair.")


class BatchPolicy(MonitorBase):
    """Concurrency and size policy for one BatchScheduler run."""

    model_config = {"frozen": True}

    max_concurrent: int = Field(..., gt=0)
    limit: int = Field(..., gt=0)


class FetchStatus(StrEnum):
    """Terminal state of a single fetch job."""

    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"  # another fetch for the pair was already in flight


class FetchFailureKind(StrEnum):
    """Why a single fetch failed."""

    NETWORK = "NETWORK"
    RATE_LIMITED = "RATE_LIMITED"
    PERSISTENCE = "PERSISTENCE"
    PROVIDER = "PROVIDER"
    DEADLINE_EXCEEDED = "DEADLINE_EXCEEDED"
    UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class CoverageGap:
    """A detected gap with its current record count and urgency."""

    pair: IndustryCountryPair
    count: int
    priority: int  # higher = more urgent


@dataclass(frozen=True)
class FetchOutcome:
    """Terminal result of one FetchJob."""

    pair: IndustryCountryPair
    status: FetchStatus
    records: int = 0
    error: FetchFailure | None = None
    duration_s: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.status == FetchStatus.SUCCEEDED

    @property
    def failed(self) -> bool:
        return self.status == FetchStatus.FAILED

    @property
    def reason(self) -> str | None:
        """Failure reason, or None when the job did not fail."""
        if self.error is None:
            return None
        return str(self.error)


@dataclass
class BatchResult:
    """Outcomes of one batch, keyed by pair.

    Keyed rather than positional: completion order is not guaranteed.
    """

    policy: BatchPolicy
    outcomes: dict[IndustryCountryPair, FetchOutcome] = field(default_factory=dict)
    batch_id: UUIDv7 = field(default_factory=new_uuid7)

    @property
    def submitted(self) -> int:
        return len(self.outcomes)

    @property
    def succeeded(self) -> list[IndustryCountryPair]:
        return [p for p, o in self.outcomes.items() if o.status == FetchStatus.SUCCEEDED]

    @property
    def failed(self) -> list[IndustryCountryPair]:
        return [p for p, o in self.outcomes.items() if o.status == FetchStatus.FAILED]

    @property
    def skipped(self) -> list[IndustryCountryPair]:
        return [p for p, o in self.outcomes.items() if o.status == FetchStatus.SKIPPED]

    @property
    def failures(self) -> dict[IndustryCountryPair, FetchFailure]:
        """Failure per pair, for callers stricter than an aggregate count."""
        return {
            p: o.error for p, o in self.outcomes.items()
            if o.status == FetchStatus.FAILED and o.error is not None
        }

    @property
    def exhausted(self) -> bool:
        """True when no job succeeded and at least one failed.

        Skipped pairs count as neither: a batch of only skips is not
        exhausted, but skips do not rescue a batch whose other jobs all failed.
        """
        return not self.succeeded and bool(self.failed)

    @property
    def records_fetched(self) -> int:
        return sum(o.records for o in self.outcomes.values())

    def to_dict(self) -> dict:
        return {
            "batch_id": str(self.batch_id),
            "max_concurrent": self.policy.max_concurrent,
            "limit": self.policy.limit,
            "submitted": self.submitted,
            "succeeded": len(self.succeeded),
            "failed": len(self.failed),
            "skipped": len(self.skipped),
            "records_fetched": self.records_fetched,
            "failures": {str(p): str(e) for p, e in self.failures.items()},
        }


class PopulationStats(MonitorBase):
    """Whole-dataset snapshot, recomputed on every request."""

    total_records: int = 0
    per_industry_counts: dict[str, int] = Field(default_factory=dict)
    per_country_counts: dict[str, int] = Field(default_factory=dict)
    total_combinations: int = Field(
        default=0, description="Pairs with at least one record.",
    )
    pair_space_size: int = 0
    coverage_ratio: float = Field(
        default=0.0, description="Share of the pair space with any record.",
    )
    threshold: int = Field(default=100, description="Threshold used for tier_counts.")
    tier_counts: dict[str, int] = Field(
        default_factory=lambda: {"missing": 0, "low": 0, "healthy": 0},
    )
    computed_at: UTCTimestamp = Field(default_factory=utc_now)


@dataclass
class AutoPopulateResult:
    """Result of one auto-populate run, echoing its configuration."""

    pairs: list[IndustryCountryPair]
    threshold: int
    requested_count: int
    max_concurrent: int
    limit: int
    include_missing: bool
    batch: BatchResult | None = None

    @property
    def triggered(self) -> bool:
        """False for the no-op result (nothing to remediate)."""
        return self.batch is not None

    @property
    def count(self) -> int:
        """Number of pairs handed to the batch (0 for the no-op result)."""
        return len(self.pairs)

    def to_dict(self) -> dict:
        return {
            "count": len(self.pairs),
            "requested_count": self.requested_count,
            "threshold": self.threshold,
            "limit": self.limit,
            "max_concurrent": self.max_concurrent,
            "include_missing": self.include_missing,
            "pairs": [p.model_dump() for p in self.pairs],
            "batch": self.batch.to_dict() if self.batch is not None else None,
        }
