"""DataMonitor: the operations the acquisition core exposes upward.

Wires CoverageInspector, FetchJob, BatchScheduler, PopulationStatsAggregator
and AutoPopulateOrchestrator over one CoverageStore and one fetch
collaborator.

Every operation takes an optional absolute ``deadline`` (event-loop time).
When omitted, the deadline is derived once here from MonitorDefaults and then
propagated unchanged to every collaborator.
"""

import asyncio
from collections.abc import Sequence

from src.acquisition.config import MonitorDefaults
from src.acquisition.fetch import FetchCollaborator, FetchJob
from src.acquisition.inspector import CoverageInspector
from src.acquisition.orchestrator import AutoPopulateOrchestrator
from src.acquisition.scheduler import BatchScheduler
from src.acquisition.stats import PopulationStatsAggregator
from src.acquisition.store import CoverageStore
from src.acquisition.tracker import FetchTracker
from src.models.coverage import (
    AutoPopulateResult,
    BatchResult,
    FetchOutcome,
    FetchStatus,
    IndustryCountryPair,
    PopulationStats,
)


class DataMonitor:
    """Facade over detection, remediation and statistics."""

    def __init__(
        self,
        store: CoverageStore,
        collaborator: FetchCollaborator,
        *,
        defaults: MonitorDefaults | None = None,
        tracker: FetchTracker | None = None,
        pause_s: float = 0.0,
    ) -> None:
        self.defaults = defaults or MonitorDefaults()
        self.tracker = tracker
        self._inspector = CoverageInspector(store)
        self._job = FetchJob(collaborator, tracker)
        self._scheduler = BatchScheduler(self._job, pause_s=pause_s)
        self._stats = PopulationStatsAggregator(store)
        self._orchestrator = AutoPopulateOrchestrator(
            self._inspector, self._scheduler, self.defaults,
        )

    async def detect_low_data(
        self,
        threshold: int | None = None,
        *,
        deadline: float | None = None,
    ) -> list[IndustryCountryPair]:
        return await self._inspector.detect_low_data(
            self.defaults.resolve_threshold(threshold),
            deadline=_deadline(deadline, self.defaults.detection_timeout_s),
        )

    async def detect_missing(
        self,
        *,
        deadline: float | None = None,
    ) -> list[IndustryCountryPair]:
        return await self._inspector.detect_missing(
            deadline=_deadline(deadline, self.defaults.detection_timeout_s),
        )

    async def trigger_fetch(
        self,
        pair: IndustryCountryPair,
        limit: int | None = None,
        *,
        deadline: float | None = None,
    ) -> FetchOutcome:
        """Fetch one pair.

        Raises:
            FetchFailure: the fetch failed. A skipped pair is not a failure.
        """
        outcome = await self._job.run(
            pair,
            self.defaults.resolve_limit(limit),
            deadline=_deadline(deadline, self.defaults.fetch_timeout_s),
        )
        if outcome.status == FetchStatus.FAILED and outcome.error is not None:
            raise outcome.error
        return outcome

    async def trigger_batch(
        self,
        pairs: Sequence[IndustryCountryPair],
        limit: int | None = None,
        max_concurrent: int | None = None,
        *,
        deadline: float | None = None,
    ) -> BatchResult:
        return await self._scheduler.run_batch(
            pairs,
            self.defaults.resolve_limit(limit),
            self.defaults.resolve_max_concurrent(max_concurrent),
            deadline=_deadline(deadline, self.defaults.batch_timeout_s),
        )

    async def stats(
        self,
        threshold: int | None = None,
        *,
        deadline: float | None = None,
    ) -> PopulationStats:
        return await self._stats.compute(
            threshold=self.defaults.resolve_threshold(threshold),
            deadline=_deadline(deadline, self.defaults.stats_timeout_s),
        )

    async def auto_populate(
        self,
        threshold: int | None = None,
        count: int | None = None,
        max_concurrent: int | None = None,
        limit: int | None = None,
        include_missing: bool | None = None,
        *,
        deadline: float | None = None,
    ) -> AutoPopulateResult:
        return await self._orchestrator.run(
            threshold=threshold,
            count=count,
            max_concurrent=max_concurrent,
            limit=limit,
            include_missing=include_missing,
            deadline=_deadline(deadline, self.defaults.auto_populate_timeout_s),
        )


def _deadline(deadline: float | None, timeout_s: float) -> float:
    if deadline is not None:
        return deadline
    return asyncio.get_running_loop().time() + timeout_s
