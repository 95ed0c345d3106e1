"""AutoPopulateOrchestrator: detect coverage gaps, then remediate them.

Steps:
1. Low-data pairs (count below threshold).
2. Optionally append missing pairs. Low-data pairs stay first.
3. Truncate to ``count`` after merging, first-detected first-served.
4. Nothing left: return the no-op result, not an error.
5. Otherwise run the batch and echo the configuration.

Detection errors propagate as UpstreamReadFailure before any fetch starts.
A batch in which no job succeeded and at least one failed propagates as
BatchExhausted.
"""

import logging

from src.acquisition.config import MonitorDefaults
from src.acquisition.inspector import CoverageInspector
from src.acquisition.scheduler import BatchScheduler
from src.models.coverage import AutoPopulateResult

logger = logging.getLogger(__name__)


class AutoPopulateOrchestrator:
    """Composite detect-then-remediate workflow."""

    def __init__(
        self,
        inspector: CoverageInspector,
        scheduler: BatchScheduler,
        defaults: MonitorDefaults | None = None,
    ) -> None:
        self._inspector = inspector
        self._scheduler = scheduler
        self._defaults = defaults or MonitorDefaults()

    async def run(
        self,
        *,
        threshold: int | None = None,
        count: int | None = None,
        max_concurrent: int | None = None,
        limit: int | None = None,
        include_missing: bool | None = None,
        deadline: float | None = None,
    ) -> AutoPopulateResult:
        """Run the workflow. ``None`` or ``0`` parameters take the defaults."""
        d = self._defaults
        threshold = d.resolve_threshold(threshold)
        count = d.resolve_count(count)
        max_concurrent = d.resolve_max_concurrent(max_concurrent)
        limit = d.resolve_limit(limit)
        include_missing = d.resolve_include_missing(include_missing)

        pairs = await self._inspector.detect_low_data(threshold, deadline=deadline)
        if include_missing:
            missing = await self._inspector.detect_missing(deadline=deadline)
            # Two separate reads: a concurrent write can move a pair across sets.
            pairs = list(dict.fromkeys(pairs + missing))

        if len(pairs) > count:
            logger.info("Truncating %d candidate pairs to %d", len(pairs), count)
            pairs = pairs[:count]

        result = AutoPopulateResult(
            pairs=pairs,
            threshold=threshold,
            requested_count=count,
            max_concurrent=max_concurrent,
            limit=limit,
            include_missing=include_missing,
        )
        if not pairs:
            logger.info("No industries need population")
            return result

        logger.info("Auto-populating %d pairs", len(pairs))
        result.batch = await self._scheduler.run_batch(
            pairs, limit, max_concurrent, deadline=deadline,
        )
        return result
