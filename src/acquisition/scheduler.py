"""BatchScheduler: bounded-concurrency fan-out of FetchJobs.

A fixed pool of ``max_concurrent`` workers consumes pending pairs from a
FIFO queue. Each worker runs one job at a time, so at most
``max_concurrent`` jobs are ever in flight; a worker takes the next pair as
soon as its job reaches a terminal state. Jobs start in input order;
completion order is unconstrained, so outcomes are keyed by pair.

Once the deadline passes no new job starts. Jobs already running are not
cancelled; they receive the same deadline and are expected to honour it.
Pairs that never started are recorded as DEADLINE_EXCEEDED failures.
"""

import asyncio
import logging
from collections.abc import Sequence

from src.acquisition.errors import BatchExhausted, FetchFailure, require_positive
from src.acquisition.fetch import FetchJob
from src.models.coverage import (
    BatchPolicy,
    BatchResult,
    FetchFailureKind,
    FetchOutcome,
    FetchStatus,
    IndustryCountryPair,
)

logger = logging.getLogger(__name__)


class BatchScheduler:
    """Runs one FetchJob per pair under a concurrency bound."""

    def __init__(self, job: FetchJob, *, pause_s: float = 0.0) -> None:
        """
        Args:
            job: Runs a single pair to a terminal outcome.
            pause_s: Cool-down a worker observes between two of its jobs,
                spacing out requests to the provider. 0 disables it.
        """
        self._job = job
        self._pause_s = pause_s

    async def run_batch(
        self,
        pairs: Sequence[IndustryCountryPair],
        limit: int,
        max_concurrent: int,
        *,
        deadline: float | None = None,
    ) -> BatchResult:
        """Run every pair to a terminal outcome.

        Returns only after all submitted jobs are terminal. Individual
        failures are kept in the result.

        Raises:
            InvalidArgumentError: limit or max_concurrent is not positive.
            BatchExhausted: no job succeeded and at least one failed. The full
                result is attached.
        """
        policy = BatchPolicy(
            max_concurrent=require_positive("max_concurrent", max_concurrent),
            limit=require_positive("limit", limit),
        )
        result = BatchResult(policy=policy)

        pending = list(dict.fromkeys(pairs))
        if len(pending) < len(pairs):
            logger.info(
                "Collapsed %d duplicate pairs in batch %s",
                len(pairs) - len(pending), result.batch_id,
            )
        if not pending:
            logger.info("Batch %s is empty, nothing to fetch", result.batch_id)
            return result

        queue: asyncio.Queue[IndustryCountryPair] = asyncio.Queue()
        for pair in pending:
            queue.put_nowait(pair)

        n_workers = min(policy.max_concurrent, len(pending))
        logger.info(
            "Triggering batch fetch %s for %d pairs (max concurrent: %d, limit: %d)",
            result.batch_id, len(pending), policy.max_concurrent, policy.limit,
        )

        await asyncio.gather(*(
            self._worker(queue, result, deadline) for _ in range(n_workers)
        ))

        logger.info(
            "Batch fetch %s finished: %d succeeded, %d failed, %d skipped",
            result.batch_id, len(result.succeeded), len(result.failed),
            len(result.skipped),
        )
        if result.exhausted:
            logger.error("Batch fetch %s: no job succeeded", result.batch_id)
            raise BatchExhausted(result)
        return result

    async def _worker(
        self,
        queue: asyncio.Queue[IndustryCountryPair],
        result: BatchResult,
        deadline: float | None,
    ) -> None:
        loop = asyncio.get_running_loop()
        while True:
            try:
                pair = queue.get_nowait()
            except asyncio.QueueEmpty:
                return

            if deadline is not None and loop.time() >= deadline:
                logger.warning("Deadline passed, not starting fetch for %s", pair)
                result.outcomes[pair] = _not_started(pair)
                continue

            result.outcomes[pair] = await self._job.run(
                pair, result.policy.limit, deadline=deadline,
            )

            if self._pause_s > 0 and not queue.empty():
                await asyncio.sleep(self._pause_s)


def _not_started(pair: IndustryCountryPair) -> FetchOutcome:
    error = FetchFailure(
        "Deadline expired before the fetch was started",
        kind=FetchFailureKind.DEADLINE_EXCEEDED,
        pair=pair,
    )
    return FetchOutcome(pair=pair, status=FetchStatus.FAILED, error=error)
