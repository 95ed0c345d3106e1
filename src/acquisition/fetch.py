"""FetchJob and the fetch collaborator interface.

A FetchJob remediates exactly one pair: it hands a FetchRequest to the
injected collaborator and turns whatever happens into a terminal
FetchOutcome. It never retries, and a failing job never raises into its
siblings.
"""

import asyncio
import logging
from abc import ABC, abstractmethod

from src.acquisition.errors import FetchFailure, require_positive
from src.acquisition.tracker import FetchTracker
from src.models.coverage import (
    FetchFailureKind,
    FetchOutcome,
    FetchRequest,
    FetchStatus,
    IndustryCountryPair,
)

logger = logging.getLogger(__name__)


class FetchCollaborator(ABC):
    """Fetches records for one pair from the external provider and persists them."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable provider name for logging."""
        ...

    @abstractmethod
    async def fetch_and_persist(
        self,
        request: FetchRequest,
        *,
        deadline: float | None = None,
    ) -> int:
        """Fetch at most ``request.limit`` records and persist them.

        Args:
            request: Pair and per-pair record cap.
            deadline: Absolute event-loop time (``loop.time()``) the fetch
                must respect. None means no deadline.

        Returns:
            Number of records persisted.

        Raises:
            FetchFailure: typed failure (network, rate limit, persistence...).
        """
        ...


class FetchJob:
    """Runs one FetchRequest to a terminal FetchOutcome."""

    def __init__(
        self,
        collaborator: FetchCollaborator,
        tracker: FetchTracker | None = None,
    ) -> None:
        self._collaborator = collaborator
        self._tracker = tracker

    async def run(
        self,
        pair: IndustryCountryPair,
        limit: int,
        *,
        deadline: float | None = None,
    ) -> FetchOutcome:
        require_positive("limit", limit)
        request = FetchRequest(pair=pair, limit=limit)

        if self._tracker is not None and not await self._tracker.try_mark(pair):
            logger.info("Fetch already in progress for %s, skipping", pair)
            return FetchOutcome(pair=pair, status=FetchStatus.SKIPPED)

        loop = asyncio.get_running_loop()
        started = loop.time()
        try:
            records = await self._execute(request, deadline, started)
        except FetchFailure as exc:
            if exc.pair is None:
                exc.pair = pair
            duration = loop.time() - started
            logger.warning(
                "Data fetch failed for %s via %s: %s (duration: %.2fs)",
                pair, self._collaborator.name, exc, duration,
            )
            return FetchOutcome(
                pair=pair, status=FetchStatus.FAILED, error=exc, duration_s=duration,
            )
        finally:
            if self._tracker is not None:
                await self._tracker.clear(pair)

        duration = loop.time() - started
        logger.info(
            "Data fetch completed for %s via %s: %d records (duration: %.2fs)",
            pair, self._collaborator.name, records, duration,
        )
        return FetchOutcome(
            pair=pair, status=FetchStatus.SUCCEEDED, records=records, duration_s=duration,
        )

    async def _execute(
        self,
        request: FetchRequest,
        deadline: float | None,
        now: float,
    ) -> int:
        """Call the collaborator, normalising every failure to FetchFailure."""
        if deadline is not None and now >= deadline:
            msg = "Deadline expired before the fetch started"
            raise FetchFailure(
                msg, kind=FetchFailureKind.DEADLINE_EXCEEDED, pair=request.pair,
            )
        try:
            return await self._collaborator.fetch_and_persist(request, deadline=deadline)
        except FetchFailure:
            raise
        except TimeoutError as exc:
            msg = "Fetch did not finish before the deadline"
            raise FetchFailure(
                msg, kind=FetchFailureKind.DEADLINE_EXCEEDED, pair=request.pair,
            ) from exc
        except Exception as exc:
            logger.exception("Unexpected error fetching %s", request.pair)
            msg = f"Unexpected {type(exc).__name__}: {exc}"
            raise FetchFailure(
                msg, kind=FetchFailureKind.UNKNOWN, pair=request.pair,
            ) from exc
