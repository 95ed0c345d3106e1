"""CoverageInspector: classify pairs as low-data or missing.

All-or-nothing: any CoverageStore error, or an expired deadline, aborts the
whole detection as UpstreamReadFailure. A partially computed gap set would be
misleading, so none is ever returned.

For a given read, low-data and missing are disjoint by construction:
missing means count == 0, low-data means 0 < count < threshold.
"""

import asyncio
import logging

from src.acquisition.errors import UpstreamReadFailure, require_positive
from src.acquisition.pair_space import PairSpace
from src.acquisition.store import CoverageStore
from src.models.coverage import CoverageGap, IndustryCountryPair

logger = logging.getLogger(__name__)

MISSING_PRIORITY = 100


class CoverageInspector:
    """Derives low-data and missing pair sets from the coverage store."""

    def __init__(self, store: CoverageStore) -> None:
        self._store = store

    async def low_data_gaps(
        self,
        threshold: int,
        *,
        deadline: float | None = None,
    ) -> list[CoverageGap]:
        """Pairs with ``0 < count < threshold``, in pair-space order.

        Priority is ``threshold - count``: the sparser the pair, the higher.
        """
        require_positive("threshold", threshold)
        logger.info("Detecting pairs with fewer than %d records", threshold)

        space, counts = await self._read(deadline)
        gaps = []
        for pair in space:
            n = counts.get(pair, 0)
            if 0 < n < threshold:
                gaps.append(CoverageGap(pair=pair, count=n, priority=threshold - n))

        logger.info("Found %d low-data pairs below %d records", len(gaps), threshold)
        return gaps

    async def missing_gaps(self, *, deadline: float | None = None) -> list[CoverageGap]:
        """Pairs of the pair space with no record at all, in pair-space order."""
        logger.info("Detecting missing industry/country pairs")

        space, counts = await self._read(deadline)
        gaps = [
            CoverageGap(pair=pair, count=0, priority=MISSING_PRIORITY)
            for pair in space
            if counts.get(pair, 0) == 0
        ]

        logger.info("Found %d missing pairs out of %d", len(gaps), len(space))
        return gaps

    async def detect_low_data(
        self,
        threshold: int,
        *,
        deadline: float | None = None,
    ) -> list[IndustryCountryPair]:
        gaps = await self.low_data_gaps(threshold, deadline=deadline)
        return [g.pair for g in gaps]

    async def detect_missing(
        self,
        *,
        deadline: float | None = None,
    ) -> list[IndustryCountryPair]:
        gaps = await self.missing_gaps(deadline=deadline)
        return [g.pair for g in gaps]

    async def _read(
        self,
        deadline: float | None,
    ) -> tuple[PairSpace, dict[IndustryCountryPair, int]]:
        """Read the pair space and the per-pair counts, failing as a whole."""
        try:
            async with asyncio.timeout_at(deadline):
                space = await PairSpace.from_store(self._store)
                counts = await self._store.counts_by_pair()
        except TimeoutError as exc:
            msg = "Coverage read did not finish before the deadline"
            raise UpstreamReadFailure(msg) from exc
        except Exception as exc:
            msg = f"Coverage read failed: {exc}"
            raise UpstreamReadFailure(msg) from exc
        return space, counts
