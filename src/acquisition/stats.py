"""PopulationStatsAggregator: whole-dataset statistics for reporting.

Single read pass over the coverage store. Has no influence on remediation.
"""

import asyncio
from collections import Counter

from src.acquisition.config import DEFAULT_THRESHOLD
from src.acquisition.errors import UpstreamReadFailure, require_positive
from src.acquisition.pair_space import PairSpace
from src.acquisition.store import CoverageStore
from src.models.coverage import PopulationStats


class PopulationStatsAggregator:
    """Computes a fresh PopulationStats snapshot on every call."""

    def __init__(self, store: CoverageStore) -> None:
        self._store = store

    async def compute(
        self,
        *,
        threshold: int = DEFAULT_THRESHOLD,
        deadline: float | None = None,
    ) -> PopulationStats:
        """Aggregate totals, per-dimension counts and coverage tiers.

        Totals and per-dimension counts cover every stored record; coverage
        and tiers are computed over the known pair space.
        """
        require_positive("threshold", threshold)
        try:
            async with asyncio.timeout_at(deadline):
                space = await PairSpace.from_store(self._store)
                counts = await self._store.counts_by_pair()
        except TimeoutError as exc:
            msg = "Population stats read did not finish before the deadline"
            raise UpstreamReadFailure(msg) from exc
        except Exception as exc:
            msg = f"Population stats read failed: {exc}"
            raise UpstreamReadFailure(msg) from exc

        per_industry: Counter[str] = Counter()
        per_country: Counter[str] = Counter()
        for pair, n in counts.items():
            per_industry[pair.industry] += n
            per_country[pair.country] += n

        tiers = {"missing": 0, "low": 0, "healthy": 0}
        for pair in space:
            n = counts.get(pair, 0)
            if n == 0:
                tiers["missing"] += 1
            elif n < threshold:
                tiers["low"] += 1
            else:
                tiers["healthy"] += 1

        covered = len(space) - tiers["missing"]
        return PopulationStats(
            total_records=sum(counts.values()),
            per_industry_counts=dict(per_industry.most_common()),
            per_country_counts=dict(per_country.most_common()),
            total_combinations=sum(1 for n in counts.values() if n > 0),
            pair_space_size=len(space),
            coverage_ratio=covered / len(space) if len(space) else 0.0,
            threshold=threshold,
            tier_counts=tiers,
        )
