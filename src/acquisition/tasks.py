"""Periodic population jobs and their Celery beat wiring.

Schedule (UTC):
- daily 02:00: populate the 10 sparsest-detected low-data pairs
- weekly Sunday 03:00: populate 20 missing pairs
- daily 04:00: log population statistics

Each job is an async function over a DataMonitor so it can run inline or
from a Celery worker. Jobs log monitor failures and report them in their
summary instead of raising; a scheduled job has no caller to raise to.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from src.acquisition.errors import BatchExhausted, MonitorError
from src.acquisition.monitor import DataMonitor
from src.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PopulationJobPolicy:
    """Bounds for one scheduled population run."""

    count: int
    limit: int
    max_concurrent: int
    timeout_s: float
    threshold: int = 100


LOW_DATA_JOB = PopulationJobPolicy(count=10, limit=1000, max_concurrent=3, timeout_s=30 * 60)
MISSING_JOB = PopulationJobPolicy(count=20, limit=500, max_concurrent=5, timeout_s=60 * 60)
STATS_TIMEOUT_S = 60.0


async def run_low_data_population(
    monitor: DataMonitor,
    policy: PopulationJobPolicy = LOW_DATA_JOB,
) -> dict:
    """Detect low-data pairs and populate the first ``policy.count``."""
    logger.info("Running daily data population job")
    deadline = asyncio.get_running_loop().time() + policy.timeout_s
    try:
        result = await monitor.auto_populate(
            threshold=policy.threshold,
            count=policy.count,
            max_concurrent=policy.max_concurrent,
            limit=policy.limit,
            include_missing=False,
            deadline=deadline,
        )
    except BatchExhausted as exc:
        logger.error("Daily data population job: no fetch succeeded: %s", exc)
        return {"status": "failed", "error": str(exc), "batch": exc.result.to_dict()}
    except MonitorError as exc:
        logger.error("Daily data population job failed: %s", exc)
        return {"status": "failed", "error": str(exc)}

    if not result.triggered:
        logger.info("No industries with low data found")
        return {"status": "noop", "count": 0}

    logger.info("Daily data population job completed for %d pairs", result.count)
    return {"status": "completed", **result.to_dict()}


async def run_missing_population(
    monitor: DataMonitor,
    policy: PopulationJobPolicy = MISSING_JOB,
) -> dict:
    """Detect pairs with no data and populate the first ``policy.count``."""
    logger.info("Running weekly missing data population job")
    deadline = asyncio.get_running_loop().time() + policy.timeout_s
    try:
        missing = await monitor.detect_missing(deadline=deadline)
        if not missing:
            logger.info("No missing combinations found")
            return {"status": "noop", "count": 0}

        pairs = missing[: policy.count]
        logger.info(
            "Found %d missing combinations, populating %d", len(missing), len(pairs),
        )
        batch = await monitor.trigger_batch(
            pairs, policy.limit, policy.max_concurrent, deadline=deadline,
        )
    except BatchExhausted as exc:
        logger.error("Weekly missing data job: no fetch succeeded: %s", exc)
        return {"status": "failed", "error": str(exc), "batch": exc.result.to_dict()}
    except MonitorError as exc:
        logger.error("Weekly missing data job failed: %s", exc)
        return {"status": "failed", "error": str(exc)}

    logger.info("Weekly missing data population job completed")
    return {"status": "completed", "count": len(pairs), "batch": batch.to_dict()}


async def log_population_stats(monitor: DataMonitor) -> dict:
    """Log a population statistics snapshot."""
    deadline = asyncio.get_running_loop().time() + STATS_TIMEOUT_S
    try:
        stats = await monitor.stats(deadline=deadline)
    except MonitorError as exc:
        logger.error("Failed to get population stats: %s", exc)
        return {"status": "failed", "error": str(exc)}

    logger.info(
        "Population stats: %d records, %d/%d combinations covered (%.1f%%), tiers %s",
        stats.total_records, stats.total_combinations, stats.pair_space_size,
        stats.coverage_ratio * 100, stats.tier_counts,
    )
    return {"status": "completed", **stats.model_dump(mode="json")}


# ---------------------------------------------------------------------------
# Wiring
# ---------------------------------------------------------------------------


def build_monitor(
    settings: Settings | None = None,
    *,
    redis_client: Any = None,
) -> DataMonitor:
    """Build a DataMonitor over the SQL lead store and the Overpass provider.

    In-flight marks live in Redis so overlapping scheduled jobs, which run in
    separate worker processes, skip each other's pairs. Without a
    ``redis_client`` the tracker is process-local.
    """
    from src.acquisition.tracker import InMemoryFetchTracker, RedisFetchTracker
    from src.db.session import async_session_factory
    from src.ingestion.overpass import OverpassFetcher
    from src.repositories.leads import SqlCoverageStore

    settings = settings or get_settings()
    fetcher = OverpassFetcher(
        async_session_factory,
        base_url=settings.OVERPASS_URL,
        timeout_s=settings.OVERPASS_TIMEOUT_S,
        user_agent=settings.PROVIDER_USER_AGENT,
    )
    if redis_client is not None:
        tracker = RedisFetchTracker(redis_client)
    else:
        tracker = InMemoryFetchTracker()
    return DataMonitor(
        SqlCoverageStore(async_session_factory),
        fetcher,
        tracker=tracker,
        pause_s=2.0,
    )


_JOBS = {
    "leads.populate_low_data": run_low_data_population,
    "leads.populate_missing": run_missing_population,
    "leads.log_population_stats": log_population_stats,
}


def _run_job(name: str) -> dict:
    """Celery entry point: run one job to completion in a fresh event loop.

    The Redis client is bound to the loop, so each run opens and closes its own.
    """
    import redis.asyncio as aioredis

    from src.observability.log_config import configure_logging

    configure_logging()
    settings = get_settings()
    job = _JOBS[name]

    async def _run() -> dict:
        client = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
        try:
            return await job(build_monitor(settings, redis_client=client))
        finally:
            await client.aclose()

    return asyncio.run(_run())


# ---------------------------------------------------------------------------
# Celery app (created on first use)
# ---------------------------------------------------------------------------

_celery_app = None


def get_celery_app():
    """Get or create the Celery application with the beat schedule."""
    global _celery_app
    if _celery_app is None:
        from celery import Celery
        from celery.schedules import crontab

        settings = get_settings()
        broker_url = settings.CELERY_BROKER_URL or settings.REDIS_URL
        app = Celery("lead_monitor", broker=broker_url, backend=broker_url)
        app.conf.task_serializer = "json"
        app.conf.result_serializer = "json"
        app.conf.timezone = "UTC"

        for name in _JOBS:
            app.task(name=name)(_make_task(name))

        app.conf.beat_schedule = {
            "populate-low-data-daily": {
                "task": "leads.populate_low_data",
                "schedule": crontab(minute=0, hour=2),
            },
            "populate-missing-weekly": {
                "task": "leads.populate_missing",
                "schedule": crontab(minute=0, hour=3, day_of_week=0),
            },
            "log-population-stats-daily": {
                "task": "leads.log_population_stats",
                "schedule": crontab(minute=0, hour=4),
            },
        }
        _celery_app = app
    return _celery_app


def _make_task(name: str):
    def task() -> dict:
        return _run_job(name)

    task.__name__ = name.rsplit(".", 1)[-1]
    return task
