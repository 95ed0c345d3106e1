"""Data Acquisition Monitor.

Inspects lead coverage per (industry, country) pair, classifies pairs as
low-data or missing, and remediates gaps with bounded-concurrency fetch
batches that tolerate partial failure.
"""

from src.acquisition.config import MonitorDefaults
from src.acquisition.errors import (
    BatchExhausted,
    FetchFailure,
    InvalidArgumentError,
    MonitorError,
    UpstreamReadFailure,
)
from src.acquisition.fetch import FetchCollaborator, FetchJob
from src.acquisition.inspector import CoverageInspector
from src.acquisition.monitor import DataMonitor
from src.acquisition.orchestrator import AutoPopulateOrchestrator
from src.acquisition.pair_space import PairSpace
from src.acquisition.scheduler import BatchScheduler
from src.acquisition.stats import PopulationStatsAggregator
from src.acquisition.store import CoverageStore, InMemoryCoverageStore
from src.acquisition.tracker import (
    FetchTracker,
    InMemoryFetchTracker,
    RedisFetchTracker,
)

__all__ = [
    "AutoPopulateOrchestrator",
    "BatchExhausted",
    "BatchScheduler",
    "CoverageInspector",
    "CoverageStore",
    "DataMonitor",
    "FetchCollaborator",
    "FetchFailure",
    "FetchJob",
    "FetchTracker",
    "InMemoryCoverageStore",
    "InMemoryFetchTracker",
    "InvalidArgumentError",
    "MonitorDefaults",
    "MonitorError",
    "PairSpace",
    "PopulationStatsAggregator",
    "RedisFetchTracker",
    "UpstreamReadFailure",
]
