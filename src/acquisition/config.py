"""Acquisition policy defaults.

The single place that decides what an unset parameter means. The workflow
must be safely invokable with no arguments by a periodic job, so every
default is bounded.
"""

from __future__ import annotations

from pydantic import Field

from src.acquisition.errors import InvalidArgumentError
from src.models.common import MonitorBase

DEFAULT_THRESHOLD = 100
DEFAULT_COUNT = 10
DEFAULT_MAX_CONCURRENT = 3
DEFAULT_LIMIT = 1000


class MonitorDefaults(MonitorBase):
    """Defaults and deadlines for the acquisition monitor.

    Parameters passed as ``None`` or ``0`` resolve to the default here;
    negative values are rejected with InvalidArgumentError.
    """

    model_config = {"frozen": True}

    threshold: int = Field(default=DEFAULT_THRESHOLD, gt=0)
    count: int = Field(default=DEFAULT_COUNT, gt=0)
    max_concurrent: int = Field(default=DEFAULT_MAX_CONCURRENT, gt=0)
    limit: int = Field(default=DEFAULT_LIMIT, gt=0)
    include_missing: bool = False

    # Deadlines, in seconds.
    detection_timeout_s: float = Field(default=30.0, gt=0)
    stats_timeout_s: float = Field(default=30.0, gt=0)
    fetch_timeout_s: float = Field(default=120.0, gt=0)
    batch_timeout_s: float = Field(default=600.0, gt=0)
    auto_populate_timeout_s: float = Field(default=300.0, gt=0)

    def resolve_threshold(self, value: int | None) -> int:
        return _resolve("threshold", value, self.threshold)

    def resolve_count(self, value: int | None) -> int:
        return _resolve("count", value, self.count)

    def resolve_max_concurrent(self, value: int | None) -> int:
        return _resolve("max_concurrent", value, self.max_concurrent)

    def resolve_limit(self, value: int | None) -> int:
        return _resolve("limit", value, self.limit)

    def resolve_include_missing(self, value: bool | None) -> bool:
        return self.include_missing if value is None else value


def _resolve(name: str, value: int | None, default: int) -> int:
    if value is None or value == 0:
        return default
    if value < 0:
        msg = f"{name} must not be negative, got {value}"
        raise InvalidArgumentError(msg)
    return value
