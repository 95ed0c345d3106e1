"""Error kinds raised by the acquisition monitor.

Detection fails fast: a CoverageStore error aborts the whole call as
UpstreamReadFailure. Remediation fails soft: each FetchFailure is recorded
against its pair, and only a batch in which no job succeeded and at least
one failed is escalated as BatchExhausted.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from src.models.coverage import FetchFailureKind, IndustryCountryPair

if TYPE_CHECKING:
    from src.models.coverage import BatchResult


class MonitorError(Exception):
    """Base class for all monitor errors."""


class InvalidArgumentError(MonitorError, ValueError):
    """A non-positive threshold, limit, count or concurrency reached the core."""


class UpstreamReadFailure(MonitorError):
    """The coverage store could not be read; detection produced nothing."""


class FetchFailure(MonitorError):
    """One pair's remediation failed."""

    def __init__(
        self,
        message: str,
        *,
        kind: FetchFailureKind = FetchFailureKind.UNKNOWN,
        pair: IndustryCountryPair | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.pair = pair

    def __str__(self) -> str:
        base = super().__str__()
        if self.pair is None:
            return f"[{self.kind.value}] {base}"
        return f"[{self.kind.value}] {self.pair}: {base}"


class BatchExhausted(MonitorError):
    """No job in a batch succeeded and at least one failed."""

    def __init__(self, result: BatchResult) -> None:
        msg = (
            f"No fetch job in batch {result.batch_id} succeeded "
            f"({len(result.failed)} failed, {len(result.skipped)} skipped)"
        )
        super().__init__(msg)
        self.result = result


def require_positive(name: str, value: int) -> int:
    """Return ``value`` unchanged, or raise InvalidArgumentError if it is < 1."""
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        msg = f"{name} must be a positive integer, got {value!r}"
        raise InvalidArgumentError(msg)
    return value
