"""
Result of replaying events to a target relay.

A sync never raises for individual events: each event gets a
[SyncResult][syncstr.models.outcome.SyncResult] and the batch is summarized
by a [SyncOutcome][syncstr.models.outcome.SyncOutcome]. The counters are
derived from the results on construction, so
``success_count + error_count == total == len(results)`` always holds.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import StrEnum

from ._validation import validate_instance
from .event import Event


class SyncStatus(StrEnum):
    """Overall state of a sync.

    Attributes:
        COMPLETE: Every event was accepted.
        PARTIAL: Some events were accepted and some failed.
        FAILED: No event was accepted.
    """

    COMPLETE = "complete"
    PARTIAL = "partial"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class SyncResult:
    """Outcome of publishing one event.

    Attributes:
        event: The event that was published.
        succeeded: Whether any publishing path accepted it.
        error: The error of the last attempt when all paths failed.
        via: Name of the path that succeeded, if any.
    """

    event: Event
    succeeded: bool
    error: Exception | None = None
    via: str | None = None

    def __post_init__(self) -> None:
        validate_instance(self.event, Event, "event")
        if self.succeeded and self.error is not None:
            raise ValueError("a successful result cannot carry an error")


@dataclass(frozen=True, slots=True)
class SyncOutcome:
    """Per-event results and aggregate counters of one sync.

    Examples:
        ```python
        outcome = SyncOutcome.from_results(results)
        outcome.success_count, outcome.error_count, outcome.total
        outcome.status     # SyncStatus.PARTIAL
        outcome.summary()  # 'Synced 2/3 events. 1 failed.'
        ```
    """

    results: tuple[SyncResult, ...]
    success_count: int = field(init=False)
    error_count: int = field(init=False)
    total: int = field(init=False)

    def __post_init__(self) -> None:
        results = tuple(self.results)
        for index, result in enumerate(results):
            validate_instance(result, SyncResult, f"results[{index}]")
        succeeded = sum(1 for result in results if result.succeeded)
        object.__setattr__(self, "results", results)
        object.__setattr__(self, "success_count", succeeded)
        object.__setattr__(self, "error_count", len(results) - succeeded)
        object.__setattr__(self, "total", len(results))

    @classmethod
    def from_results(cls, results: Iterable[SyncResult]) -> SyncOutcome:
        return cls(tuple(results))

    @property
    def status(self) -> SyncStatus:
        if self.error_count == 0:
            return SyncStatus.COMPLETE
        if self.success_count > 0:
            return SyncStatus.PARTIAL
        return SyncStatus.FAILED

    @property
    def failed(self) -> tuple[SyncResult, ...]:
        """Results of the events that could not be published."""
        return tuple(result for result in self.results if not result.succeeded)

    def summary(self) -> str:
        """One-line human summary distinguishing complete, partial and failed syncs."""
        if self.status is SyncStatus.COMPLETE:
            return f"Successfully synced {self.success_count} events."
        if self.status is SyncStatus.PARTIAL:
            return f"Synced {self.success_count}/{self.total} events. {self.error_count} failed."
        return "Failed to sync any events to the target relay."
