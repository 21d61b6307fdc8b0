"""Tests for syncstr.models.outcome module."""

import pytest

from syncstr.core.exceptions import TransportError
from syncstr.models.outcome import SyncOutcome, SyncResult, SyncStatus


class TestSyncResult:
    def test_success_cannot_carry_error(self, make_event):
        with pytest.raises(ValueError, match="successful"):
            SyncResult(make_event(), succeeded=True, error=TransportError("x"))

    def test_failure_keeps_error(self, make_event):
        error = TransportError("rejected")
        result = SyncResult(make_event(), succeeded=False, error=error)
        assert result.error is error
        assert result.via is None


class TestSyncOutcome:
    """Counters, status and summaries."""

    def _outcome(self, make_event, *flags):
        return SyncOutcome.from_results(
            SyncResult(
                make_event(),
                succeeded=ok,
                error=None if ok else TransportError("down"),
                via="shared" if ok else None,
            )
            for ok in flags
        )

    def test_counters_add_up(self, make_event):
        outcome = self._outcome(make_event, True, False, True)
        assert outcome.success_count == 2
        assert outcome.error_count == 1
        assert outcome.total == 3
        assert outcome.success_count + outcome.error_count == outcome.total == len(outcome.results)

    def test_complete(self, make_event):
        outcome = self._outcome(make_event, True, True)
        assert outcome.status is SyncStatus.COMPLETE
        assert outcome.summary() == "Successfully synced 2 events."

    def test_partial(self, make_event):
        outcome = self._outcome(make_event, True, False, True)
        assert outcome.status is SyncStatus.PARTIAL
        assert outcome.summary() == "Synced 2/3 events. 1 failed."

    def test_failed(self, make_event):
        outcome = self._outcome(make_event, False, False)
        assert outcome.status is SyncStatus.FAILED
        assert outcome.summary() == "Failed to sync any events to the target relay."

    def test_failed_results(self, make_event):
        outcome = self._outcome(make_event, True, False)
        assert [r.succeeded for r in outcome.failed] == [False]

    def test_counters_not_settable(self, make_event):
        with pytest.raises(TypeError):
            SyncOutcome(results=(), total=5)  # type: ignore[call-arg]

    def test_rejects_non_results(self):
        with pytest.raises(TypeError, match=r"results\[0\]"):
            SyncOutcome(results=("nope",))  # type: ignore[arg-type]
