"""Tests for bounded provider job polling."""

from __future__ import annotations

import threading

import pytest

from vyral_workers.jobs import AsyncCompletionPoller, PollerConfig, PollState
from vyral_workers.providers import AsyncJobStatus, AsyncProviderJob, ProviderConnectionError


class _ScriptedAsyncCandidate:
    """Async candidate stub replaying a fixed status sequence."""

    def __init__(self, statuses: list[AsyncJobStatus], result: dict | None = None, error_detail: str | None = None):
        """Initialize scripted statuses.

        Args:
            statuses: Status returned by each successive fetch; the last one repeats.
            result: Result returned with `DONE`.
            error_detail: Detail returned with `FAILED`.

        Returns:
            None: Initializer does not return values.

        Raises:
            ValueError: This stub does not raise value errors.
        """

        self._statuses = statuses
        self._result = result
        self._error_detail = error_detail
        self.fetch_count = 0

    def candidate_id(self) -> str:
        return "stub:async"

    def candidate_submit(self, job_request) -> str:
        _ = job_request
        return "handle-1"

    def candidate_fetch_status(self, handle: str) -> AsyncProviderJob:
        status = self._statuses[min(self.fetch_count, len(self._statuses) - 1)]
        self.fetch_count += 1
        return AsyncProviderJob(
            handle=handle,
            status=status,
            result=self._result if status is AsyncJobStatus.DONE else None,
            error_detail=self._error_detail if status is AsyncJobStatus.FAILED else None,
        )


def _build_poller(max_ticks: int = 20, sleeps: list[float] | None = None, **kwargs) -> AsyncCompletionPoller:
    recorded_sleeps = sleeps if sleeps is not None else []
    return AsyncCompletionPoller(
        config=PollerConfig(poll_interval_seconds=5.0, max_ticks=max_ticks, **kwargs),
        sleep_provider=recorded_sleeps.append,
    )


def test_jobs_poller_reaches_done_after_pending_ticks() -> None:
    """Return DONE with the tick count once the provider reports completion.

    Returns:
        None: Assertions validate the happy-path transition.

    Raises:
        AssertionError: Raised when ticks or result are wrong.
    """

    sleeps: list[float] = []
    candidate = _ScriptedAsyncCandidate(
        [AsyncJobStatus.PENDING, AsyncJobStatus.RUNNING, AsyncJobStatus.DONE],
        result={"transcript": "hello"},
    )

    result = _build_poller(sleeps=sleeps).poller_drive(candidate, "handle-1")

    assert result.state is PollState.DONE
    assert result.ticks == 3
    assert result.result == {"transcript": "hello"}
    assert sleeps == [5.0, 5.0, 5.0]


def test_jobs_poller_reports_provider_failure_detail() -> None:
    """Return FAILED with the provider's error detail.

    Returns:
        None: Assertions validate failure transition.

    Raises:
        AssertionError: Raised when the detail is lost.
    """

    candidate = _ScriptedAsyncCandidate([AsyncJobStatus.FAILED], error_detail="audio unreadable")

    result = _build_poller().poller_drive(candidate, "handle-1")

    assert result.state is PollState.FAILED
    assert result.error_detail == "audio unreadable"
    assert result.ticks == 1


def test_jobs_poller_times_out_after_max_ticks() -> None:
    """Return TIMED_OUT after exactly max_ticks status fetches.

    Returns:
        None: Assertions validate tick budget.

    Raises:
        AssertionError: Raised when the budget is not respected.
    """

    candidate = _ScriptedAsyncCandidate([AsyncJobStatus.PENDING])

    result = _build_poller(max_ticks=3).poller_drive(candidate, "handle-1")

    assert result.state is PollState.TIMED_OUT
    assert result.ticks == 3
    assert candidate.fetch_count == 3


def test_jobs_poller_honors_wall_clock_deadline() -> None:
    """Return TIMED_OUT once the deadline passes, before the next fetch.

    Returns:
        None: Assertions validate deadline handling.

    Raises:
        AssertionError: Raised when polling continues past the deadline.
    """

    clock_values = iter([0.0, 1.0, 11.0])
    poller = AsyncCompletionPoller(
        config=PollerConfig(poll_interval_seconds=0, max_ticks=10, deadline_seconds=10),
        sleep_provider=lambda _seconds: None,
        clock_provider=lambda: next(clock_values),
    )
    candidate = _ScriptedAsyncCandidate([AsyncJobStatus.PENDING])

    result = poller.poller_drive(candidate, "handle-1")

    assert result.state is PollState.TIMED_OUT
    assert candidate.fetch_count == 1


def test_jobs_poller_stops_when_cancelled() -> None:
    """Return CANCELLED without fetching when the event is already set.

    Returns:
        None: Assertions validate cancellation.

    Raises:
        AssertionError: Raised when a fetch happens after cancellation.
    """

    cancel_event = threading.Event()
    cancel_event.set()
    candidate = _ScriptedAsyncCandidate([AsyncJobStatus.PENDING])

    result = _build_poller().poller_drive(candidate, "handle-1", cancel_event=cancel_event)

    assert result.state is PollState.CANCELLED
    assert candidate.fetch_count == 0


def test_jobs_poller_propagates_fetch_transport_errors() -> None:
    """Let a transport failure during a fetch end the job.

    Returns:
        None: Assertions validate propagation.

    Raises:
        AssertionError: Raised when the error is swallowed.
    """

    class _UnreachableCandidate(_ScriptedAsyncCandidate):
        def candidate_fetch_status(self, handle: str) -> AsyncProviderJob:
            raise ProviderConnectionError(f"status fetch failed for {handle}")

    with pytest.raises(ProviderConnectionError):
        _build_poller().poller_drive(_UnreachableCandidate([AsyncJobStatus.PENDING]), "handle-1")


def test_jobs_poller_rejects_invalid_config() -> None:
    """Reject zero tick budgets.

    Returns:
        None: Assertions validate config validation.

    Raises:
        AssertionError: Raised when invalid config is accepted.
    """

    with pytest.raises(ValueError, match="max_ticks"):
        AsyncCompletionPoller(config=PollerConfig(max_ticks=0))
