"""Bounded, delay-gated polling of provider-side long-running jobs."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from vyral_workers.observability import logger
from vyral_workers.providers import AsyncJobStatus, AsyncProviderCandidatePort


class PollState(str, Enum):
    """Poller state machine values."""

    SUBMITTED = "submitted"
    POLLING = "polling"
    DONE = "done"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class PollerConfig:
    """Immutable polling budget.

    Attributes:
        poll_interval_seconds: Fixed delay before every status fetch.
        max_ticks: Maximum number of status fetches.
        deadline_seconds: Optional wall-clock budget across all ticks.
    """

    poll_interval_seconds: float = 5.0
    max_ticks: int = 20
    deadline_seconds: float | None = None


@dataclass(frozen=True)
class PollResult:
    """Terminal poller state for one provider job.

    Attributes:
        state: Terminal state (`DONE`, `FAILED`, `TIMED_OUT`, `CANCELLED`).
        handle: Provider job handle.
        ticks: Number of completed status fetches.
        result: Provider result payload for `DONE`.
        error_detail: Provider error detail for `FAILED`.
    """

    state: PollState
    handle: str
    ticks: int
    result: dict[str, Any] | None = None
    error_detail: str | None = None


class AsyncCompletionPoller:
    """Drive a submitted provider job to a terminal state.

    Each tick waits the configured interval and then fetches status once, so
    tick N+1 never starts before tick N has a result. Transport failures during
    a fetch propagate to the caller and end the job.
    """

    def __init__(
        self,
        config: PollerConfig,
        sleep_provider: Callable[[float], None] | None = None,
        clock_provider: Callable[[], float] | None = None,
    ):
        """Initialize poller.

        Args:
            config: Polling budget.
            sleep_provider: Optional sleep function; when omitted the poller
                waits on the cancellation event or `time.sleep`.
            clock_provider: Optional monotonic clock for the deadline check.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when config values are invalid.
        """

        if config.poll_interval_seconds < 0:
            raise ValueError("poll_interval_seconds must be >= 0")
        if config.max_ticks < 1:
            raise ValueError("max_ticks must be >= 1")
        if config.deadline_seconds is not None and config.deadline_seconds <= 0:
            raise ValueError("deadline_seconds must be > 0 when set")

        self._config = config
        self._sleep_provider = sleep_provider
        self._clock_provider = clock_provider or time.monotonic

    def poller_drive(
        self,
        candidate: AsyncProviderCandidatePort,
        handle: str,
        cancel_event: threading.Event | None = None,
        operation_name: str = "",
    ) -> PollResult:
        """Poll until the job is done, failed, out of budget or cancelled.

        Args:
            candidate: Provider that accepted the job.
            handle: Provider job handle.
            cancel_event: Optional cancellation signal honored between and during waits.
            operation_name: Operation label for log lines.

        Returns:
            PollResult: Terminal poll result.

        Raises:
            ProviderError: Raised when a status fetch fails at transport level.
        """

        poll_log = logger.bind(operation=operation_name, candidate_id=candidate.candidate_id(), handle=handle)
        started_at = self._clock_provider()
        completed_ticks = 0
        poll_log.debug("poll state={}", PollState.SUBMITTED.value)

        for tick in range(1, self._config.max_ticks + 1):
            if self._poller_wait(cancel_event):
                poll_log.warning("poll cancelled after {} ticks", completed_ticks)
                return PollResult(state=PollState.CANCELLED, handle=handle, ticks=completed_ticks)

            if self._poller_deadline_exceeded(started_at):
                poll_log.warning("poll deadline exceeded after {} ticks", completed_ticks)
                return PollResult(state=PollState.TIMED_OUT, handle=handle, ticks=completed_ticks)

            job = candidate.candidate_fetch_status(handle)
            completed_ticks = tick
            poll_log.bind(tick=tick, provider_status=job.status.value).info("poll tick")

            if job.status is AsyncJobStatus.DONE:
                return PollResult(state=PollState.DONE, handle=handle, ticks=tick, result=job.result or {})
            if job.status is AsyncJobStatus.FAILED:
                return PollResult(
                    state=PollState.FAILED,
                    handle=handle,
                    ticks=tick,
                    error_detail=job.error_detail,
                )

        poll_log.warning("poll budget of {} ticks exhausted", self._config.max_ticks)
        return PollResult(state=PollState.TIMED_OUT, handle=handle, ticks=completed_ticks)

    def _poller_wait(self, cancel_event: threading.Event | None) -> bool:
        """Wait one interval and report whether cancellation was requested.

        Args:
            cancel_event: Optional cancellation signal.

        Returns:
            bool: True when polling must stop.

        Raises:
            RuntimeError: This helper does not raise runtime errors.
        """

        interval_seconds = self._config.poll_interval_seconds
        if cancel_event is not None and cancel_event.is_set():
            return True

        if self._sleep_provider is not None:
            self._sleep_provider(interval_seconds)
        elif cancel_event is not None:
            return cancel_event.wait(interval_seconds)
        elif interval_seconds > 0:
            time.sleep(interval_seconds)

        return cancel_event is not None and cancel_event.is_set()

    def _poller_deadline_exceeded(self, started_at: float) -> bool:
        if self._config.deadline_seconds is None:
            return False
        return (self._clock_provider() - started_at) >= self._config.deadline_seconds
