"""End-to-end tests for the job orchestrator lifecycle."""

from __future__ import annotations

import json
import threading

import httpx
import pytest

from vyral_workers.cache import CacheUnavailableError, InMemoryTTLCacheStore
from vyral_workers.domain import HealthStatus, JobOutcome
from vyral_workers.jobs import (
    AsyncCompletionPoller,
    ExecutionMode,
    InvalidRequestError,
    JobOrchestrator,
    NoProviderCandidatesError,
    OperationCatalogConfig,
    OperationDescriptor,
    PollerConfig,
    UnknownOperationError,
    job_build_operation_descriptors,
)
from vyral_workers.providers import (
    AsyncJobStatus,
    AsyncProviderJob,
    ProviderConnectionError,
    ProviderHttpTransport,
    ProviderResponseError,
)
from vyral_workers.webhooks import WebhookDispatcher


class _FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class _RecordingWebhookDispatcher:
    """Webhook dispatcher stub recording scheduled deliveries."""

    def __init__(self) -> None:
        self.deliveries: list[tuple[str | None, JobOutcome]] = []

    def webhook_dispatch(self, webhook_url: str | None, outcome: JobOutcome) -> None:
        """Record one delivery request.

        Args:
            webhook_url: Target URL.
            outcome: Outcome to deliver.

        Returns:
            None: Delivery is recorded as a side effect.

        Raises:
            RuntimeError: This stub does not raise runtime errors.
        """

        self.deliveries.append((webhook_url, outcome))


class _ChatCandidate:
    """Direct candidate stub returning content or raising a fixed error."""

    def __init__(self, candidate_id: str, content: str | None = None, error: Exception | None = None):
        self._candidate_id = candidate_id
        self._content = content
        self._error = error
        self.calls = 0

    def candidate_id(self) -> str:
        return self._candidate_id

    def candidate_invoke(self, job_request) -> dict:
        """Return canned content or raise the configured error.

        Args:
            job_request: Request being orchestrated.

        Returns:
            dict: Candidate payload with content.

        Raises:
            Exception: The configured error, when present.
        """

        _ = job_request
        self.calls += 1
        if self._error is not None:
            raise self._error
        return {"model": self._candidate_id, "content": self._content}


class _TranscriptCandidate:
    """Async candidate stub replaying scripted statuses."""

    def __init__(self, statuses: list[AsyncJobStatus], error_detail: str | None = None):
        self._statuses = statuses
        self._error_detail = error_detail
        self.fetch_count = 0

    def candidate_id(self) -> str:
        return "stub:transcribe"

    def candidate_submit(self, job_request) -> str:
        _ = job_request
        return "tr-42"

    def candidate_fetch_status(self, handle: str) -> AsyncProviderJob:
        status = self._statuses[min(self.fetch_count, len(self._statuses) - 1)]
        self.fetch_count += 1
        if status is AsyncJobStatus.DONE:
            return AsyncProviderJob(handle=handle, status=status, result={"transcript": "hello world"})
        return AsyncProviderJob(handle=handle, status=status, error_detail=self._error_detail)


class _UnavailableCacheStore:
    """Cache store stub whose backend is always down."""

    def cache_backend_label(self) -> str:
        return "unavailable"

    def cache_get(self, key: str):
        raise CacheUnavailableError(f"read failed for {key}")

    def cache_put(self, key: str, value: object, ttl_seconds: int) -> None:
        _ = (value, ttl_seconds)
        raise CacheUnavailableError(f"write failed for {key}")

    def cache_check_health(self) -> HealthStatus:
        raise ConnectionError("cache down")


def _strategy_result(job_request, payload: dict) -> dict:
    _ = job_request
    return {"strategy_text": payload["content"]}


def _strategy_descriptor(*candidates) -> OperationDescriptor:
    return OperationDescriptor(
        name="strategy",
        sub_operation="generate",
        required_fields=("transcript",),
        candidates=tuple(candidates),
        cache_fields=("transcript", "platform_preferences"),
        cache_ttl_seconds=3600,
        result_builder=_strategy_result,
    )


def _transcribe_descriptor(candidate) -> OperationDescriptor:
    return OperationDescriptor(
        name="transcribe",
        sub_operation="submit",
        required_fields=("file_url",),
        candidates=(candidate,),
        mode=ExecutionMode.POLLED,
    )


def _build_orchestrator(
    descriptors: list[OperationDescriptor],
    cache_store=None,
    max_ticks: int = 20,
) -> tuple[JobOrchestrator, _RecordingWebhookDispatcher]:
    webhook_dispatcher = _RecordingWebhookDispatcher()
    orchestrator = JobOrchestrator(
        cache_store=cache_store or InMemoryTTLCacheStore(),
        webhook_dispatcher=webhook_dispatcher,
        poller=AsyncCompletionPoller(
            config=PollerConfig(poll_interval_seconds=5, max_ticks=max_ticks),
            sleep_provider=lambda _seconds: None,
        ),
        descriptors=descriptors,
    )
    return orchestrator, webhook_dispatcher


def test_jobs_orchestrator_serves_identical_request_from_cache() -> None:
    """Call the provider once and serve the repeated request from cache.

    Returns:
        None: Assertions validate cache-hit short-circuit.

    Raises:
        AssertionError: Raised when the provider is called twice.
    """

    candidate = _ChatCandidate("model-a", content="Post daily at 6pm.")
    orchestrator, webhook_dispatcher = _build_orchestrator([_strategy_descriptor(candidate)])
    payload = {"transcript": "hello", "job_id": "job-1", "webhook_url": "https://hooks.test/strategy"}

    first = orchestrator.job_execute(orchestrator.job_build_request("strategy", payload))
    second = orchestrator.job_execute(orchestrator.job_build_request("strategy", payload))

    assert first.outcome_to_envelope() == {
        "job_id": "job-1",
        "status": "completed",
        "result": {"strategy_text": "Post daily at 6pm."},
    }
    assert second.result == first.result
    assert first.cache_hit is False
    assert second.cache_hit is True
    assert candidate.calls == 1
    assert [url for url, _ in webhook_dispatcher.deliveries] == ["https://hooks.test/strategy"] * 2


def test_jobs_orchestrator_serves_falsy_cached_value() -> None:
    """Treat a cached falsy result as a hit.

    Returns:
        None: Assertions validate falsy cache values.

    Raises:
        AssertionError: Raised when the provider is called.
    """

    candidate = _ChatCandidate("model-a", content="unused")
    cache_store = InMemoryTTLCacheStore()
    orchestrator, _ = _build_orchestrator([_strategy_descriptor(candidate)], cache_store=cache_store)
    job_request = orchestrator.job_build_request("strategy", {"transcript": "hello"})
    cache_store.cache_put(orchestrator.job_fingerprint(job_request), 0, ttl_seconds=60)

    outcome = orchestrator.job_execute(job_request)

    assert outcome.status == "completed"
    assert outcome.result == 0
    assert outcome.cache_hit is True
    assert candidate.calls == 0


def test_jobs_orchestrator_falls_back_to_second_model() -> None:
    """Complete with the second candidate when the first fails.

    Returns:
        None: Assertions validate provider fallback.

    Raises:
        AssertionError: Raised when fallback order is wrong.
    """

    failing = _ChatCandidate("model-a", error=ProviderConnectionError("model-a unreachable"))
    succeeding = _ChatCandidate("model-b", content="from b")
    orchestrator, _ = _build_orchestrator([_strategy_descriptor(failing, succeeding)])

    outcome = orchestrator.job_execute(orchestrator.job_build_request("strategy", {"transcript": "hello"}))

    assert outcome.status == "completed"
    assert outcome.result == {"strategy_text": "from b"}
    assert failing.calls == 1
    assert succeeding.calls == 1


def test_jobs_orchestrator_reports_last_failure_when_all_candidates_fail() -> None:
    """Fail with the last candidate's message and notify the webhook.

    Returns:
        None: Assertions validate failure outcome and webhook delivery.

    Raises:
        AssertionError: Raised when the failure envelope is wrong.
    """

    candidates = [
        _ChatCandidate("model-a", error=ProviderConnectionError("first down")),
        _ChatCandidate("model-b", error=ProviderResponseError("quota exceeded")),
    ]
    orchestrator, webhook_dispatcher = _build_orchestrator([_strategy_descriptor(*candidates)])

    outcome = orchestrator.job_execute(
        orchestrator.job_build_request("strategy", {"transcript": "hello", "webhook_url": "https://hooks.test/x"})
    )

    assert outcome.outcome_to_envelope() == {"job_id": None, "status": "failed", "error": "quota exceeded"}
    assert outcome.error_code == "JOB_PROVIDER_FAILURE"
    failure_event = [event for event in outcome.timeline if event["status"] == "failed"][0]
    assert [attempt["candidate_id"] for attempt in failure_event["details"]["attempts"]] == ["model-a", "model-b"]
    assert len(webhook_dispatcher.deliveries) == 1
    assert webhook_dispatcher.deliveries[0][0] == "https://hooks.test/x"
    assert webhook_dispatcher.deliveries[0][1].status == "failed"


def test_jobs_orchestrator_polls_transcription_to_completion() -> None:
    """Drive a polled operation through pending ticks to completion.

    Returns:
        None: Assertions validate polled execution.

    Raises:
        AssertionError: Raised when the polled result is wrong.
    """

    candidate = _TranscriptCandidate([AsyncJobStatus.PENDING, AsyncJobStatus.PENDING, AsyncJobStatus.DONE])
    orchestrator, _ = _build_orchestrator([_transcribe_descriptor(candidate)])

    outcome = orchestrator.job_execute(
        orchestrator.job_build_request("transcribe", {"file_url": "https://f/a.mp3", "job_id": 7})
    )

    assert outcome.outcome_to_envelope() == {
        "job_id": 7,
        "status": "completed",
        "result": {"transcript": "hello world"},
    }
    poll_event = [event for event in outcome.timeline if event["stage"] == "poll"][0]
    assert poll_event["details"] == {"handle": "tr-42", "ticks": 3}


@pytest.mark.parametrize(
    ("statuses", "error_code", "error_fragment"),
    [
        ([AsyncJobStatus.PENDING], "JOB_POLL_TIMEOUT", "timed out waiting for provider job tr-42"),
        ([AsyncJobStatus.RUNNING, AsyncJobStatus.FAILED], "JOB_POLL_PROVIDER_FAILURE", "audio unreadable"),
    ],
)
def test_jobs_orchestrator_maps_poll_terminal_failures(
    statuses: list[AsyncJobStatus],
    error_code: str,
    error_fragment: str,
) -> None:
    """Map poll timeout and provider-side failure to failed outcomes.

    Args:
        statuses: Scripted provider statuses.
        error_code: Expected error code.
        error_fragment: Expected error message fragment.

    Returns:
        None: Assertions validate failure mapping.

    Raises:
        AssertionError: Raised when mapping is wrong.
    """

    candidate = _TranscriptCandidate(statuses, error_detail="audio unreadable")
    orchestrator, _ = _build_orchestrator([_transcribe_descriptor(candidate)], max_ticks=3)

    outcome = orchestrator.job_execute(orchestrator.job_build_request("transcribe", {"file_url": "https://f/a.mp3"}))

    assert outcome.status == "failed"
    assert outcome.error_code == error_code
    assert error_fragment in outcome.error


def test_jobs_orchestrator_cancels_polling() -> None:
    """Fail with the cancellation code when the cancel event is set.

    Returns:
        None: Assertions validate cancellation mapping.

    Raises:
        AssertionError: Raised when polling continues.
    """

    candidate = _TranscriptCandidate([AsyncJobStatus.PENDING])
    orchestrator, _ = _build_orchestrator([_transcribe_descriptor(candidate)])
    cancel_event = threading.Event()
    cancel_event.set()

    outcome = orchestrator.job_execute(
        orchestrator.job_build_request("transcribe", {"file_url": "https://f/a.mp3"}),
        cancel_event=cancel_event,
    )

    assert outcome.error_code == "JOB_POLL_CANCELLED"
    assert candidate.fetch_count == 0


def test_jobs_orchestrator_bypasses_unavailable_cache() -> None:
    """Execute providers normally when the cache backend fails.

    Returns:
        None: Assertions validate cache failure isolation.

    Raises:
        AssertionError: Raised when cache failures fail the request.
    """

    candidate = _ChatCandidate("model-a", content="ok")
    orchestrator, _ = _build_orchestrator([_strategy_descriptor(candidate)], cache_store=_UnavailableCacheStore())

    outcome = orchestrator.job_execute(orchestrator.job_build_request("strategy", {"transcript": "hello"}))

    assert outcome.status == "completed"
    assert {event["status"] for event in outcome.timeline if event["stage"].startswith("cache")} == {
        "unavailable",
        "miss",
        "skipped",
    }


def test_jobs_orchestrator_validates_request_bodies() -> None:
    """Reject non-object bodies, missing fields and unknown operations.

    Returns:
        None: Assertions validate request validation.

    Raises:
        AssertionError: Raised when invalid input is accepted.
    """

    platform_descriptor = OperationDescriptor(
        name="platform-captions",
        sub_operation="generate",
        required_fields=("transcript", "platform"),
        candidates=(_ChatCandidate("model-a", content="ok"),),
    )
    orchestrator, _ = _build_orchestrator([_strategy_descriptor(_ChatCandidate("m", content="x")), platform_descriptor])

    with pytest.raises(InvalidRequestError, match="^transcript is required$"):
        orchestrator.job_build_request("strategy", {"transcript": "  "})
    with pytest.raises(InvalidRequestError, match="^transcript and platform are required$"):
        orchestrator.job_build_request("platform-captions", {"transcript": "hello"})
    with pytest.raises(InvalidRequestError, match="JSON object"):
        orchestrator.job_build_request("strategy", ["hello"])
    with pytest.raises(UnknownOperationError):
        orchestrator.job_build_request("translate", {"transcript": "hello"})

    job_request = orchestrator.job_build_request(
        "strategy",
        {"transcript": "hello", "job_id": "j", "webhook_url": " https://hooks.test "},
    )
    assert job_request.params == {"transcript": "hello"}
    assert job_request.webhook_url == "https://hooks.test"


def test_jobs_orchestrator_rejects_descriptor_without_candidates() -> None:
    """Refuse to register an operation with no provider candidates.

    Returns:
        None: Assertions validate startup validation.

    Raises:
        AssertionError: Raised when the descriptor is accepted.
    """

    with pytest.raises(NoProviderCandidatesError):
        _build_orchestrator([_strategy_descriptor()])


def test_jobs_orchestrator_keeps_strategy_result_for_one_hour() -> None:
    """Serve the cataloged strategy result from cache until its hour elapses.

    Returns:
        None: Assertions validate the strategy cache lifetime.

    Raises:
        AssertionError: Raised when the entry expires early or late.
    """

    provider_requests: list[httpx.Request] = []

    def _openrouter(request: httpx.Request) -> httpx.Response:
        provider_requests.append(request)
        return httpx.Response(200, json={"choices": [{"message": {"content": "Post daily at 6pm."}}]})

    transport = ProviderHttpTransport(timeout_seconds=5, client=httpx.Client(transport=httpx.MockTransport(_openrouter)))
    descriptors = job_build_operation_descriptors(
        OperationCatalogConfig(
            openrouter_api_key="or-key",
            assemblyai_api_key="aai-key",
            shotstack_api_key="ss-key",
        ),
        transport,
    )
    clock = _FakeClock()
    orchestrator, _ = _build_orchestrator(descriptors, cache_store=InMemoryTTLCacheStore(clock=clock))
    payload = {"transcript": "hello", "platform_preferences": ["tiktok"]}

    first = orchestrator.job_execute(orchestrator.job_build_request("strategy", payload))
    clock.now = 3599
    second = orchestrator.job_execute(orchestrator.job_build_request("strategy", payload))
    clock.now = 3600
    third = orchestrator.job_execute(orchestrator.job_build_request("strategy", payload))

    assert [first.status, second.status, third.status] == ["completed"] * 3
    assert [first.cache_hit, second.cache_hit, third.cache_hit] == [False, True, False]
    assert second.result == first.result
    assert len(provider_requests) == 2


def test_jobs_orchestrator_delivers_failed_envelope_to_webhook_once() -> None:
    """POST the failed envelope exactly once through the real dispatcher.

    Returns:
        None: Assertions validate failure notification.

    Raises:
        AssertionError: Raised when the webhook body or count is wrong.
    """

    received: list[tuple[str, dict]] = []

    def _webhook(request: httpx.Request) -> httpx.Response:
        received.append((str(request.url), json.loads(request.content)))
        return httpx.Response(204)

    webhook_dispatcher = WebhookDispatcher(
        client=httpx.Client(transport=httpx.MockTransport(_webhook)),
        max_workers=1,
    )
    orchestrator = JobOrchestrator(
        cache_store=InMemoryTTLCacheStore(),
        webhook_dispatcher=webhook_dispatcher,
        poller=AsyncCompletionPoller(config=PollerConfig(poll_interval_seconds=0, max_ticks=1)),
        descriptors=[
            _strategy_descriptor(
                _ChatCandidate("model-a", error=ProviderConnectionError("first down")),
                _ChatCandidate("model-b", error=ProviderResponseError("quota exceeded")),
            )
        ],
    )

    outcome = orchestrator.job_execute(
        orchestrator.job_build_request(
            "strategy",
            {"transcript": "hello", "job_id": "job-9", "webhook_url": "https://hooks.test/failed"},
        )
    )
    webhook_dispatcher.webhook_shutdown(wait=True)

    assert outcome.status == "failed"
    assert received == [
        ("https://hooks.test/failed", {"job_id": "job-9", "status": "failed", "error": "quota exceeded"})
    ]
