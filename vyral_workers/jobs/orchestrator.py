"""Job orchestrator composing cache, provider fallback, polling and webhooks."""

from __future__ import annotations

import threading
from typing import Any, Mapping, Sequence

import httpx

from vyral_workers.cache import CACHE_MISS, CacheLookup, CacheStorePort, CacheUnavailableError
from vyral_workers.domain import (
    JOB_STATUS_COMPLETED,
    JOB_STATUS_FAILED,
    JobOutcome,
    JobRequest,
    domain_build_stage_event,
    domain_fingerprint,
)
from vyral_workers.domain.timeline import domain_error_details
from vyral_workers.observability import logger
from vyral_workers.providers import ProviderError, ProviderTimeoutError
from vyral_workers.webhooks import WebhookDispatcher

from .completion_poller import AsyncCompletionPoller, PollResult, PollState
from .errors import (
    InvalidRequestError,
    JobError,
    NoProviderCandidatesError,
    PollCancelledError,
    PollProviderFailureError,
    PollTimeoutError,
    ProviderFailureError,
    UnknownOperationError,
)
from .fallback_executor import ProviderFallbackExecutor
from .interfaces import ExecutionMode, JobOrchestratorPort, OperationDescriptor, job_params_subset

_RESERVED_FIELDS = ("job_id", "webhook_url")


class JobOrchestrator(JobOrchestratorPort):
    """Generic per-request lifecycle shared by every operation handler."""

    _FAILURE_TYPES: tuple[type[BaseException], ...] = (
        JobError,
        ProviderError,
        ConnectionError,
        TimeoutError,
        ValueError,
        RuntimeError,
        httpx.HTTPError,
    )

    def __init__(
        self,
        cache_store: CacheStorePort,
        webhook_dispatcher: WebhookDispatcher,
        poller: AsyncCompletionPoller,
        descriptors: Sequence[OperationDescriptor],
        executor: ProviderFallbackExecutor | None = None,
    ):
        """Initialize orchestrator dependencies.

        Args:
            cache_store: Expiring result cache.
            webhook_dispatcher: Outcome notifier.
            poller: Poller for `POLLED` operations.
            descriptors: Registered operations.
            executor: Optional provider fallback executor.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when dependencies or descriptors are invalid.
            NoProviderCandidatesError: Raised when a descriptor has no candidates.
        """

        if cache_store is None:
            raise ValueError("cache_store must not be None")
        if webhook_dispatcher is None:
            raise ValueError("webhook_dispatcher must not be None")
        if poller is None:
            raise ValueError("poller must not be None")

        registry: dict[str, OperationDescriptor] = {}
        for descriptor in descriptors:
            if not descriptor.name.strip():
                raise ValueError("descriptor.name must not be blank")
            if descriptor.name in registry:
                raise ValueError(f"duplicate operation descriptor name={descriptor.name}")
            if not descriptor.candidates:
                raise NoProviderCandidatesError(f"no candidates configured for operation={descriptor.name}")
            if descriptor.cache_ttl_seconds is not None and descriptor.cache_ttl_seconds <= 0:
                raise ValueError(f"cache_ttl_seconds must be > 0 for operation={descriptor.name}")
            registry[descriptor.name] = descriptor

        self._cache_store = cache_store
        self._webhook_dispatcher = webhook_dispatcher
        self._poller = poller
        self._executor = executor or ProviderFallbackExecutor()
        self._descriptors = registry

    def job_supported_names(self) -> tuple[str, ...]:
        return tuple(self._descriptors)

    def job_descriptor(self, operation_name: str) -> OperationDescriptor:
        """Return the registered descriptor for an operation.

        Args:
            operation_name: Operation name.

        Returns:
            OperationDescriptor: Registered descriptor.

        Raises:
            UnknownOperationError: Raised when the operation is not registered.
        """

        descriptor = self._descriptors.get(operation_name.strip())
        if descriptor is None:
            raise UnknownOperationError(f"unsupported operation={operation_name}")
        return descriptor

    def job_build_request(self, operation_name: str, payload: Any) -> JobRequest:
        descriptor = self.job_descriptor(operation_name)
        if not isinstance(payload, Mapping):
            raise InvalidRequestError("request body must be a JSON object")

        missing_fields = [field_name for field_name in descriptor.required_fields if _job_is_blank(payload.get(field_name))]
        if missing_fields:
            verb = "is" if len(descriptor.required_fields) == 1 else "are"
            raise InvalidRequestError(f"{' and '.join(descriptor.required_fields)} {verb} required")

        webhook_url = payload.get("webhook_url")
        if webhook_url is not None and not isinstance(webhook_url, str):
            raise InvalidRequestError("webhook_url must be a string")

        if isinstance(webhook_url, str):
            webhook_url = webhook_url.strip() or None

        return JobRequest(
            operation_name=descriptor.name,
            params={key: value for key, value in payload.items() if key not in _RESERVED_FIELDS},
            job_id=payload.get("job_id"),
            webhook_url=webhook_url,
        )

    def job_fingerprint(self, job_request: JobRequest) -> str:
        """Compute the cache key from the operation's declared cache fields.

        Args:
            job_request: Job request.

        Returns:
            str: Fingerprint string.

        Raises:
            UnknownOperationError: Raised when the operation is not registered.
        """

        descriptor = self.job_descriptor(job_request.operation_name)
        return domain_fingerprint(
            descriptor.name,
            descriptor.sub_operation,
            job_params_subset(job_request.params, descriptor.cache_fields),
        )

    def job_execute(self, job_request: JobRequest, cancel_event: threading.Event | None = None) -> JobOutcome:
        descriptor = self.job_descriptor(job_request.operation_name)
        timeline: list[dict[str, object]] = [domain_build_stage_event(stage="run", status="started")]
        run_log = logger.bind(operation=descriptor.name, job_id=job_request.job_id)

        fingerprint: str | None = None
        if descriptor.descriptor_is_cacheable():
            fingerprint = self.job_fingerprint(job_request)
            run_log = run_log.bind(fingerprint=fingerprint)
            lookup = self._job_cache_lookup(fingerprint, timeline, run_log)
            if lookup.hit:
                run_log.info("cache hit")
                timeline.append(domain_build_stage_event(stage="cache", status="hit"))
                return self._job_finish(
                    job_request,
                    JobOutcome(status=JOB_STATUS_COMPLETED, job_id=job_request.job_id, result=lookup.value, cache_hit=True),
                    timeline,
                    run_log,
                )
            run_log.info("cache miss")
            timeline.append(domain_build_stage_event(stage="cache", status="miss"))

        try:
            result = self._job_run_providers(descriptor, job_request, cancel_event, timeline)
        except self._FAILURE_TYPES as error:
            error_code = self._job_error_code_for_exception(error)
            failure_details: dict[str, Any] = {"error_code": error_code, **domain_error_details(error)}
            if isinstance(error, ProviderFailureError):
                failure_details["attempts"] = [attempt.__dict__ for attempt in error.attempts]
            timeline.append(domain_build_stage_event(stage="provider", status="failed", details=failure_details))
            run_log.bind(error_code=error_code).error("operation failed: {}", error)
            return self._job_finish(
                job_request,
                JobOutcome(
                    status=JOB_STATUS_FAILED,
                    job_id=job_request.job_id,
                    error=str(error) or type(error).__name__,
                    error_code=error_code,
                ),
                timeline,
                run_log,
            )

        if fingerprint is not None and descriptor.cache_ttl_seconds is not None:
            self._job_cache_store(fingerprint, result, descriptor.cache_ttl_seconds, timeline, run_log)

        return self._job_finish(
            job_request,
            JobOutcome(status=JOB_STATUS_COMPLETED, job_id=job_request.job_id, result=result),
            timeline,
            run_log,
        )

    def _job_run_providers(
        self,
        descriptor: OperationDescriptor,
        job_request: JobRequest,
        cancel_event: threading.Event | None,
        timeline: list[dict[str, object]],
    ) -> Any:
        """Execute the operation's candidates and shape the winning payload.

        Args:
            descriptor: Operation descriptor.
            job_request: Job request.
            cancel_event: Optional cancellation signal.
            timeline: Mutable stage timeline.

        Returns:
            Any: Result payload.

        Raises:
            ProviderFailureError: Raised when every candidate failed.
            PollTimeoutError: Raised when the poll budget was exhausted.
            PollProviderFailureError: Raised when the provider reported job failure.
            PollCancelledError: Raised when polling was cancelled.
        """

        timeline.append(domain_build_stage_event(stage="provider", status="started"))
        if descriptor.mode is ExecutionMode.POLLED:
            submission = self._executor.executor_execute(
                descriptor.candidates,
                lambda candidate: candidate.candidate_submit(job_request),
                operation_name=descriptor.name,
            )
            timeline.append(
                domain_build_stage_event(
                    stage="provider",
                    status="submitted",
                    details={"candidate_id": submission.candidate.candidate_id(), "handle": submission.value},
                )
            )
            poll_result = self._poller.poller_drive(
                submission.candidate,
                str(submission.value),
                cancel_event=cancel_event,
                operation_name=descriptor.name,
            )
            timeline.append(
                domain_build_stage_event(
                    stage="poll",
                    status=poll_result.state.value,
                    details={"handle": poll_result.handle, "ticks": poll_result.ticks},
                )
            )
            payload = self._job_poll_payload(descriptor, poll_result)
            candidate_id = submission.candidate.candidate_id()
        else:
            execution = self._executor.executor_execute(
                descriptor.candidates,
                lambda candidate: candidate.candidate_invoke(job_request),
                operation_name=descriptor.name,
            )
            payload = execution.value
            candidate_id = execution.candidate.candidate_id()

        timeline.append(domain_build_stage_event(stage="provider", status="completed", details={"candidate_id": candidate_id}))
        if descriptor.result_builder is None:
            return payload
        return descriptor.result_builder(job_request, payload)

    def _job_poll_payload(self, descriptor: OperationDescriptor, poll_result: PollResult) -> Any:
        if poll_result.state is PollState.DONE:
            return poll_result.result
        if poll_result.state is PollState.FAILED:
            raise PollProviderFailureError(poll_result.error_detail or f"{descriptor.name} provider job failed")
        if poll_result.state is PollState.CANCELLED:
            raise PollCancelledError(f"{descriptor.name} cancelled while waiting for provider job {poll_result.handle}")
        raise PollTimeoutError(
            f"{descriptor.name} timed out waiting for provider job {poll_result.handle} after {poll_result.ticks} polls"
        )

    def _job_cache_lookup(self, fingerprint: str, timeline: list[dict[str, object]], run_log) -> CacheLookup:
        try:
            return self._cache_store.cache_get(fingerprint)
        except CacheUnavailableError as error:
            run_log.warning("cache read failed, bypassing cache: {}", error)
            timeline.append(domain_build_stage_event(stage="cache", status="unavailable", details=domain_error_details(error)))
            return CACHE_MISS

    def _job_cache_store(
        self,
        fingerprint: str,
        result: Any,
        ttl_seconds: int,
        timeline: list[dict[str, object]],
        run_log,
    ) -> None:
        try:
            self._cache_store.cache_put(fingerprint, result, ttl_seconds)
        except CacheUnavailableError as error:
            run_log.warning("cache write skipped: {}", error)
            timeline.append(
                domain_build_stage_event(stage="cache_store", status="skipped", details=domain_error_details(error))
            )
            return
        timeline.append(domain_build_stage_event(stage="cache_store", status="completed", details={"ttl_seconds": ttl_seconds}))

    def _job_finish(
        self,
        job_request: JobRequest,
        outcome: JobOutcome,
        timeline: list[dict[str, object]],
        run_log,
    ) -> JobOutcome:
        """Record the final stage, hand the outcome to the webhook and return it.

        Args:
            job_request: Job request.
            outcome: Outcome without timeline.
            timeline: Mutable stage timeline.
            run_log: Bound logger for the run.

        Returns:
            JobOutcome: Outcome carrying the full timeline.

        Raises:
            RuntimeError: This helper does not raise runtime errors.
        """

        timeline.append(domain_build_stage_event(stage="run", status=outcome.status))
        final_outcome = JobOutcome(
            status=outcome.status,
            job_id=outcome.job_id,
            result=outcome.result,
            error=outcome.error,
            error_code=outcome.error_code,
            cache_hit=outcome.cache_hit,
            timeline=tuple(timeline),
        )
        self._webhook_dispatcher.webhook_dispatch(job_request.webhook_url, final_outcome)
        run_log.bind(job_status=final_outcome.status, cache_hit=final_outcome.cache_hit).info("operation finished")
        return final_outcome

    def _job_error_code_for_exception(self, error: BaseException) -> str:
        """Map a caught failure to a deterministic error code.

        Args:
            error: Caught exception.

        Returns:
            str: Error code.

        Raises:
            RuntimeError: This helper does not raise runtime errors.
        """

        if isinstance(error, JobError):
            return error.error_code
        if isinstance(error, (ProviderTimeoutError, TimeoutError, httpx.TimeoutException)):
            return "JOB_TIMEOUT_ERROR"
        if isinstance(error, (ConnectionError, httpx.HTTPError)):
            return "JOB_CONNECTION_ERROR"
        if isinstance(error, ProviderError):
            return "JOB_PROVIDER_ERROR"
        return "JOB_UNEXPECTED_ERROR"


def _job_is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False
