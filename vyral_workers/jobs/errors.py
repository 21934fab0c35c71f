"""Project-native typed exceptions for job orchestration failures."""

from __future__ import annotations

from dataclasses import dataclass


class JobError(Exception):
    """Base exception for job-layer failures.

    Attributes:
        error_code: Deterministic failure code recorded in outcome diagnostics.
    """

    error_code = "JOB_ERROR"

    def __init__(self, message: str):
        super().__init__(message)


class InvalidRequestError(JobError, ValueError):
    """Request body is not an object or misses a required field."""

    error_code = "JOB_INVALID_REQUEST"


class UnknownOperationError(JobError, LookupError):
    """Requested operation is not registered with the orchestrator."""

    error_code = "JOB_UNKNOWN_OPERATION"


class NoProviderCandidatesError(JobError, ValueError):
    """Operation was configured with an empty provider candidate list."""

    error_code = "JOB_NO_CANDIDATES"


@dataclass(frozen=True)
class FallbackAttempt:
    """Diagnostics for one provider candidate attempt.

    Attributes:
        candidate_id: Candidate identifier.
        status: `succeeded` or `failed`.
        error_type: Exception class name for failed attempts.
        error_message: Failure message for failed attempts.
    """

    candidate_id: str
    status: str
    error_type: str | None = None
    error_message: str | None = None


class ProviderFailureError(JobError, RuntimeError):
    """Every provider candidate failed; the message comes from the last failure.

    Attributes:
        attempts: Ordered attempt diagnostics for all candidates.
    """

    error_code = "JOB_PROVIDER_FAILURE"

    def __init__(self, message: str, attempts: tuple[FallbackAttempt, ...] = ()):
        super().__init__(message)
        self.attempts = attempts


class PollTimeoutError(JobError, TimeoutError):
    """Poll budget was exhausted before the provider job reached a terminal state."""

    error_code = "JOB_POLL_TIMEOUT"


class PollProviderFailureError(JobError, RuntimeError):
    """Provider reported its own long-running job as failed."""

    error_code = "JOB_POLL_PROVIDER_FAILURE"


class PollCancelledError(JobError, RuntimeError):
    """Polling was abandoned because the encompassing request was cancelled."""

    error_code = "JOB_POLL_CANCELLED"
