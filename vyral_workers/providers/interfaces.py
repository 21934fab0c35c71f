"""Typed interfaces for provider adapter responsibilities."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from vyral_workers.domain import JobRequest


class AsyncJobStatus(str, Enum):
    """Normalized status of a provider-side long-running job."""

    PENDING = "pending"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class AsyncProviderJob:
    """Snapshot of one provider-side long-running job.

    Attributes:
        handle: Opaque provider job handle.
        status: Normalized job status.
        result: Result payload once status is `done`.
        error_detail: Provider error detail once status is `failed`.
    """

    handle: str
    status: AsyncJobStatus
    result: dict[str, Any] | None = None
    error_detail: str | None = None


class ProviderCandidatePort(Protocol):
    """Port for one interchangeable provider invocation returning a result directly."""

    def candidate_id(self) -> str:
        """Return stable candidate identifier for logs and diagnostics.

        Returns:
            str: Candidate identifier, e.g. `openrouter:openai/gpt-4`.

        Raises:
            RuntimeError: Raised when candidate metadata is unavailable.
        """

    def candidate_invoke(self, job_request: JobRequest) -> dict[str, Any]:
        """Build the provider request from the job request and execute it.

        Args:
            job_request: Request being orchestrated.

        Returns:
            dict[str, Any]: Provider payload.

        Raises:
            ProviderConnectionError: Raised for transport failures.
            ProviderTimeoutError: Raised when the provider does not answer in time.
            ProviderResponseError: Raised when the response encodes an error.
        """


class AsyncProviderCandidatePort(Protocol):
    """Port for a provider that accepts a job and completes it asynchronously."""

    def candidate_id(self) -> str:
        """Return stable candidate identifier for logs and diagnostics.

        Returns:
            str: Candidate identifier.

        Raises:
            RuntimeError: Raised when candidate metadata is unavailable.
        """

    def candidate_submit(self, job_request: JobRequest) -> str:
        """Submit a long-running job built from the job request.

        Args:
            job_request: Request being orchestrated.

        Returns:
            str: Opaque provider job handle.

        Raises:
            ProviderConnectionError: Raised for transport failures.
            ProviderResponseError: Raised when the submission is rejected.
        """

    def candidate_fetch_status(self, handle: str) -> AsyncProviderJob:
        """Fetch the current state of a submitted job.

        Args:
            handle: Handle returned by `candidate_submit`.

        Returns:
            AsyncProviderJob: Normalized job snapshot.

        Raises:
            ProviderConnectionError: Raised for transport failures.
            ProviderResponseError: Raised when the status response breaks the contract.
        """
