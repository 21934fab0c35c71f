"""Typed interfaces for job-layer orchestration responsibilities."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping, Protocol

from vyral_workers.domain import JobOutcome, JobRequest

ResultBuilder = Callable[[JobRequest, Any], Any]


class ExecutionMode(str, Enum):
    """How an operation's provider candidates complete."""

    DIRECT = "direct"
    POLLED = "polled"


@dataclass(frozen=True)
class OperationDescriptor:
    """Static description of one orchestrated operation.

    Attributes:
        name: Operation name and HTTP path segment.
        sub_operation: Sub-operation label mixed into the fingerprint.
        required_fields: Body fields that must be present and non-blank.
        candidates: Ordered provider candidates; async candidates for `POLLED`.
        mode: Whether candidates return results directly or need polling.
        cache_fields: Body fields that identify a cacheable result.
        cache_ttl_seconds: Cache lifetime, or None for non-cacheable operations.
        result_builder: Optional shaping of the winning provider payload.
    """

    name: str
    sub_operation: str
    required_fields: tuple[str, ...]
    candidates: tuple[Any, ...]
    mode: ExecutionMode = ExecutionMode.DIRECT
    cache_fields: tuple[str, ...] = ()
    cache_ttl_seconds: int | None = None
    result_builder: ResultBuilder | None = None

    def descriptor_is_cacheable(self) -> bool:
        """Return whether results of this operation are cached.

        Returns:
            bool: True when a cache TTL is configured.

        Raises:
            RuntimeError: This helper does not raise runtime errors.
        """

        return self.cache_ttl_seconds is not None


class JobOrchestratorPort(Protocol):
    """Port definition for orchestrating operation requests."""

    def job_supported_names(self) -> tuple[str, ...]:
        """Return the set of operation names this orchestrator can execute.

        Returns:
            tuple[str, ...]: Deterministic list of supported operation names.

        Raises:
            RuntimeError: Raised when supported operation metadata is unavailable.
        """

    def job_build_request(self, operation_name: str, payload: Any) -> JobRequest:
        """Validate a request body and build the job request.

        Args:
            operation_name: Operation name.
            payload: Decoded JSON request body.

        Returns:
            JobRequest: Immutable job request.

        Raises:
            UnknownOperationError: Raised when the operation is not registered.
            InvalidRequestError: Raised when the body is not an object or misses required fields.
        """

    def job_execute(self, job_request: JobRequest, cancel_event: threading.Event | None = None) -> JobOutcome:
        """Run one request through cache, providers, polling and webhook delivery.

        Args:
            job_request: Validated job request.
            cancel_event: Optional cancellation signal for polled operations.

        Returns:
            JobOutcome: Terminal completed or failed outcome.

        Raises:
            UnknownOperationError: Raised when the operation is not registered.
        """


def job_params_subset(params: Mapping[str, Any], field_names: tuple[str, ...]) -> dict[str, Any]:
    """Select fingerprint fields; absent fields are recorded as None.

    Args:
        params: Request parameter bag.
        field_names: Declared cache fields.

    Returns:
        dict[str, Any]: Field subset keyed by name.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    return {field_name: params.get(field_name) for field_name in field_names}
