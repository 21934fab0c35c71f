"""Typed domain models shared across runtime layers.

These contracts travel between the API, job and provider layers and carry no
behavior beyond envelope rendering.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

JOB_STATUS_COMPLETED = "completed"
JOB_STATUS_FAILED = "failed"


@dataclass(frozen=True)
class HealthStatus:
    """Health response contract used by health-check surfaces.

    Attributes:
        status: Overall status text for service health.
        detail: Additional message suitable for operational diagnostics.
    """

    status: str
    detail: str


@dataclass(frozen=True)
class JobRequest:
    """Immutable input for one orchestrated operation run.

    Attributes:
        operation_name: Registered operation identifier.
        params: Operation-specific JSON-serializable values, key order irrelevant.
        job_id: Optional caller-supplied identifier echoed back unmodified.
        webhook_url: Optional endpoint notified with the final outcome.
    """

    operation_name: str
    params: dict[str, Any]
    job_id: Any = None
    webhook_url: str | None = None

    def request_param(self, name: str, default: Any = None) -> Any:
        """Return one parameter value or a default when absent.

        Args:
            name: Parameter name.
            default: Value returned when parameter is missing.

        Returns:
            Any: Parameter value.

        Raises:
            RuntimeError: This helper does not raise runtime errors.
        """

        return self.params.get(name, default)


@dataclass(frozen=True)
class JobOutcome:
    """Terminal record delivered to the caller and to the webhook.

    Attributes:
        status: `completed` or `failed`.
        job_id: Identifier echoed from the request.
        result: Result payload for completed outcomes.
        error: Human-readable error message for failed outcomes.
        error_code: Deterministic failure code for diagnostics.
        cache_hit: Whether the result was served from cache.
        timeline: Structured stage events collected during the run.
    """

    status: str
    job_id: Any = None
    result: Any = None
    error: str | None = None
    error_code: str | None = None
    cache_hit: bool = False
    timeline: tuple[dict[str, object], ...] = field(default_factory=tuple)

    def outcome_is_completed(self) -> bool:
        """Return whether the outcome represents a completed run.

        Returns:
            bool: True for completed outcomes.

        Raises:
            RuntimeError: This helper does not raise runtime errors.
        """

        return self.status == JOB_STATUS_COMPLETED

    def outcome_to_envelope(self) -> dict[str, Any]:
        """Render the caller-visible response envelope.

        The same body is used for the synchronous response and the webhook call.

        Returns:
            dict[str, Any]: Envelope with `job_id`, `status` and `result` or `error`.

        Raises:
            RuntimeError: This helper does not raise runtime errors.
        """

        if self.outcome_is_completed():
            return {"job_id": self.job_id, "status": self.status, "result": self.result}
        return {"job_id": self.job_id, "status": self.status, "error": self.error}
