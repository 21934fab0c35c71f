"""Structured stage events collected into a job outcome timeline."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any


def domain_build_stage_event(
    stage: str,
    status: str,
    details: dict[str, Any] | None = None,
) -> dict[str, object]:
    """Build one structured timeline event payload.

    Args:
        stage: Stage name (`cache`, `provider`, `poll`, `cache_store`, `run`).
        status: Stage status marker.
        details: Optional structured details object.

    Returns:
        dict[str, object]: Structured timeline event.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    event_payload: dict[str, object] = {
        "stage": stage,
        "status": status,
        "at_utc": datetime.now(timezone.utc).isoformat(),
    }
    if details:
        event_payload["details"] = dict(details)
    return event_payload


def domain_error_details(error: BaseException) -> dict[str, str]:
    """Return the error type and message fields used in failure events.

    Args:
        error: Caught exception.

    Returns:
        dict[str, str]: `error_type` and `error_message` entries.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    return {"error_type": type(error).__name__, "error_message": str(error)}
