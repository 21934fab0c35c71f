"""Operation endpoint router: one POST route per registered operation."""

from __future__ import annotations

from typing import Any, Callable

from fastapi import APIRouter, Body, Depends, status
from fastapi.responses import JSONResponse

from vyral_workers.jobs import JobOrchestratorPort


def api_create_operations_router(
    orchestrator: JobOrchestratorPort,
    auth_dependency: Callable[..., None],
) -> APIRouter:
    """Create router exposing `POST /<operation>` for each supported operation.

    Args:
        orchestrator: Job orchestrator executing requests.
        auth_dependency: Dependency enforcing the worker bearer secret.

    Returns:
        APIRouter: Router exposing operation endpoints.

    Raises:
        ValueError: Raised when dependencies are invalid.
    """

    if orchestrator is None:
        raise ValueError("orchestrator must not be None")
    if auth_dependency is None:
        raise ValueError("auth_dependency must not be None")

    router = APIRouter(tags=["operations"], dependencies=[Depends(auth_dependency)])
    for operation_name in orchestrator.job_supported_names():
        _api_register_operation_route(router, orchestrator, operation_name)
    return router


def _api_register_operation_route(router: APIRouter, orchestrator: JobOrchestratorPort, operation_name: str) -> None:
    """Bind one operation name to its POST route.

    Args:
        router: Target router.
        orchestrator: Job orchestrator executing requests.
        operation_name: Operation name used as the path segment.

    Returns:
        None: Route is registered as a side effect.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    def api_run_operation(payload: Any = Body(default=None)) -> JSONResponse:
        """Validate the body, run the operation and return its outcome envelope.

        Returns:
            JSONResponse: 200 for completed outcomes, 500 for failed outcomes.

        Raises:
            InvalidRequestError: Raised when the body is invalid; rendered as 400.
        """

        job_request = orchestrator.job_build_request(operation_name, payload)
        outcome = orchestrator.job_execute(job_request)
        status_code = status.HTTP_200_OK if outcome.outcome_is_completed() else status.HTTP_500_INTERNAL_SERVER_ERROR
        return JSONResponse(content=outcome.outcome_to_envelope(), status_code=status_code)

    router.add_api_route(
        f"/{operation_name}",
        api_run_operation,
        methods=["POST"],
        name=f"operation:{operation_name}",
    )
