"""FastAPI application factory for the worker service.

This module composes health and operation routers and renders request-level
errors in the `{"error": ...}` shape callers expect.
"""

from contextlib import asynccontextmanager
from typing import Callable

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from vyral_workers.cache import CacheStorePort
from vyral_workers.config import AppSettings
from vyral_workers.jobs import InvalidRequestError, JobOrchestratorPort, UnknownOperationError
from vyral_workers.observability import logger

from .auth import UnauthorizedError, api_create_worker_secret_dependency
from .routers import api_create_health_router, api_create_operations_router


def create_api_application(
    settings: AppSettings,
    orchestrator: JobOrchestratorPort,
    cache_store: CacheStorePort,
    shutdown_hook: Callable[[], None] | None = None,
) -> FastAPI:
    """Create the FastAPI application instance for the service.

    Args:
        settings: Validated application settings.
        orchestrator: Job orchestrator executing operation requests.
        cache_store: Cache store reported by the health endpoint.
        shutdown_hook: Optional callable releasing runtime resources when the
            application stops, such as pending webhooks and provider clients.

    Returns:
        FastAPI: Framework application instance.

    Raises:
        ValueError: Raised when the worker secret is blank.
    """

    @asynccontextmanager
    async def api_lifespan(_application: FastAPI):
        logger.bind(environment=settings.environment_name).info("worker service started")
        yield
        if shutdown_hook is not None:
            shutdown_hook()
        logger.info("worker service stopped")

    application = FastAPI(title="Vyral Workers", lifespan=api_lifespan)

    @application.exception_handler(UnauthorizedError)
    def api_handle_unauthorized(_request: Request, _error: UnauthorizedError) -> JSONResponse:
        return JSONResponse(content={"error": "Unauthorized"}, status_code=status.HTTP_401_UNAUTHORIZED)

    @application.exception_handler(InvalidRequestError)
    def api_handle_invalid_request(_request: Request, error: InvalidRequestError) -> JSONResponse:
        return JSONResponse(content={"error": str(error)}, status_code=status.HTTP_400_BAD_REQUEST)

    @application.exception_handler(RequestValidationError)
    def api_handle_validation_error(_request: Request, _error: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            content={"error": "request body must be a JSON object"},
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    @application.exception_handler(UnknownOperationError)
    def api_handle_unknown_operation(_request: Request, error: UnknownOperationError) -> JSONResponse:
        return JSONResponse(content={"error": str(error)}, status_code=status.HTTP_404_NOT_FOUND)

    @application.exception_handler(StarletteHTTPException)
    def api_handle_http_error(_request: Request, error: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(content={"error": str(error.detail)}, status_code=error.status_code)

    @application.get("/", tags=["foundation"])
    def foundation_index() -> dict[str, object]:
        """Return service metadata and supported operations.

        Returns:
            dict[str, object]: Minimal response for deployment verification.

        Raises:
            RuntimeError: Raised if route handler cannot produce a response.
        """

        return {
            "service": "vyral-workers",
            "status": "ready",
            "environment": settings.environment_name,
            "operations": list(orchestrator.job_supported_names()),
        }

    application.include_router(api_create_health_router(cache_store=cache_store))
    application.include_router(
        api_create_operations_router(
            orchestrator=orchestrator,
            auth_dependency=api_create_worker_secret_dependency(settings.worker_secret),
        )
    )

    return application
