"""Health endpoint router composition for app and cache backend checks."""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from vyral_workers.cache import CacheStorePort, CacheUnavailableError


def api_create_health_router(cache_store: CacheStorePort) -> APIRouter:
    """Create health-check router with app and cache backend status.

    Args:
        cache_store: Cache store whose backend is checked.

    Returns:
        APIRouter: Router exposing `/health` endpoint.

    Raises:
        ValueError: Raised when cache_store is invalid.
    """

    if cache_store is None:
        raise ValueError("cache_store must not be None")

    router = APIRouter(tags=["health"])

    @router.get("/health")
    def api_health_status() -> JSONResponse:
        """Return application and cache backend health state.

        Returns:
            JSONResponse: Deterministic health payload for operational checks.

        Raises:
            RuntimeError: Backend failures are rendered as a degraded payload.
        """

        try:
            cache_health = cache_store.cache_check_health()
            payload = {
                "status": "ok",
                "app": "up",
                "cache": cache_health.status,
                "detail": cache_health.detail,
                "backend": cache_store.cache_backend_label(),
            }
            return JSONResponse(content=payload, status_code=status.HTTP_200_OK)
        except (ConnectionError, CacheUnavailableError) as error:
            payload = {
                "status": "degraded",
                "app": "up",
                "cache": "down",
                "detail": str(error),
                "backend": cache_store.cache_backend_label(),
            }
            return JSONResponse(content=payload, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)

    return router
