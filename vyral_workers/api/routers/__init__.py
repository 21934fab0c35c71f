"""API router package for endpoint composition."""

from .health import api_create_health_router
from .operations import api_create_operations_router

__all__ = ["api_create_health_router", "api_create_operations_router"]
