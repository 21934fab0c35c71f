"""Bearer-secret authentication for operation endpoints."""

from __future__ import annotations

import hmac
from typing import Callable

from fastapi import Header


class UnauthorizedError(PermissionError):
    """Raised when a request lacks the expected worker bearer secret."""


def api_create_worker_secret_dependency(worker_secret: str) -> Callable[[str | None], None]:
    """Create a dependency that checks `Authorization: Bearer <secret>`.

    Args:
        worker_secret: Shared secret configured for the service.

    Returns:
        Callable[[str | None], None]: FastAPI dependency raising on mismatch.

    Raises:
        ValueError: Raised when worker_secret is blank.
    """

    if not worker_secret or not worker_secret.strip():
        raise ValueError("worker_secret must not be blank")
    expected_header = f"Bearer {worker_secret.strip()}"

    def api_require_worker_secret(authorization: str | None = Header(default=None)) -> None:
        if authorization is None or not hmac.compare_digest(
            authorization.encode("utf-8"),
            expected_header.encode("utf-8"),
        ):
            raise UnauthorizedError("Unauthorized")

    return api_require_worker_secret
