"""Tests for runtime wiring and the command-line entrypoint."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from vyral_workers.bootstrap import bootstrap_create_application, bootstrap_create_runtime
from vyral_workers.cache import InMemoryTTLCacheStore
from vyral_workers.config import AppSettings
from vyral_workers.domain import JobOutcome
from vyral_workers.main import main_run_operation


def _build_settings() -> AppSettings:
    return AppSettings(_env_file=None, worker_secret="secret", log_level="WARNING")


def test_bootstrap_runtime_wires_all_operations_with_memory_cache() -> None:
    """Assemble the orchestrator, cache and app from explicit settings.

    Returns:
        None: Assertions validate wiring.

    Raises:
        AssertionError: Raised when wiring is incomplete.
    """

    runtime = bootstrap_create_runtime(_build_settings())
    try:
        application = bootstrap_create_application(runtime)

        assert isinstance(runtime.cache_store, InMemoryTTLCacheStore)
        assert len(runtime.orchestrator.job_supported_names()) == 8
        assert application.url_path_for("operation:strategy") == "/strategy"
        assert application.url_path_for("operation:micro-clips") == "/micro-clips"
        assert application.url_path_for("operation:render-captions") == "/render-captions"

        client = TestClient(application)
        assert client.get("/health").status_code == 200
        assert client.post("/strategy", json={"transcript": "hi"}).status_code == 401
    finally:
        runtime.runtime_close()


def test_bootstrap_application_shutdown_releases_provider_client() -> None:
    """Close the provider transport and webhook executor when the app stops.

    Returns:
        None: Assertions validate shutdown wiring.

    Raises:
        AssertionError: Raised when HTTP clients stay open after shutdown.
    """

    runtime = bootstrap_create_runtime(_build_settings())
    application = bootstrap_create_application(runtime)

    with TestClient(application) as client:
        assert client.get("/").status_code == 200
        assert runtime.transport._client.is_closed is False

    assert runtime.transport._client.is_closed is True
    assert runtime.webhook_dispatcher.webhook_dispatch("https://hooks.test/x", JobOutcome(status="completed")) is None


def test_main_run_operation_rejects_bad_arguments(capsys: pytest.CaptureFixture[str]) -> None:
    """Exit with status 1 for a missing operation or malformed payload.

    Args:
        capsys: Pytest output capture fixture.

    Returns:
        None: Assertions validate argument handling.

    Raises:
        AssertionError: Raised when bad input is accepted.
    """

    assert main_run_operation(None, "{}") == 1
    assert main_run_operation("strategy", "{oops") == 1
    assert "--payload is not valid JSON" in capsys.readouterr().out
