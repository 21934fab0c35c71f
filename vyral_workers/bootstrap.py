"""Application bootstrap wiring for startup validation and dependency assembly."""

from dataclasses import dataclass

from fastapi import FastAPI

from vyral_workers.api import create_api_application
from vyral_workers.cache import CacheStorePort, InMemoryTTLCacheStore
from vyral_workers.config import AppSettings, config_load_settings
from vyral_workers.db import SQLAlchemyResultCacheStore, db_create_engine
from vyral_workers.jobs import (
    AsyncCompletionPoller,
    JobOrchestrator,
    OperationCatalogConfig,
    PollerConfig,
    ProviderFallbackExecutor,
    job_build_operation_descriptors,
)
from vyral_workers.observability import logger, observability_configure_logging
from vyral_workers.providers import ProviderHttpTransport
from vyral_workers.webhooks import WebhookDispatcher


@dataclass(frozen=True)
class BootstrapRuntime:
    """Fully wired runtime dependencies shared by HTTP and CLI surfaces.

    Attributes:
        settings: Validated runtime settings.
        cache_store: Configured result cache backend.
        transport: Shared provider HTTP transport.
        webhook_dispatcher: Outcome notifier.
        orchestrator: Job orchestrator for all operations.
    """

    settings: AppSettings
    cache_store: CacheStorePort
    transport: ProviderHttpTransport
    webhook_dispatcher: WebhookDispatcher
    orchestrator: JobOrchestrator

    def runtime_close(self) -> None:
        """Wait for pending webhook deliveries and release HTTP clients.

        Returns:
            None: Resources are released as a side effect.

        Raises:
            RuntimeError: This method does not raise runtime errors.
        """

        self.webhook_dispatcher.webhook_shutdown(wait=True)
        self.transport.transport_close()


def bootstrap_create_cache_store(settings: AppSettings) -> CacheStorePort:
    """Create the configured cache backend.

    Args:
        settings: Validated runtime settings.

    Returns:
        CacheStorePort: In-memory or database-backed cache store.

    Raises:
        ValueError: Raised when the database URL is blank for the database backend.
    """

    if settings.cache_backend == "database":
        return SQLAlchemyResultCacheStore(engine=db_create_engine(database_url=settings.database_url))
    return InMemoryTTLCacheStore()


def bootstrap_create_runtime(settings: AppSettings | None = None) -> BootstrapRuntime:
    """Assemble runtime dependencies after validating startup configuration.

    Args:
        settings: Optional preloaded settings; loaded from the environment when omitted.

    Returns:
        BootstrapRuntime: Wired runtime dependencies.

    Raises:
        SettingsLoadError: Raised when startup configuration validation fails.
    """

    resolved_settings = settings or config_load_settings()
    observability_configure_logging(level=resolved_settings.log_level, serialize=resolved_settings.log_serialize)

    cache_store = bootstrap_create_cache_store(resolved_settings)
    transport = ProviderHttpTransport(timeout_seconds=resolved_settings.provider_timeout_seconds)
    webhook_dispatcher = WebhookDispatcher(
        timeout_seconds=resolved_settings.webhook_timeout_seconds,
        max_workers=resolved_settings.webhook_max_workers,
    )
    descriptors = job_build_operation_descriptors(
        config=OperationCatalogConfig(
            openrouter_api_key=resolved_settings.openrouter_api_key,
            assemblyai_api_key=resolved_settings.assemblyai_api_key,
            shotstack_api_key=resolved_settings.shotstack_api_key,
            llm_models=resolved_settings.llm_models,
            vision_models=resolved_settings.vision_models,
            openrouter_base_url=resolved_settings.openrouter_base_url,
            openrouter_referer=resolved_settings.openrouter_referer,
            openai_org_id=resolved_settings.openai_org_id,
            assemblyai_base_url=resolved_settings.assemblyai_base_url,
            shotstack_base_url=resolved_settings.shotstack_base_url,
        ),
        transport=transport,
    )
    orchestrator = JobOrchestrator(
        cache_store=cache_store,
        webhook_dispatcher=webhook_dispatcher,
        poller=AsyncCompletionPoller(
            config=PollerConfig(
                poll_interval_seconds=resolved_settings.poll_interval_seconds,
                max_ticks=resolved_settings.poll_max_ticks,
                deadline_seconds=resolved_settings.poll_deadline_seconds,
            )
        ),
        descriptors=descriptors,
        executor=ProviderFallbackExecutor(),
    )
    logger.bind(
        environment=resolved_settings.environment_name,
        cache_backend=cache_store.cache_backend_label(),
        operations=list(orchestrator.job_supported_names()),
    ).info("runtime assembled")

    return BootstrapRuntime(
        settings=resolved_settings,
        cache_store=cache_store,
        transport=transport,
        webhook_dispatcher=webhook_dispatcher,
        orchestrator=orchestrator,
    )


def bootstrap_create_application(runtime: BootstrapRuntime | None = None) -> FastAPI:
    """Assemble the runtime application after validating startup configuration.

    Args:
        runtime: Optional prewired runtime.

    Returns:
        FastAPI: Fully initialized FastAPI application instance.

    Raises:
        SettingsLoadError: Raised when startup configuration validation fails.
    """

    resolved_runtime = runtime or bootstrap_create_runtime()
    return create_api_application(
        settings=resolved_runtime.settings,
        orchestrator=resolved_runtime.orchestrator,
        cache_store=resolved_runtime.cache_store,
        shutdown_hook=resolved_runtime.runtime_close,
    )
