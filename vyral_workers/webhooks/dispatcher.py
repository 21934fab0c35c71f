"""Best-effort webhook delivery of job outcomes."""

from __future__ import annotations

from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Final

import httpx

from vyral_workers.domain import JobOutcome
from vyral_workers.observability import logger


class WebhookDispatcher:
    """Deliver the outcome envelope to a caller-supplied URL at most once.

    Delivery never raises: network errors and non-2xx statuses are logged and
    dropped. `webhook_dispatch` runs delivery on a separate executor so the
    caller's synchronous response is neither delayed nor altered.
    """

    _USER_AGENT: Final[str] = "vyral-workers-webhook/1.0 (Python/httpx)"

    def __init__(
        self,
        timeout_seconds: float = 10.0,
        max_workers: int = 4,
        client: httpx.Client | None = None,
        executor: Executor | None = None,
    ):
        """Initialize dispatcher.

        Args:
            timeout_seconds: Delivery request timeout.
            max_workers: Thread count for the default delivery executor.
            client: Optional preconfigured client, mainly for tests.
            executor: Optional executor used by `webhook_dispatch`.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when numeric values are invalid.
        """

        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")

        self._timeout_seconds = timeout_seconds
        self._client = client or httpx.Client(headers={"User-Agent": self._USER_AGENT})
        self._executor = executor or ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="webhook")

    def webhook_notify(self, webhook_url: str | None, outcome: JobOutcome) -> bool:
        """POST the outcome envelope once.

        Args:
            webhook_url: Target URL; None or blank is a no-op.
            outcome: Job outcome to deliver.

        Returns:
            bool: True when the endpoint answered with a 2xx status.

        Raises:
            RuntimeError: This method does not raise runtime errors.
        """

        if not webhook_url:
            return False

        delivery_log = logger.bind(webhook_url=webhook_url, job_id=outcome.job_id, job_status=outcome.status)
        try:
            response = self._client.post(
                webhook_url,
                json=outcome.outcome_to_envelope(),
                timeout=self._timeout_seconds,
            )
        except httpx.HTTPError as error:
            delivery_log.warning("webhook delivery failed: {}", error)
            return False

        if not response.is_success:
            delivery_log.bind(status_code=response.status_code).warning("webhook endpoint rejected delivery")
            return False

        delivery_log.bind(status_code=response.status_code).info("webhook delivered")
        return True

    def webhook_dispatch(self, webhook_url: str | None, outcome: JobOutcome) -> Future | None:
        """Schedule one delivery without waiting for it.

        Args:
            webhook_url: Target URL; None or blank is a no-op.
            outcome: Job outcome to deliver.

        Returns:
            Future | None: Delivery future, or None when nothing was scheduled.

        Raises:
            RuntimeError: This method does not raise runtime errors.
        """

        if not webhook_url:
            return None

        try:
            return self._executor.submit(self.webhook_notify, webhook_url, outcome)
        except RuntimeError as error:
            logger.bind(webhook_url=webhook_url, job_id=outcome.job_id).warning(
                "webhook delivery not scheduled: {}",
                error,
            )
            return None

    def webhook_shutdown(self, wait: bool = True) -> None:
        """Stop accepting deliveries and release the HTTP client.

        Args:
            wait: Whether to wait for in-flight deliveries.

        Returns:
            None: Resources are released as a side effect.

        Raises:
            RuntimeError: This method does not raise runtime errors.
        """

        self._executor.shutdown(wait=wait)
        self._client.close()
