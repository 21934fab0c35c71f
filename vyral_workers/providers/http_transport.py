"""Shared JSON-over-HTTP transport for provider adapters."""

from __future__ import annotations

from typing import Any, Final

import httpx

from .errors import (
    ProviderConnectionError,
    ProviderResponseError,
    ProviderTimeoutError,
    provider_extract_error_message,
)


class ProviderHttpTransport:
    """Thin `httpx.Client` wrapper mapping transport failures to provider errors."""

    _USER_AGENT: Final[str] = "vyral-workers/1.0 (Python/httpx)"

    def __init__(self, timeout_seconds: float = 60.0, client: httpx.Client | None = None):
        """Initialize provider transport.

        Args:
            timeout_seconds: Per-request timeout in seconds.
            client: Optional preconfigured client, mainly for tests.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when timeout_seconds is not positive.
        """

        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")

        self._timeout_seconds = timeout_seconds
        self._client = client or httpx.Client(headers={"User-Agent": self._USER_AGENT})

    def transport_request_json(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
        json_body: Any = None,
        source_label: str = "provider",
    ) -> Any:
        """Execute one HTTP request and return the decoded JSON body.

        Args:
            method: HTTP method.
            url: Absolute endpoint URL.
            headers: Optional request headers.
            json_body: Optional JSON request body.
            source_label: Provider label used in error messages.

        Returns:
            Any: Decoded JSON body.

        Raises:
            ProviderTimeoutError: Raised when the request times out.
            ProviderConnectionError: Raised for network failures.
            ProviderResponseError: Raised for error statuses or undecodable bodies.
        """

        try:
            response = self._client.request(
                method,
                url,
                headers=headers,
                json=json_body,
                timeout=self._timeout_seconds,
            )
        except httpx.TimeoutException as error:
            raise ProviderTimeoutError(f"{source_label} request timed out") from error
        except httpx.HTTPError as error:
            raise ProviderConnectionError(f"{source_label} request failed: {error}") from error

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if response.status_code >= 400:
            error_message = provider_extract_error_message(payload) or f"HTTP {response.status_code}"
            raise ProviderResponseError(
                f"{source_label} returned HTTP {response.status_code}: {error_message}",
                error_code=str(response.status_code),
            )
        if payload is None:
            raise ProviderResponseError(f"{source_label} returned a non-JSON response")
        return payload

    def transport_close(self) -> None:
        """Close the underlying HTTP client.

        Returns:
            None: Connections are released as a side effect.

        Raises:
            RuntimeError: This method does not raise runtime errors.
        """

        self._client.close()
