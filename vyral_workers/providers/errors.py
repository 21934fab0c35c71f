"""Project-native typed exceptions for provider adapter failures."""

from __future__ import annotations

from typing import Any


class ProviderError(Exception):
    """Base exception for provider-level failures.

    Attributes:
        error_code: Optional upstream error or HTTP status code.
    """

    def __init__(self, message: str, error_code: str | None = None):
        super().__init__(message)
        self.error_code = error_code


class ProviderConnectionError(ProviderError, ConnectionError):
    """Transport-level connectivity failure while calling a provider."""


class ProviderTimeoutError(ProviderError, TimeoutError):
    """Transport timeout while waiting for a provider response."""


class ProviderResponseError(ProviderError, RuntimeError):
    """Provider answered, but the response encodes an error or breaks the contract."""


def provider_extract_error_message(payload: Any) -> str | None:
    """Return the error message encoded in a provider response body.

    Recognizes `{"error": "..."}` and `{"error": {"message": "..."}}` shapes.

    Args:
        payload: Decoded response body.

    Returns:
        str | None: Error message, or None when the body does not encode an error.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    if not isinstance(payload, dict):
        return None

    error_value = payload.get("error")
    if not error_value:
        return None
    if isinstance(error_value, dict):
        nested_message = error_value.get("message")
        if nested_message:
            return str(nested_message)
    return str(error_value)
