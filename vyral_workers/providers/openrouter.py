"""OpenRouter chat-completion candidate used by the text and vision operations."""

from __future__ import annotations

from typing import Any, Callable

from vyral_workers.domain import JobRequest

from .errors import ProviderResponseError, provider_extract_error_message
from .http_transport import ProviderHttpTransport
from .interfaces import ProviderCandidatePort

ChatMessageBuilder = Callable[[JobRequest], list[dict[str, Any]]]


class OpenRouterChatCandidate(ProviderCandidatePort):
    """One model on the OpenRouter chat-completions endpoint.

    The candidate only extracts the first choice's message content; the
    operation's result builder decides how to name it.
    """

    def __init__(
        self,
        transport: ProviderHttpTransport,
        api_key: str,
        model: str,
        message_builder: ChatMessageBuilder | None = None,
        base_url: str = "https://openrouter.ai/api/v1",
        referer: str = "https://vyral.vercel.app",
        organization_id: str = "",
        temperature: float | None = 0.7,
        max_tokens: int | None = None,
    ):
        """Initialize chat candidate.

        Args:
            transport: Shared provider HTTP transport.
            api_key: OpenRouter API key.
            model: Model identifier, e.g. `openai/gpt-4`.
            message_builder: Builds chat messages from the job request.
            base_url: OpenRouter API base URL.
            referer: Value sent in the `HTTP-Referer` header.
            organization_id: Optional organization header value.
            temperature: Optional sampling temperature.
            max_tokens: Optional completion token cap.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when required values are blank.
        """

        if transport is None:
            raise ValueError("transport must not be None")
        if not model.strip():
            raise ValueError("model must not be blank")
        if not base_url.strip():
            raise ValueError("base_url must not be blank")

        self._transport = transport
        self._api_key = api_key
        self._model = model.strip()
        self._message_builder = message_builder
        self._base_url = base_url.strip().rstrip("/")
        self._referer = referer
        self._organization_id = organization_id
        self._temperature = temperature
        self._max_tokens = max_tokens

    @property
    def model(self) -> str:
        return self._model

    def candidate_id(self) -> str:
        return f"openrouter:{self._model}"

    def candidate_invoke(self, job_request: JobRequest) -> dict[str, Any]:
        """Run one chat completion built by the configured message builder.

        Args:
            job_request: Request being orchestrated.

        Returns:
            dict[str, Any]: `model` and `content` of the first choice.

        Raises:
            ValueError: Raised when no message builder is configured.
            ProviderResponseError: Raised when the response encodes an error or has no content.
        """

        if self._message_builder is None:
            raise ValueError(f"candidate {self.candidate_id()} has no message builder")
        content = self.provider_complete(self._message_builder(job_request))
        return {"model": self._model, "content": content}

    def provider_complete(self, messages: list[dict[str, Any]]) -> str:
        """Send chat messages and return the first choice's content.

        Args:
            messages: Chat messages in OpenAI format.

        Returns:
            str: Completion text.

        Raises:
            ProviderConnectionError: Raised for transport failures.
            ProviderTimeoutError: Raised when the request times out.
            ProviderResponseError: Raised when the response encodes an error or has no content.
        """

        request_body: dict[str, Any] = {"model": self._model, "messages": messages}
        if self._temperature is not None:
            request_body["temperature"] = self._temperature
        if self._max_tokens is not None:
            request_body["max_tokens"] = self._max_tokens

        payload = self._transport.transport_request_json(
            "POST",
            f"{self._base_url}/chat/completions",
            headers=self._provider_headers(),
            json_body=request_body,
            source_label=self.candidate_id(),
        )

        error_message = provider_extract_error_message(payload)
        if error_message:
            raise ProviderResponseError(error_message)

        try:
            content = payload["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as error:
            raise ProviderResponseError(f"{self.candidate_id()} response has no message content") from error
        if not isinstance(content, str) or not content.strip():
            raise ProviderResponseError(f"{self.candidate_id()} returned empty content")
        return content

    def _provider_headers(self) -> dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": self._referer,
        }
        if self._organization_id:
            headers["X-OpenAI-Organization"] = self._organization_id
        return headers
