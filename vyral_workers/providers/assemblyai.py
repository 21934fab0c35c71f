"""AssemblyAI transcription provider driven through submission and status polling."""

from __future__ import annotations

from typing import Any, Final

from vyral_workers.domain import JobRequest

from .errors import ProviderResponseError, provider_extract_error_message
from .http_transport import ProviderHttpTransport
from .interfaces import AsyncJobStatus, AsyncProviderCandidatePort, AsyncProviderJob


class AssemblyAITranscriptionCandidate(AsyncProviderCandidatePort):
    """Asynchronous transcription through the AssemblyAI `v2/transcript` API."""

    _STATUS_MAP: Final[dict[str, AsyncJobStatus]] = {
        "queued": AsyncJobStatus.PENDING,
        "processing": AsyncJobStatus.RUNNING,
        "completed": AsyncJobStatus.DONE,
        "error": AsyncJobStatus.FAILED,
    }

    def __init__(
        self,
        transport: ProviderHttpTransport,
        api_key: str,
        base_url: str = "https://api.assemblyai.com/v2",
    ):
        """Initialize transcription provider.

        Args:
            transport: Shared provider HTTP transport.
            api_key: AssemblyAI API key.
            base_url: AssemblyAI API base URL.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when required values are invalid.
        """

        if transport is None:
            raise ValueError("transport must not be None")
        if not base_url.strip():
            raise ValueError("base_url must not be blank")

        self._transport = transport
        self._api_key = api_key
        self._base_url = base_url.strip().rstrip("/")

    def candidate_id(self) -> str:
        return "assemblyai:transcript"

    def candidate_submit(self, job_request: JobRequest) -> str:
        """Submit the audio URL for transcription with speaker labels and highlights.

        Args:
            job_request: Request carrying `file_url`.

        Returns:
            str: Transcript id.

        Raises:
            ProviderResponseError: Raised when the submission is rejected or has no id.
        """

        payload = self._transport.transport_request_json(
            "POST",
            f"{self._base_url}/transcript",
            headers=self._provider_headers(),
            json_body={
                "audio_url": job_request.request_param("file_url"),
                "speaker_labels": True,
                "auto_highlights": True,
            },
            source_label=self.candidate_id(),
        )
        error_message = provider_extract_error_message(payload)
        if error_message:
            raise ProviderResponseError(error_message)

        transcript_id = payload.get("id") if isinstance(payload, dict) else None
        if not transcript_id:
            raise ProviderResponseError("AssemblyAI submission response missing id")
        return str(transcript_id)

    def candidate_fetch_status(self, handle: str) -> AsyncProviderJob:
        """Fetch transcript state and map it to the normalized status set.

        Args:
            handle: Transcript id.

        Returns:
            AsyncProviderJob: Normalized job snapshot.

        Raises:
            ProviderResponseError: Raised when the status value is unknown.
        """

        payload = self._transport.transport_request_json(
            "GET",
            f"{self._base_url}/transcript/{handle}",
            headers=self._provider_headers(),
            source_label=self.candidate_id(),
        )
        if not isinstance(payload, dict):
            raise ProviderResponseError("AssemblyAI status response is not an object")

        raw_status = str(payload.get("status") or "").strip().lower()
        status = self._STATUS_MAP.get(raw_status)
        if status is None:
            raise ProviderResponseError(f"AssemblyAI returned unknown status={raw_status or 'EMPTY'}")

        if status is AsyncJobStatus.DONE:
            return AsyncProviderJob(handle=handle, status=status, result=self._provider_build_result(payload))
        if status is AsyncJobStatus.FAILED:
            return AsyncProviderJob(
                handle=handle,
                status=status,
                error_detail=str(payload.get("error") or "transcription failed"),
            )
        return AsyncProviderJob(handle=handle, status=status)

    def _provider_build_result(self, payload: dict[str, Any]) -> dict[str, Any]:
        highlights = payload.get("auto_highlights_result") or {}
        return {
            "transcript": payload.get("text"),
            "confidence": payload.get("confidence"),
            "highlights": highlights.get("results") if isinstance(highlights, dict) else None,
            "speaker_labels": payload.get("utterances") or payload.get("speaker_labels"),
            "chapters": payload.get("chapters"),
            "sentiment_analysis": payload.get("sentiment_analysis_results"),
        }

    def _provider_headers(self) -> dict[str, str]:
        return {"authorization": self._api_key, "content-type": "application/json"}
