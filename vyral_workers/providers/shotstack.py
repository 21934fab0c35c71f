"""Shotstack render provider for burning captions into a video."""

from __future__ import annotations

from typing import Any, Final

from vyral_workers.domain import JobRequest

from .errors import ProviderResponseError, provider_extract_error_message
from .http_transport import ProviderHttpTransport
from .interfaces import AsyncJobStatus, AsyncProviderCandidatePort, AsyncProviderJob


class ShotstackRenderCandidate(AsyncProviderCandidatePort):
    """Asynchronous caption render through the Shotstack `render` API."""

    _CLIP_LENGTH_SECONDS: Final[float] = 30.0
    _STATUS_MAP: Final[dict[str, AsyncJobStatus]] = {
        "queued": AsyncJobStatus.PENDING,
        "fetching": AsyncJobStatus.RUNNING,
        "rendering": AsyncJobStatus.RUNNING,
        "saving": AsyncJobStatus.RUNNING,
        "done": AsyncJobStatus.DONE,
        "failed": AsyncJobStatus.FAILED,
    }

    def __init__(
        self,
        transport: ProviderHttpTransport,
        api_key: str,
        base_url: str = "https://api.shotstack.io/stage",
    ):
        """Initialize render provider.

        Args:
            transport: Shared provider HTTP transport.
            api_key: Shotstack API key.
            base_url: Shotstack environment base URL.

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
        return "shotstack:render"

    def candidate_submit(self, job_request: JobRequest) -> str:
        """Submit a two-track render: source video plus a caption title clip.

        Args:
            job_request: Request carrying `file_url`, `captions` and optional `style`.

        Returns:
            str: Render id.

        Raises:
            ProviderResponseError: Raised when the submission is rejected or has no id.
        """

        payload = self._transport.transport_request_json(
            "POST",
            f"{self._base_url}/render",
            headers=self._provider_headers(),
            json_body=self._provider_build_edit(job_request),
            source_label=self.candidate_id(),
        )
        error_message = provider_extract_error_message(payload)
        if error_message:
            raise ProviderResponseError(error_message)

        render_id = self._provider_response_section(payload).get("id")
        if not render_id:
            raise ProviderResponseError("Shotstack submission response missing render id")
        return str(render_id)

    def candidate_fetch_status(self, handle: str) -> AsyncProviderJob:
        """Fetch render state and map it to the normalized status set.

        Args:
            handle: Render id.

        Returns:
            AsyncProviderJob: Normalized job snapshot.

        Raises:
            ProviderResponseError: Raised when the status value is unknown.
        """

        payload = self._transport.transport_request_json(
            "GET",
            f"{self._base_url}/render/{handle}",
            headers=self._provider_headers(),
            source_label=self.candidate_id(),
        )
        render_state = self._provider_response_section(payload)
        raw_status = str(render_state.get("status") or "").strip().lower()
        status = self._STATUS_MAP.get(raw_status)
        if status is None:
            raise ProviderResponseError(f"Shotstack returned unknown status={raw_status or 'EMPTY'}")

        if status is AsyncJobStatus.DONE:
            return AsyncProviderJob(
                handle=handle,
                status=status,
                result={
                    "rendered_video_url": render_state.get("url"),
                    "render_id": handle,
                    "duration": render_state.get("duration"),
                },
            )
        if status is AsyncJobStatus.FAILED:
            return AsyncProviderJob(
                handle=handle,
                status=status,
                error_detail=str(render_state.get("error") or "Video rendering failed"),
            )
        return AsyncProviderJob(handle=handle, status=status)

    def _provider_build_edit(self, job_request: JobRequest) -> dict[str, Any]:
        return {
            "timeline": {
                "tracks": [
                    {
                        "clips": [
                            {
                                "asset": {"type": "video", "src": job_request.request_param("file_url")},
                                "start": 0,
                                "length": self._CLIP_LENGTH_SECONDS,
                            },
                            {
                                "asset": {
                                    "type": "title",
                                    "text": job_request.request_param("captions"),
                                    "style": job_request.request_param("style") or "minimal",
                                },
                                "start": 0,
                                "length": self._CLIP_LENGTH_SECONDS,
                            },
                        ]
                    }
                ]
            },
            "output": {"format": "mp4", "resolution": "hd"},
        }

    def _provider_response_section(self, payload: Any) -> dict[str, Any]:
        section = payload.get("response") if isinstance(payload, dict) else None
        if not isinstance(section, dict):
            raise ProviderResponseError("Shotstack response missing `response` object")
        return section

    def _provider_headers(self) -> dict[str, str]:
        return {"x-api-key": self._api_key, "Content-Type": "application/json"}
