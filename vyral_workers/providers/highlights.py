"""Local candidate that turns caller-supplied highlights into key moments."""

from __future__ import annotations

from typing import Any, Final

from vyral_workers.domain import JobRequest

from .errors import ProviderResponseError
from .interfaces import ProviderCandidatePort


class ProvidedHighlightsCandidate(ProviderCandidatePort):
    """Succeeds only when the request already carries usable highlights."""

    MAX_MOMENTS: Final[int] = 5

    def candidate_id(self) -> str:
        return "local:provided-highlights"

    def candidate_invoke(self, job_request: JobRequest) -> dict[str, Any]:
        """Return up to five moments taken from the `highlights` parameter.

        Args:
            job_request: Request with optional `highlights` list.

        Returns:
            dict[str, Any]: `moments` list with id, start, end, text and confidence.

        Raises:
            ProviderResponseError: Raised when no usable highlights were supplied.
        """

        highlights = job_request.request_param("highlights")
        if not isinstance(highlights, list) or not highlights:
            raise ProviderResponseError("no highlights supplied")

        moments: list[dict[str, Any]] = []
        for index, highlight in enumerate(highlights[: self.MAX_MOMENTS]):
            if not isinstance(highlight, dict):
                raise ProviderResponseError(f"highlight at index {index} is not an object")
            if not _is_number(highlight.get("start")) or not _is_number(highlight.get("end")):
                raise ProviderResponseError(f"highlight at index {index} has no numeric start and end")
            moments.append(
                {
                    "id": index + 1,
                    "start": highlight.get("start"),
                    "end": highlight.get("end"),
                    "text": highlight.get("text"),
                    "confidence": highlight.get("confidence"),
                }
            )
        return {"moments": moments}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
