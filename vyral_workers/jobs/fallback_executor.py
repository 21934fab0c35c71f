"""Ordered provider fallback with last-failure error aggregation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, Protocol, Sequence, TypeVar

import httpx

from vyral_workers.observability import logger
from vyral_workers.providers import ProviderError, ProviderResponseError, provider_extract_error_message

from .errors import FallbackAttempt, NoProviderCandidatesError, ProviderFailureError


class _IdentifiedCandidate(Protocol):
    def candidate_id(self) -> str:
        ...


CandidateT = TypeVar("CandidateT", bound=_IdentifiedCandidate)


@dataclass(frozen=True)
class FallbackResult(Generic[CandidateT]):
    """Winning candidate attempt.

    Attributes:
        candidate: Candidate whose attempt succeeded.
        value: Value returned by the attempt.
        attempts: Attempt diagnostics up to and including the success.
    """

    candidate: CandidateT
    value: Any
    attempts: tuple[FallbackAttempt, ...]


class ProviderFallbackExecutor:
    """Attempt candidates strictly in order and return the first success.

    A candidate fails when its attempt raises one of the expected failure types
    or when the returned value encodes a provider-level error. Any other
    exception is a programming error and propagates unchanged.
    """

    _CANDIDATE_FAILURE_TYPES: tuple[type[BaseException], ...] = (
        ProviderError,
        ConnectionError,
        TimeoutError,
        ValueError,
        RuntimeError,
        httpx.HTTPError,
    )

    def executor_execute(
        self,
        candidates: Sequence[CandidateT],
        attempt: Callable[[CandidateT], Any],
        operation_name: str = "",
    ) -> FallbackResult[CandidateT]:
        """Run the attempt against each candidate until one succeeds.

        Args:
            candidates: Ordered provider candidates.
            attempt: Callable invoking one candidate.
            operation_name: Operation label for log lines.

        Returns:
            FallbackResult: Winning candidate, its value and attempt diagnostics.

        Raises:
            NoProviderCandidatesError: Raised when candidates is empty.
            ProviderFailureError: Raised when every candidate failed.
        """

        if not candidates:
            raise NoProviderCandidatesError(f"no candidates configured for operation={operation_name or 'UNKNOWN'}")

        attempts: list[FallbackAttempt] = []
        last_error: BaseException | None = None
        candidate_count = len(candidates)

        for position, candidate in enumerate(candidates, start=1):
            candidate_id = candidate.candidate_id()
            attempt_log = logger.bind(
                operation=operation_name,
                candidate_id=candidate_id,
                attempt=position,
                candidate_count=candidate_count,
            )
            try:
                value = attempt(candidate)
                encoded_error = provider_extract_error_message(value)
                if encoded_error:
                    raise ProviderResponseError(encoded_error)
            except self._CANDIDATE_FAILURE_TYPES as error:
                last_error = error
                attempts.append(
                    FallbackAttempt(
                        candidate_id=candidate_id,
                        status="failed",
                        error_type=type(error).__name__,
                        error_message=str(error),
                    )
                )
                attempt_log.warning("provider candidate failed: {}", error)
                continue

            attempts.append(FallbackAttempt(candidate_id=candidate_id, status="succeeded"))
            attempt_log.info("provider candidate succeeded")
            return FallbackResult(candidate=candidate, value=value, attempts=tuple(attempts))

        failure_message = str(last_error) or type(last_error).__name__
        raise ProviderFailureError(failure_message, attempts=tuple(attempts)) from last_error
