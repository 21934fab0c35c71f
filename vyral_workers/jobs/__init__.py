"""Job layer package for operation orchestration boundaries."""

from .completion_poller import AsyncCompletionPoller, PollerConfig, PollResult, PollState
from .errors import (
	FallbackAttempt,
	InvalidRequestError,
	JobError,
	NoProviderCandidatesError,
	PollCancelledError,
	PollProviderFailureError,
	PollTimeoutError,
	ProviderFailureError,
	UnknownOperationError,
)
from .fallback_executor import FallbackResult, ProviderFallbackExecutor
from .interfaces import ExecutionMode, JobOrchestratorPort, OperationDescriptor
from .operations import OperationCatalogConfig, job_build_operation_descriptors
from .orchestrator import JobOrchestrator

__all__ = [
	"AsyncCompletionPoller",
	"ExecutionMode",
	"FallbackAttempt",
	"FallbackResult",
	"InvalidRequestError",
	"JobError",
	"JobOrchestrator",
	"JobOrchestratorPort",
	"NoProviderCandidatesError",
	"OperationCatalogConfig",
	"OperationDescriptor",
	"PollCancelledError",
	"PollProviderFailureError",
	"PollResult",
	"PollState",
	"PollTimeoutError",
	"PollerConfig",
	"ProviderFailureError",
	"ProviderFallbackExecutor",
	"UnknownOperationError",
	"job_build_operation_descriptors",
]
