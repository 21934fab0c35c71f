"""Domain models and pure helpers used across application layer boundaries."""

from .fingerprint import domain_fingerprint
from .models import JOB_STATUS_COMPLETED, JOB_STATUS_FAILED, HealthStatus, JobOutcome, JobRequest
from .timeline import domain_build_stage_event

__all__ = [
	"JOB_STATUS_COMPLETED",
	"JOB_STATUS_FAILED",
	"HealthStatus",
	"JobOutcome",
	"JobRequest",
	"domain_build_stage_event",
	"domain_fingerprint",
]
