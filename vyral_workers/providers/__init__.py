"""Provider adapter package for external service integration boundaries."""

from .assemblyai import AssemblyAITranscriptionCandidate
from .errors import (
	ProviderConnectionError,
	ProviderError,
	ProviderResponseError,
	ProviderTimeoutError,
	provider_extract_error_message,
)
from .highlights import ProvidedHighlightsCandidate
from .http_transport import ProviderHttpTransport
from .interfaces import (
	AsyncJobStatus,
	AsyncProviderCandidatePort,
	AsyncProviderJob,
	ProviderCandidatePort,
)
from .openrouter import ChatMessageBuilder, OpenRouterChatCandidate
from .shotstack import ShotstackRenderCandidate

__all__ = [
	"AssemblyAITranscriptionCandidate",
	"AsyncJobStatus",
	"AsyncProviderCandidatePort",
	"AsyncProviderJob",
	"ChatMessageBuilder",
	"OpenRouterChatCandidate",
	"ProvidedHighlightsCandidate",
	"ProviderCandidatePort",
	"ProviderConnectionError",
	"ProviderError",
	"ProviderHttpTransport",
	"ProviderResponseError",
	"ProviderTimeoutError",
	"ShotstackRenderCandidate",
	"provider_extract_error_message",
]
