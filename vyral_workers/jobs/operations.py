"""Operation catalog: descriptors, prompts and result shaping per worker operation."""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass
from typing import Any, Final, Mapping, Sequence

from vyral_workers.domain import JobRequest
from vyral_workers.providers import (
    AssemblyAITranscriptionCandidate,
    ChatMessageBuilder,
    OpenRouterChatCandidate,
    ProvidedHighlightsCandidate,
    ProviderCandidatePort,
    ProviderHttpTransport,
    ProviderResponseError,
    ShotstackRenderCandidate,
)

from .interfaces import ExecutionMode, OperationDescriptor

DEFAULT_LLM_MODELS: Final[tuple[str, ...]] = (
    "openai/gpt-4",
    "anthropic/claude-3.5-sonnet",
    "openai/gpt-3.5-turbo",
)
DEFAULT_VISION_MODELS: Final[tuple[str, ...]] = (
    "openai/gpt-4-vision-preview",
    "anthropic/claude-3.5-sonnet",
)
DEFAULT_CAPTION_PLATFORMS: Final[tuple[str, ...]] = ("tiktok", "instagram", "youtube")
MAX_KEY_MOMENTS: Final[int] = 5

PLATFORM_INSTRUCTIONS: Final[dict[str, str]] = {
    "tiktok": "Create a short, engaging caption for TikTok with trending hashtags. Max 150 characters.",
    "instagram": "Create an engaging Instagram caption with emojis and relevant hashtags. Max 2200 characters.",
    "youtube": "Create a detailed YouTube description with timestamps and keywords. Can be longer format.",
}
OPTIMAL_POSTING_TIMES: Final[dict[str, str]] = {"tiktok": "18:00", "instagram": "11:00", "youtube": "15:00"}
PLATFORM_TIPS: Final[dict[str, str]] = {
    "tiktok": "Keep videos under 60 seconds for maximum engagement. Use trending sounds.",
    "instagram": "Use carousel posts for longer content. Include relevant hashtags in the first comment.",
    "youtube": "Create compelling thumbnails. Use detailed descriptions with timestamps.",
}

_JSON_ARRAY_PATTERN = re.compile(r"\[.*\]", re.DOTALL)


@dataclass(frozen=True)
class OperationCatalogConfig:
    """Provider credentials and model lists used to build the catalog.

    Attributes:
        openrouter_api_key: OpenRouter API key.
        assemblyai_api_key: AssemblyAI API key.
        shotstack_api_key: Shotstack API key.
        llm_models: Ordered text model fallback list.
        vision_models: Ordered vision model fallback list.
        openrouter_base_url: OpenRouter API base URL.
        openrouter_referer: `HTTP-Referer` header value.
        openai_org_id: Optional organization header value.
        assemblyai_base_url: AssemblyAI API base URL.
        shotstack_base_url: Shotstack API base URL.
    """

    openrouter_api_key: str
    assemblyai_api_key: str
    shotstack_api_key: str
    llm_models: tuple[str, ...] = DEFAULT_LLM_MODELS
    vision_models: tuple[str, ...] = DEFAULT_VISION_MODELS
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    openrouter_referer: str = "https://vyral.vercel.app"
    openai_org_id: str = ""
    assemblyai_base_url: str = "https://api.assemblyai.com/v2"
    shotstack_base_url: str = "https://api.shotstack.io/stage"


class CaptionPackChatCandidate(ProviderCandidatePort):
    """Generate one caption per requested platform with a single model."""

    def __init__(self, chat_candidate: OpenRouterChatCandidate):
        self._chat_candidate = chat_candidate

    def candidate_id(self) -> str:
        return self._chat_candidate.candidate_id()

    def candidate_invoke(self, job_request: JobRequest) -> dict[str, Any]:
        """Request a caption for each platform in order.

        Args:
            job_request: Request with `transcript` and optional `platforms`.

        Returns:
            dict[str, Any]: `captions` keyed by platform and the `platforms` list.

        Raises:
            ProviderError: Raised when any platform's completion fails.
        """

        platforms = job_caption_platforms(job_request)
        transcript = job_request.request_param("transcript")
        captions: dict[str, str] = {}
        for platform in platforms:
            captions[platform] = self._chat_candidate.provider_complete(
                [
                    {
                        "role": "system",
                        "content": (
                            "You are a social media caption specialist. Create engaging captions optimized for "
                            f"{platform}. Follow platform-specific best practices for length, hashtags, and engagement."
                        ),
                    },
                    {"role": "user", "content": f"Create a {platform} caption for this transcript: {transcript}"},
                ]
            )
        return {"captions": captions, "platforms": list(platforms)}


class KeyMomentChatCandidate(ProviderCandidatePort):
    """Ask a model for key moments and parse its JSON array answer."""

    def __init__(self, chat_candidate: OpenRouterChatCandidate):
        self._chat_candidate = chat_candidate

    def candidate_id(self) -> str:
        return self._chat_candidate.candidate_id()

    def candidate_invoke(self, job_request: JobRequest) -> dict[str, Any]:
        """Extract up to five key moments from the transcript.

        Args:
            job_request: Request with `transcript`.

        Returns:
            dict[str, Any]: `moments` list with id, start, end and text.

        Raises:
            ProviderResponseError: Raised when the answer holds no usable moment array.
        """

        content = self._chat_candidate.provider_complete(job_key_moment_messages(job_request))
        return {"moments": job_parse_key_moments(content)}


def job_strategy_messages(job_request: JobRequest) -> list[dict[str, Any]]:
    return [
        {
            "role": "system",
            "content": (
                "You are a viral content strategist. Based on the provided transcript, create a content strategy "
                "that will perform well on social media platforms. Consider timing, hashtags, and "
                "platform-specific optimizations."
            ),
        },
        {
            "role": "user",
            "content": f"Create a content strategy for this transcript: {job_request.request_param('transcript')}",
        },
    ]


def job_script_messages(job_request: JobRequest) -> list[dict[str, Any]]:
    strategy = job_request.request_param("strategy") or "No specific strategy provided"
    return [
        {
            "role": "system",
            "content": (
                "You are a professional scriptwriter. Based on the provided transcript and strategy, create engaging "
                "scripts for social media content. Include hooks, transitions, and calls-to-action."
            ),
        },
        {
            "role": "user",
            "content": (
                f"Create scripts based on this transcript: {job_request.request_param('transcript')} "
                f"and strategy: {_job_prompt_text(strategy)}"
            ),
        },
    ]


def job_platform_caption_messages(job_request: JobRequest) -> list[dict[str, Any]]:
    platform = str(job_request.request_param("platform"))
    instructions = PLATFORM_INSTRUCTIONS.get(platform.lower(), "Create an engaging caption.")
    strategy = job_request.request_param("strategy") or "No specific strategy provided."
    return [
        {
            "role": "system",
            "content": (
                f"You are a social media caption specialist. {instructions} "
                f"Strategy context: {_job_prompt_text(strategy)}"
            ),
        },
        {
            "role": "user",
            "content": f"Create a {platform} caption for this transcript: {job_request.request_param('transcript')}",
        },
    ]


def job_vision_messages(job_request: JobRequest) -> list[dict[str, Any]]:
    return [
        {
            "role": "user",
            "content": [
                {
                    "type": "text",
                    "text": (
                        "Analyze this video frame and provide insights about the content, objects, people, text, "
                        "and overall scene. Include information about labels, text detection, faces, objects, "
                        "explicit content, duration, and scenes."
                    ),
                },
                {"type": "image_url", "image_url": {"url": job_request.request_param("file_url")}},
            ],
        }
    ]


def job_key_moment_messages(job_request: JobRequest) -> list[dict[str, Any]]:
    return [
        {
            "role": "system",
            "content": (
                "You are a video content analyst. Identify 5 key moments in the transcript that would make engaging "
                "micro-clips. For each moment, provide a start time, end time, and brief description. "
                "Return as a JSON array of objects with start, end and text fields."
            ),
        },
        {
            "role": "user",
            "content": f"Identify key moments for micro-clips in this transcript: {job_request.request_param('transcript')}",
        },
    ]


def job_caption_platforms(job_request: JobRequest) -> tuple[str, ...]:
    """Return requested caption platforms, defaulting to all supported ones.

    Args:
        job_request: Request with optional `platforms` list.

    Returns:
        tuple[str, ...]: Ordered platform names.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    platforms = job_request.request_param("platforms")
    if isinstance(platforms, list):
        requested = tuple(str(platform) for platform in platforms if str(platform).strip())
        if requested:
            return requested
    return DEFAULT_CAPTION_PLATFORMS


def job_parse_key_moments(content: str) -> list[dict[str, Any]]:
    """Parse model output into at most five key moments.

    The first bracketed JSON array in the content is used; code fences and
    surrounding prose are ignored. `description` is accepted in place of `text`.

    Args:
        content: Model completion text.

    Returns:
        list[dict[str, Any]]: Moments with id, start, end and text.

    Raises:
        ProviderResponseError: Raised when no usable array is present.
    """

    match = _JSON_ARRAY_PATTERN.search(content)
    if match is None:
        raise ProviderResponseError("key moment response contains no JSON array")
    try:
        raw_moments = json.loads(match.group(0))
    except json.JSONDecodeError as error:
        raise ProviderResponseError(f"key moment response is not valid JSON: {error}") from error

    moments: list[dict[str, Any]] = []
    for raw_moment in raw_moments:
        if len(moments) >= MAX_KEY_MOMENTS:
            break
        if not isinstance(raw_moment, dict):
            continue
        start = _job_seconds(raw_moment.get("start"))
        end = _job_seconds(raw_moment.get("end"))
        if start is None or end is None or end < start:
            continue
        moments.append(
            {
                "id": len(moments) + 1,
                "start": start,
                "end": end,
                "text": raw_moment.get("text") or raw_moment.get("description") or "",
            }
        )

    if not moments:
        raise ProviderResponseError("key moment response contains no usable moments")
    return moments


def job_suggest_platform(duration_seconds: float) -> str:
    if duration_seconds <= 15:
        return "tiktok"
    if duration_seconds <= 30:
        return "instagram"
    return "youtube"


def job_estimate_duration(script_text: str) -> str:
    minutes = max(1, math.ceil(len(script_text.split()) / 150))
    return f"{minutes} minute{'s' if minutes != 1 else ''}"


def job_build_strategy_result(job_request: JobRequest, payload: Mapping[str, Any]) -> dict[str, Any]:
    preferences = job_request.request_param("platform_preferences")
    platforms = [str(platform) for platform in preferences] if isinstance(preferences, list) and preferences else []
    optimal_time = OPTIMAL_POSTING_TIMES.get(platforms[0], "12:00") if platforms else "12:00"
    tips = {
        platform: PLATFORM_TIPS.get(platform, f"Optimize content for {platform} based on current best practices.")
        for platform in (platforms or list(DEFAULT_CAPTION_PLATFORMS))
    }
    return {
        "strategy_text": payload["content"],
        "model": payload.get("model"),
        "optimal_posting_time": optimal_time,
        "platform_specific_tips": tips,
    }


def job_build_script_result(job_request: JobRequest, payload: Mapping[str, Any]) -> dict[str, Any]:
    return {
        "script_text": payload["content"],
        "model": payload.get("model"),
        "estimated_duration": job_estimate_duration(payload["content"]),
    }


def job_build_vision_result(job_request: JobRequest, payload: Mapping[str, Any]) -> dict[str, Any]:
    return {"analysis": payload["content"], "model": payload.get("model")}


def job_build_platform_caption_result(job_request: JobRequest, payload: Mapping[str, Any]) -> dict[str, Any]:
    return {
        "platform": job_request.request_param("platform"),
        "captions": payload["content"],
        "character_count": len(payload["content"]),
        "model": payload.get("model"),
    }


def job_build_micro_clips_result(job_request: JobRequest, payload: Mapping[str, Any]) -> dict[str, Any]:
    """Turn key moments into clip references on the source video.

    Args:
        job_request: Request with `file_url`.
        payload: Candidate output holding `moments`.

    Returns:
        dict[str, Any]: `clips` and `total_clips`.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    file_url = job_request.request_param("file_url")
    clips = []
    for moment in payload["moments"][:MAX_KEY_MOMENTS]:
        duration = moment["end"] - moment["start"]
        clips.append(
            {
                "id": moment["id"],
                "url": f"{file_url}#t={moment['start']},{moment['end']}",
                "duration": duration,
                "text": moment.get("text"),
                "platform": job_suggest_platform(duration),
            }
        )
    return {"clips": clips, "total_clips": len(clips)}


def job_build_operation_descriptors(
    config: OperationCatalogConfig,
    transport: ProviderHttpTransport,
) -> tuple[OperationDescriptor, ...]:
    """Build the eight worker operation descriptors.

    Args:
        config: Provider credentials and model lists.
        transport: Shared provider HTTP transport.

    Returns:
        tuple[OperationDescriptor, ...]: Descriptors in registration order.

    Raises:
        ValueError: Raised when a model list is empty.
    """

    if not config.llm_models:
        raise ValueError("llm_models must not be empty")
    if not config.vision_models:
        raise ValueError("vision_models must not be empty")

    def chat_candidates(
        models: Sequence[str],
        message_builder: ChatMessageBuilder | None,
        max_tokens: int | None = None,
    ) -> tuple[OpenRouterChatCandidate, ...]:
        return tuple(
            OpenRouterChatCandidate(
                transport=transport,
                api_key=config.openrouter_api_key,
                model=model,
                message_builder=message_builder,
                base_url=config.openrouter_base_url,
                referer=config.openrouter_referer,
                organization_id=config.openai_org_id,
                max_tokens=max_tokens,
            )
            for model in models
        )

    return (
        OperationDescriptor(
            name="transcribe",
            sub_operation="submit",
            required_fields=("file_url",),
            candidates=(
                AssemblyAITranscriptionCandidate(
                    transport=transport,
                    api_key=config.assemblyai_api_key,
                    base_url=config.assemblyai_base_url,
                ),
            ),
            mode=ExecutionMode.POLLED,
        ),
        OperationDescriptor(
            name="vision",
            sub_operation="analyze",
            required_fields=("file_url",),
            candidates=chat_candidates(config.vision_models, job_vision_messages, max_tokens=1000),
            cache_fields=("file_url",),
            cache_ttl_seconds=3600,
            result_builder=job_build_vision_result,
        ),
        OperationDescriptor(
            name="strategy",
            sub_operation="generate",
            required_fields=("transcript",),
            candidates=chat_candidates(config.llm_models, job_strategy_messages),
            cache_fields=("transcript", "platform_preferences"),
            cache_ttl_seconds=3600,
            result_builder=job_build_strategy_result,
        ),
        OperationDescriptor(
            name="script-generator",
            sub_operation="generate",
            required_fields=("transcript",),
            candidates=chat_candidates(config.llm_models, job_script_messages),
            cache_fields=("transcript", "strategy"),
            cache_ttl_seconds=3600,
            result_builder=job_build_script_result,
        ),
        OperationDescriptor(
            name="caption-pack",
            sub_operation="generate",
            required_fields=("transcript",),
            candidates=tuple(
                CaptionPackChatCandidate(chat_candidate) for chat_candidate in chat_candidates(config.llm_models, None)
            ),
            cache_fields=("transcript", "platforms"),
            cache_ttl_seconds=1800,
        ),
        OperationDescriptor(
            name="platform-captions",
            sub_operation="generate",
            required_fields=("transcript", "platform"),
            candidates=chat_candidates(config.llm_models, job_platform_caption_messages),
            cache_fields=("transcript", "strategy", "platform"),
            cache_ttl_seconds=1800,
            result_builder=job_build_platform_caption_result,
        ),
        OperationDescriptor(
            name="render-captions",
            sub_operation="render",
            required_fields=("file_url", "captions"),
            candidates=(
                ShotstackRenderCandidate(
                    transport=transport,
                    api_key=config.shotstack_api_key,
                    base_url=config.shotstack_base_url,
                ),
            ),
            mode=ExecutionMode.POLLED,
        ),
        OperationDescriptor(
            name="micro-clips",
            sub_operation="extract",
            required_fields=("file_url", "transcript"),
            candidates=(ProvidedHighlightsCandidate(),)
            + tuple(KeyMomentChatCandidate(chat_candidate) for chat_candidate in chat_candidates(config.llm_models, None)),
            result_builder=job_build_micro_clips_result,
        ),
    )


def _job_prompt_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def _job_seconds(value: Any) -> float | int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None
