"""
Creator operation handlers.

Each operation validates its input, asks the LLM for JSON, checks the
response shape, and persists exactly one artifact before returning the
result. Persistence only happens after validation succeeds, so a malformed
model response never reaches storage.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Literal, Mapping, Optional, Type, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from models.artifact import ArtifactKind
from services.artifacts import create_artifact
from services.creator_schemas import (
    ContentIdeasRequest,
    ContentIdeasResult,
    HookAnalysisResult,
    HookAnalyzeRequest,
    MonetizationRequest,
    MonetizationResult,
    RepurposeRequest,
    RepurposeResult,
    ScriptRequest,
    ScriptResult,
    SponsorshipRequest,
    SponsorshipResult,
    ThumbnailRequest,
    ThumbnailResult,
)
from services.errors import ProviderError, ShapeError, ValidationError
from services.llm_client import BaseChatClient, ChatRequest, JSON_OBJECT_FORMAT
from services.response_parser import as_array, as_object, validate_fields

logger = logging.getLogger(__name__)

Shape = Literal["object", "array"]


@dataclass(frozen=True)
class CreatorOperation:
    kind: ArtifactKind
    label: str
    request_model: Type[BaseModel]
    result_schema: Type[BaseModel]
    shape: Shape
    system_prompt: str
    user_prompt: Callable[[Any], str]
    title: Callable[[Any, Any], str]
    input_text: Callable[[Any], str]
    normalize: Optional[Callable[[Any], Any]] = None


def _request_json(request: BaseModel) -> str:
    return json.dumps(request.model_dump(by_alias=True))


def _hook_prompt(request: HookAnalyzeRequest) -> str:
    return (
        "Analyze this hook for viral potential and return JSON with keys score (number 1-10), "
        "type (string), breakdown (curiosity, clarity, emotionalTrigger, specificity, "
        "scrollStoppingPower numbers 0-10), mainWeakness (string), improvedHooks (array of 5 strings), "
        "viralityConfidence (Low|Medium|High).\n"
        f'Hook: "{request.hook}"'
    )


def _ideas_prompt(request: ContentIdeasRequest) -> str:
    return (
        f'Generate 5 content ideas for the topic "{request.topic}". Each item must include title, '
        "description, format, difficulty (Easy|Medium|Hard). Return JSON array only."
    )


def _script_prompt(request: ScriptRequest) -> str:
    return (
        f'Create a script for {request.platform} ({request.duration}) starting with hook "{request.hook}". '
        "Return JSON array of segments with time and text fields only."
    )


def _repurpose_prompt(request: RepurposeRequest) -> str:
    return (
        f'Adapt this content for platforms {", ".join(request.platforms)}: "{request.content}". '
        "Return JSON array items {platform, content}."
    )


def _monetization_prompt(request: MonetizationRequest) -> str:
    return (
        f"Calculate monetization for subscribers={request.subscribers}, "
        f"monthlyViews={request.monthly_views}, engagementRate={request.engagement_rate}%. "
        "Return JSON with subscribers, monthlyViews, engagementRate, adRevenue, sponsorshipPotential, "
        "affiliateRevenue, totalMonthly, annualProjection (numbers)."
    )


def _sponsorship_prompt(request: SponsorshipRequest) -> str:
    return (
        f"Create a sponsorship pitch for channel {request.channel_name} with {request.subscribers} "
        f"subscribers in niche {request.niche}. Return JSON {{title, sections:[{{title, content}}]}}."
    )


def _thumbnail_prompt(request: ThumbnailRequest) -> str:
    return f"Analyze this thumbnail description: {request.description}. Return JSON as specified."


def _normalize_monetization(result: Dict[str, Any]) -> Dict[str, Any]:
    # Annual projection is always derived from the monthly total.
    result["annualProjection"] = result["totalMonthly"] * 12
    return result


def _sponsorship_title(_request: SponsorshipRequest, result: Dict[str, Any]) -> str:
    title = result.get("title")
    if isinstance(title, str) and title.strip():
        return title.strip()
    return "Sponsorship pitch"


OPERATIONS: Dict[ArtifactKind, CreatorOperation] = {
    ArtifactKind.HOOK_ANALYSIS: CreatorOperation(
        kind=ArtifactKind.HOOK_ANALYSIS,
        label="hook analysis",
        request_model=HookAnalyzeRequest,
        result_schema=HookAnalysisResult,
        shape="object",
        system_prompt="You are a world-class short-form content strategist. Respond ONLY as compact JSON.",
        user_prompt=_hook_prompt,
        title=lambda _request, result: f"Hook score {result.get('score', '')}".strip(),
        input_text=lambda request: request.hook,
    ),
    ArtifactKind.CONTENT_IDEA: CreatorOperation(
        kind=ArtifactKind.CONTENT_IDEA,
        label="content ideas",
        request_model=ContentIdeasRequest,
        result_schema=ContentIdeasResult,
        shape="array",
        system_prompt="You are a viral content strategist. Respond with a JSON array of ideas only.",
        user_prompt=_ideas_prompt,
        title=lambda request, _result: request.topic,
        input_text=lambda request: request.topic,
    ),
    ArtifactKind.SCRIPT: CreatorOperation(
        kind=ArtifactKind.SCRIPT,
        label="script",
        request_model=ScriptRequest,
        result_schema=ScriptResult,
        shape="array",
        system_prompt="You write concise video scripts. Return only JSON array of segments.",
        user_prompt=_script_prompt,
        title=lambda request, _result: f"{request.platform} script",
        input_text=lambda request: request.hook,
    ),
    ArtifactKind.REPURPOSE: CreatorOperation(
        kind=ArtifactKind.REPURPOSE,
        label="repurposed content",
        request_model=RepurposeRequest,
        result_schema=RepurposeResult,
        shape="array",
        system_prompt="You repurpose content. Return JSON array with platform and content.",
        user_prompt=_repurpose_prompt,
        title=lambda _request, _result: "Repurposed content",
        input_text=lambda request: request.content,
    ),
    ArtifactKind.MONETIZATION: CreatorOperation(
        kind=ArtifactKind.MONETIZATION,
        label="monetization",
        request_model=MonetizationRequest,
        result_schema=MonetizationResult,
        shape="object",
        system_prompt="You are a revenue modeler. Return a JSON object with monetization metrics only.",
        user_prompt=_monetization_prompt,
        title=lambda _request, _result: "Monetization model",
        input_text=_request_json,
        normalize=_normalize_monetization,
    ),
    ArtifactKind.SPONSORSHIP: CreatorOperation(
        kind=ArtifactKind.SPONSORSHIP,
        label="sponsorship pitch",
        request_model=SponsorshipRequest,
        result_schema=SponsorshipResult,
        shape="object",
        system_prompt="You craft sponsorship pitches. Return JSON object with title and sections array.",
        user_prompt=_sponsorship_prompt,
        title=_sponsorship_title,
        input_text=_request_json,
    ),
    ArtifactKind.THUMBNAIL: CreatorOperation(
        kind=ArtifactKind.THUMBNAIL,
        label="thumbnail analysis",
        request_model=ThumbnailRequest,
        result_schema=ThumbnailResult,
        shape="object",
        system_prompt=(
            "You are a thumbnail CTR analyst. Return ONLY JSON with ctrScore, colorScore, textScore, "
            "faceScore, overallScore (0-10 numbers), strengths (array of strings), "
            "improvements (array of strings)."
        ),
        user_prompt=_thumbnail_prompt,
        title=lambda _request, _result: "Thumbnail analysis",
        input_text=lambda request: request.description,
    ),
}


def _format_validation_error(exc: PydanticValidationError) -> str:
    parts: List[str] = []
    for error in exc.errors(include_url=False):
        location = ".".join(str(item) for item in error.get("loc", ()))
        message = error.get("msg", "invalid value")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts) or "Invalid input."


def validate_request(operation: CreatorOperation, payload: Union[BaseModel, Mapping[str, Any]]) -> BaseModel:
    """Validate caller input for an operation, raising ValidationError on failure."""
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(by_alias=True)
    if not isinstance(payload, Mapping):
        raise ValidationError(f"{operation.label} input must be an object")
    try:
        return operation.request_model.model_validate(dict(payload))
    except PydanticValidationError as exc:
        raise ValidationError(_format_validation_error(exc)) from exc


def build_messages(operation: CreatorOperation, request: BaseModel) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": operation.system_prompt},
        {"role": "user", "content": operation.user_prompt(request)},
    ]


async def _invoke(llm: BaseChatClient, operation: CreatorOperation, request: BaseModel) -> Any:
    chat_request = ChatRequest(
        messages=build_messages(operation, request),
        response_format=dict(JSON_OBJECT_FORMAT),
        kind=operation.kind.value,
        variables=request.model_dump(by_alias=True),
    )
    try:
        return await llm.complete(chat_request)
    except ProviderError:
        raise
    except Exception as exc:
        raise ProviderError(f"{operation.label} generation failed: {exc}") from exc


def validate_result(operation: CreatorOperation, completion: Any) -> Any:
    """Parse and shape-check a completion for an operation."""
    if operation.shape == "array":
        parsed: Any = as_array(completion, operation.label)
    else:
        parsed = as_object(completion, operation.label)
    validate_fields(parsed, operation.result_schema, operation.label)
    if operation.normalize is not None:
        parsed = operation.normalize(parsed)
    return parsed


async def run_creator_operation(
    kind: Union[ArtifactKind, str],
    payload: Union[BaseModel, Mapping[str, Any]],
    *,
    user_id: int,
    db: AsyncSession,
    llm: BaseChatClient,
) -> Any:
    """Run one creator operation end to end and return its validated result."""
    try:
        operation = OPERATIONS[ArtifactKind(kind)]
    except ValueError as exc:
        raise ValidationError(f"Unknown creator operation: {kind!r}") from exc

    request = validate_request(operation, payload)
    completion = await _invoke(llm, operation, request)
    result = validate_result(operation, completion)
    try:
        result_json = json.dumps(result, allow_nan=False)
    except ValueError as exc:
        raise ShapeError(operation.label, f"{operation.label} response contained a non-finite number") from exc

    artifact_id = await create_artifact(
        db,
        user_id=user_id,
        kind=operation.kind,
        title=operation.title(request, result),
        input_text=operation.input_text(request),
        result_json=result_json,
    )
    logger.info("Stored %s artifact %s for user %s", operation.kind.value, artifact_id, user_id)
    return result
