"""Creator router: AI generation operations and saved artifacts."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from models.artifact import ArtifactKind
from models.user import User
from routers.auth_scope import get_current_user
from services.artifacts import count_artifacts, delete_artifact, list_artifacts, serialize_artifact
from services.creator import run_creator_operation
from services.creator_schemas import (
    ContentIdeasRequest,
    HookAnalyzeRequest,
    MonetizationRequest,
    RepurposeRequest,
    ScriptRequest,
    SponsorshipRequest,
    ThumbnailRequest,
)
from services.errors import (
    CreatorError,
    ParseError,
    ProviderError,
    ShapeError,
    StorageUnavailable,
    ValidationError,
)
from services.llm_client import BaseChatClient, get_llm_client

router = APIRouter()
logger = logging.getLogger(__name__)

GENERATION_FAILED_DETAIL = "Generation failed. Please try again."


def _to_http_error(exc: CreatorError) -> HTTPException:
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=422, detail=str(exc))
    if isinstance(exc, StorageUnavailable):
        return HTTPException(status_code=503, detail="Storage unavailable.")
    if isinstance(exc, (ParseError, ShapeError)):
        logger.warning("Model output rejected for %s: %s", exc.label, exc)
    elif isinstance(exc, ProviderError):
        logger.warning("LLM provider failed: %s", exc)
    return HTTPException(status_code=502, detail=GENERATION_FAILED_DETAIL)


async def _generate(
    kind: ArtifactKind,
    request: BaseModel,
    user: User,
    db: AsyncSession,
    llm: BaseChatClient,
) -> Union[Dict[str, Any], List[Any]]:
    try:
        return await run_creator_operation(kind, request, user_id=user.id, db=db, llm=llm)
    except CreatorError as exc:
        raise _to_http_error(exc) from exc


@router.post("/hook_analyze")
async def hook_analyze(
    request: HookAnalyzeRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    llm: BaseChatClient = Depends(get_llm_client),
):
    """Score a hook for viral potential."""
    return await _generate(ArtifactKind.HOOK_ANALYSIS, request, user, db, llm)


@router.post("/content_ideas")
async def content_ideas(
    request: ContentIdeasRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    llm: BaseChatClient = Depends(get_llm_client),
):
    return await _generate(ArtifactKind.CONTENT_IDEA, request, user, db, llm)


@router.post("/script")
async def script(
    request: ScriptRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    llm: BaseChatClient = Depends(get_llm_client),
):
    return await _generate(ArtifactKind.SCRIPT, request, user, db, llm)


@router.post("/repurpose")
async def repurpose(
    request: RepurposeRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    llm: BaseChatClient = Depends(get_llm_client),
):
    return await _generate(ArtifactKind.REPURPOSE, request, user, db, llm)


@router.post("/monetization")
async def monetization(
    request: MonetizationRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    llm: BaseChatClient = Depends(get_llm_client),
):
    """Model monthly and annual revenue for a channel."""
    return await _generate(ArtifactKind.MONETIZATION, request, user, db, llm)


@router.post("/sponsorship")
async def sponsorship(
    request: SponsorshipRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    llm: BaseChatClient = Depends(get_llm_client),
):
    return await _generate(ArtifactKind.SPONSORSHIP, request, user, db, llm)


@router.post("/thumbnail")
async def thumbnail(
    request: ThumbnailRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    llm: BaseChatClient = Depends(get_llm_client),
):
    return await _generate(ArtifactKind.THUMBNAIL, request, user, db, llm)


@router.get("/artifacts")
async def get_artifacts(
    kind: Optional[ArtifactKind] = Query(default=None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List the caller's saved artifacts, oldest first."""
    try:
        rows = await list_artifacts(db, user.id, kind)
    except CreatorError as exc:
        raise _to_http_error(exc) from exc
    return [serialize_artifact(row) for row in rows]


@router.delete("/artifacts/{artifact_id}")
async def remove_artifact(
    artifact_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        await delete_artifact(db, user.id, artifact_id)
    except CreatorError as exc:
        raise _to_http_error(exc) from exc
    return {"success": True}


@router.get("/stats")
async def get_stats(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Per-kind artifact counts; kinds with no artifacts are omitted."""
    try:
        return await count_artifacts(db, user.id)
    except CreatorError as exc:
        raise _to_http_error(exc) from exc
