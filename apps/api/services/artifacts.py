"""Artifact store: owner-scoped persistence of generation results."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Union

from sqlalchemy import delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from database import STORAGE_UNAVAILABLE_ERRORS
from models.artifact import Artifact, ArtifactKind
from services.errors import StorageUnavailable, ValidationError
from services.response_parser import safe_parse

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 255


def _coerce_kind(kind: Union[ArtifactKind, str]) -> ArtifactKind:
    try:
        return ArtifactKind(kind)
    except ValueError as exc:
        raise ValidationError(f"Unknown artifact kind: {kind!r}") from exc


def _unavailable(operation: str, exc: BaseException) -> StorageUnavailable:
    logger.error("[Database] %s failed: database not available (%s)", operation, exc)
    return StorageUnavailable("Database not available")


async def create_artifact(
    db: AsyncSession,
    *,
    user_id: int,
    kind: Union[ArtifactKind, str],
    title: str,
    input_text: str,
    result_json: str,
) -> int:
    """Insert one artifact row and return its id."""
    artifact = Artifact(
        user_id=user_id,
        kind=_coerce_kind(kind),
        title=(title or "")[:MAX_TITLE_LENGTH],
        input_text=input_text,
        result_json=result_json,
    )
    try:
        db.add(artifact)
        await db.flush()
        artifact_id = artifact.id
        await db.commit()
    except STORAGE_UNAVAILABLE_ERRORS as exc:
        raise _unavailable("create_artifact", exc) from exc
    return artifact_id


async def list_artifacts(
    db: AsyncSession,
    user_id: int,
    kind: Optional[Union[ArtifactKind, str]] = None,
) -> List[Artifact]:
    """Return the user's artifacts in creation order, optionally for one kind."""
    query = select(Artifact).where(Artifact.user_id == user_id)
    if kind is not None:
        query = query.where(Artifact.kind == _coerce_kind(kind))
    query = query.order_by(Artifact.created_at.asc(), Artifact.id.asc()).execution_options(populate_existing=True)
    try:
        result = await db.execute(query)
    except STORAGE_UNAVAILABLE_ERRORS as exc:
        raise _unavailable("list_artifacts", exc) from exc
    return list(result.scalars().all())


async def delete_artifact(db: AsyncSession, user_id: int, artifact_id: int) -> None:
    """Delete an artifact only when it belongs to user_id; otherwise do nothing."""
    try:
        await db.execute(
            delete(Artifact).where(
                Artifact.id == artifact_id,
                Artifact.user_id == user_id,
            )
        )
        await db.commit()
    except STORAGE_UNAVAILABLE_ERRORS as exc:
        raise _unavailable("delete_artifact", exc) from exc


async def count_artifacts(db: AsyncSession, user_id: int) -> Dict[str, int]:
    """Count the user's artifacts per kind; kinds with no rows are absent."""
    try:
        result = await db.execute(
            select(Artifact.kind, func.count(Artifact.id))
            .where(Artifact.user_id == user_id)
            .group_by(Artifact.kind)
        )
    except STORAGE_UNAVAILABLE_ERRORS as exc:
        raise _unavailable("count_artifacts", exc) from exc
    return {ArtifactKind(kind).value: int(total) for kind, total in result.all()}


def serialize_artifact(artifact: Artifact) -> Dict[str, Any]:
    kind = artifact.kind.value if isinstance(artifact.kind, ArtifactKind) else artifact.kind
    return {
        "id": artifact.id,
        "userId": artifact.user_id,
        "kind": kind,
        "title": artifact.title,
        "inputText": artifact.input_text,
        "resultJson": artifact.result_json,
        "createdAt": artifact.created_at.isoformat() if artifact.created_at else None,
        "result": safe_parse(artifact.result_json),
    }
