"""User upsert keyed by external open identity."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Literal, Optional, Tuple

from pydantic import BaseModel
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from config import settings
from database import STORAGE_UNAVAILABLE_ERRORS
from models.user import MAX_OPEN_ID_LENGTH, User
from services.errors import StorageUnavailable, ValidationError

logger = logging.getLogger(__name__)

NULLABLE_TEXT_FIELDS = ("name", "email", "login_method")


class UserUpsert(BaseModel):
    """
    Fields for one sign-in. Only fields explicitly set are written on conflict;
    an explicit None writes NULL.
    """

    open_id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    login_method: Optional[str] = None
    role: Optional[Literal["user", "admin"]] = None
    last_signed_in: Optional[datetime] = None


def _insert_for(db: AsyncSession):
    dialect = db.bind.dialect.name
    if dialect == "postgresql":
        return postgresql.insert
    if dialect == "sqlite":
        return sqlite.insert
    raise RuntimeError(f"User upsert is not supported on dialect {dialect!r}")


def _build_upsert_values(user: UserUpsert, open_id: str) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    provided = user.model_dump(exclude_unset=True)
    values: Dict[str, Any] = {"open_id": open_id}
    update_set: Dict[str, Any] = {}

    for field_name in NULLABLE_TEXT_FIELDS:
        if field_name not in provided:
            continue
        values[field_name] = provided[field_name]
        update_set[field_name] = provided[field_name]

    role = provided.get("role")
    if role is None and settings.OWNER_OPEN_ID and open_id == settings.OWNER_OPEN_ID:
        role = "admin"
    if role is not None:
        values["role"] = role
        update_set["role"] = role

    signed_in_at = provided.get("last_signed_in") or datetime.now(timezone.utc)
    values["last_signed_in"] = signed_in_at
    update_set["last_signed_in"] = signed_in_at
    return values, update_set


async def upsert_user(db: AsyncSession, user: UserUpsert) -> Optional[int]:
    """
    Insert or refresh the user row for user.open_id and return its id.

    Best-effort: when the database cannot be reached the failure is logged
    and None is returned. Missing open_id raises ValidationError.
    """
    open_id = (user.open_id or "").strip()
    if not open_id:
        raise ValidationError("User openId is required for upsert")
    if len(open_id) > MAX_OPEN_ID_LENGTH:
        raise ValidationError(f"User openId must be at most {MAX_OPEN_ID_LENGTH} characters")

    values, update_set = _build_upsert_values(user, open_id)
    insert = _insert_for(db)
    stmt = (
        insert(User)
        .values(**values)
        .on_conflict_do_update(index_elements=["open_id"], set_=update_set)
        .returning(User.id)
    )

    try:
        result = await db.execute(stmt)
        user_id = result.scalar_one()
        await db.commit()
    except STORAGE_UNAVAILABLE_ERRORS as exc:
        logger.warning("[Database] Cannot upsert user: database not available (%s)", exc)
        return None
    except Exception:
        logger.exception("[Database] Failed to upsert user %s", open_id)
        raise
    return user_id


async def get_user_by_open_id(db: AsyncSession, open_id: str) -> Optional[User]:
    try:
        result = await db.execute(
            select(User)
            .where(User.open_id == open_id)
            .limit(1)
            .execution_options(populate_existing=True)
        )
    except STORAGE_UNAVAILABLE_ERRORS as exc:
        logger.error("[Database] Cannot get user: database not available (%s)", exc)
        raise StorageUnavailable("Database not available") from exc
    return result.scalar_one_or_none()
