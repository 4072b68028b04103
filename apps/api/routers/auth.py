"""
Authentication router for identity session sync and user profile retrieval.
"""

import hmac
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from database import get_db
from models.user import MAX_OPEN_ID_LENGTH, User
from routers.auth_scope import AuthContext, get_auth_context, get_current_user
from services.errors import ValidationError
from services.session_token import create_session_token
from services.users import UserUpsert, upsert_user

router = APIRouter()


class SessionSyncRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    open_id: str = Field(min_length=1, max_length=MAX_OPEN_ID_LENGTH)
    name: Optional[str] = None
    email: Optional[str] = None
    login_method: Optional[str] = None


class SessionSyncResponse(BaseModel):
    open_id: str
    user_id: Optional[int] = None
    session_token: str
    session_expires_at: int


class CurrentUserResponse(BaseModel):
    id: int
    open_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    login_method: Optional[str] = None
    role: str


def _require_identity_secret(supplied: Optional[str]) -> None:
    expected = (settings.IDENTITY_SHARED_SECRET or "").strip()
    if not expected:
        raise HTTPException(status_code=503, detail="Identity bridge is not configured.")
    if not supplied or not hmac.compare_digest(supplied, expected):
        raise HTTPException(status_code=401, detail="Invalid identity secret.")


@router.post("/session", response_model=SessionSyncResponse)
async def sync_session(
    request: SessionSyncRequest,
    x_identity_secret: Optional[str] = Header(default=None),
    db: AsyncSession = Depends(get_db),
):
    """
    Record a sign-in from the trusted identity layer and issue a session token.

    The user upsert is best-effort: if the database is unreachable the token is
    still issued and user_id is null.
    """
    _require_identity_secret(x_identity_secret)

    fields = request.model_dump(exclude_unset=True)
    try:
        user_id = await upsert_user(db, UserUpsert(**fields))
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    open_id = request.open_id.strip()
    session = create_session_token(open_id, request.email)
    return SessionSyncResponse(
        open_id=open_id,
        user_id=user_id,
        session_token=session["token"],
        session_expires_at=session["expires_at"],
    )


@router.get("/me", response_model=CurrentUserResponse)
async def get_me(user: User = Depends(get_current_user)):
    """Get the current user's profile."""
    return CurrentUserResponse(
        id=user.id,
        open_id=user.open_id,
        name=user.name,
        email=user.email,
        login_method=user.login_method,
        role=user.role,
    )


@router.post("/logout")
async def logout(_auth: AuthContext = Depends(get_auth_context)):
    """Frontend-managed logout acknowledgment endpoint."""
    return {"success": True}
