"""Authentication dependencies for API user scoping."""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from models.user import User
from services.errors import StorageUnavailable
from services.session_token import decode_session_token
from services.users import UserUpsert, get_user_by_open_id, upsert_user


auth_scheme = HTTPBearer(auto_error=False)


@dataclass
class AuthContext:
    open_id: str
    email: Optional[str] = None


async def get_auth_context(
    credentials: HTTPAuthorizationCredentials = Depends(auth_scheme),
) -> AuthContext:
    """Resolve authenticated identity from Bearer session token."""
    if not credentials or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=401, detail="Missing Bearer session token.")

    try:
        claims = decode_session_token(credentials.credentials)
    except ValueError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc

    return AuthContext(open_id=claims.open_id, email=claims.email)


async def get_current_user(
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Load the user row for the session identity, creating it on first use."""
    try:
        user = await get_user_by_open_id(db, auth.open_id)
        if user is None:
            await upsert_user(db, UserUpsert(open_id=auth.open_id))
            user = await get_user_by_open_id(db, auth.open_id)
    except StorageUnavailable as exc:
        raise HTTPException(status_code=503, detail="Storage unavailable.") from exc

    if user is None:
        raise HTTPException(status_code=503, detail="Storage unavailable.")
    return user
