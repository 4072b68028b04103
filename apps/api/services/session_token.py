"""Signed session tokens binding a bearer to one external open identity."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from config import settings
from models.user import MAX_OPEN_ID_LENGTH


SESSION_TOKEN_TYPE = "creator_session"


@dataclass(frozen=True)
class SessionClaims:
    open_id: str
    expires_at: int
    email: Optional[str] = None


def _checked_open_id(value: Any) -> str:
    open_id = value.strip() if isinstance(value, str) else ""
    if not open_id:
        raise ValueError("Session token missing open identity.")
    if len(open_id) > MAX_OPEN_ID_LENGTH:
        raise ValueError("Session token open identity is too long.")
    return open_id


def create_session_token(
    open_id: str,
    email: Optional[str] = None,
    expires_hours: Optional[int] = None,
) -> Dict[str, Any]:
    """Issue a token for open_id; the identity itself is the subject claim."""
    subject = _checked_open_id(open_id)
    now = datetime.now(timezone.utc)
    ttl_hours = max(int(expires_hours or settings.JWT_EXPIRATION_HOURS or 24), 1)
    expires_at = int((now + timedelta(hours=ttl_hours)).timestamp())

    claims: Dict[str, Any] = {
        "sub": subject,
        "type": SESSION_TOKEN_TYPE,
        "iat": int(now.timestamp()),
        "exp": expires_at,
    }
    if email:
        claims["email"] = email
    return {
        "token": jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM),
        "expires_at": expires_at,
    }


def decode_session_token(token: str) -> SessionClaims:
    """Verify signature, expiry and type, and return the session's identity claims."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as exc:
        raise ValueError("Invalid or expired session token.") from exc

    if payload.get("type") != SESSION_TOKEN_TYPE:
        raise ValueError("Invalid session token type.")

    email = payload.get("email")
    return SessionClaims(
        open_id=_checked_open_id(payload.get("sub")),
        expires_at=int(payload.get("exp", 0)),
        email=email if isinstance(email, str) and email else None,
    )
