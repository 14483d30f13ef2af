"""
security.py

Password hashing and session-token handling.

Sessions are signed JWTs carried in a cookie (browsers) or an
``Authorization: Bearer`` header (the sync client). The ``jti`` claim must
match a live row in ``user_sessions``, so signing out revokes a token even
though its signature is still valid.
"""
import logging
import secrets
from datetime import timedelta
from typing import Optional, Tuple

import bcrypt
from fastapi import Depends, HTTPException, Request
from jose import jwt, JWTError
from sqlalchemy.orm import Session

from bingebox.core.config import settings
from bingebox.core.database import get_db
from bingebox.models import User, UserSession
from bingebox.utils.timezone import utc_now, ensure_utc

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(password: str, stored_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode(), stored_hash.encode())
    except ValueError:
        # Malformed hash in the table
        return False


def create_session(db: Session, user: User, remember_me: bool = True) -> Tuple[str, UserSession]:
    """Persist a session row for ``user`` and return its signed token."""
    expires_at = utc_now() + timedelta(days=settings.session_max_age_days)
    token_id = secrets.token_hex(16)
    session_row = UserSession(
        user_id=user.id,
        token_id=token_id,
        remember_me=remember_me,
        expires_at=expires_at,
    )
    db.add(session_row)
    db.commit()
    db.refresh(session_row)

    token = jwt.encode(
        {"sub": str(user.id), "jti": token_id, "exp": int(expires_at.timestamp())},
        settings.session_secret,
        algorithm=settings.session_algorithm,
    )
    return token, session_row


def _decode(token: str) -> Optional[dict]:
    try:
        return jwt.decode(token, settings.session_secret, algorithms=[settings.session_algorithm])
    except JWTError:
        return None


def token_from_request(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.lower().startswith("bearer "):
        return auth_header[7:].strip() or None
    return request.cookies.get(settings.session_cookie_name)


def lookup_session(db: Session, token: Optional[str]) -> Optional[UserSession]:
    """Resolve a token to its live session row, or None."""
    if not token:
        return None
    payload = _decode(token)
    if not payload or not payload.get("jti") or not payload.get("sub"):
        return None

    session_row = db.query(UserSession).filter(UserSession.token_id == payload["jti"]).first()
    if not session_row or str(session_row.user_id) != str(payload["sub"]):
        return None
    if ensure_utc(session_row.expires_at) <= utc_now():
        return None
    return session_row


def revoke_session(db: Session, token: Optional[str]) -> bool:
    session_row = lookup_session(db, token)
    if not session_row:
        return False
    db.delete(session_row)
    db.commit()
    return True


def get_optional_user(request: Request, db: Session = Depends(get_db)) -> Optional[User]:
    session_row = lookup_session(db, token_from_request(request))
    return session_row.user if session_row else None


def require_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    """Gate for mutating and per-user routes; runs before any side effect."""
    if user is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user
