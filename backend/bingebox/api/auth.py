"""
auth.py

Email/password accounts and cookie sessions.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bingebox.core.config import settings
from bingebox.core.database import get_db
from bingebox.core.security import (
    create_session,
    hash_password,
    lookup_session,
    revoke_session,
    token_from_request,
    verify_password,
)
from bingebox.models import User
from bingebox.schemas import SessionSchema, SignInRequest, SignUpRequest, UserSchema

router = APIRouter()
logger = logging.getLogger(__name__)


def _set_session_cookie(response: Response, token: str, remember_me: bool) -> None:
    # Without "remember me" the cookie lives for the browser session only
    max_age = settings.session_max_age_days * 24 * 3600 if remember_me else None
    response.set_cookie(
        settings.session_cookie_name,
        token,
        max_age=max_age,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
        path="/",
    )


@router.post("/sign-up", status_code=201)
def sign_up(payload: SignUpRequest, response: Response, db: Session = Depends(get_db)):
    email = payload.email.strip().lower()
    if "@" not in email:
        raise HTTPException(status_code=400, detail="Invalid email address")
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=400, detail="Email already registered")

    user = User(email=email, name=payload.name, password_hash=hash_password(payload.password))
    try:
        db.add(user)
        db.commit()
        db.refresh(user)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="Email already registered")

    token, session_row = create_session(db, user, remember_me=True)
    _set_session_cookie(response, token, True)
    logger.info(f"Created account {user.id}")
    return {"user": UserSchema.model_validate(user).model_dump(), "token": token}


@router.post("/sign-in")
def sign_in(payload: SignInRequest, response: Response, db: Session = Depends(get_db)):
    user: Optional[User] = db.query(User).filter(User.email == payload.email.strip().lower()).first()
    if not user or not verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password")

    token, session_row = create_session(db, user, remember_me=payload.remember_me)
    _set_session_cookie(response, token, payload.remember_me)
    return {
        "user": UserSchema.model_validate(user).model_dump(),
        "token": token,
        "expires_at": session_row.expires_at,
    }


@router.post("/sign-out")
def sign_out(request: Request, response: Response, db: Session = Depends(get_db)):
    revoked = revoke_session(db, token_from_request(request))
    response.delete_cookie(settings.session_cookie_name, path="/")
    return {"success": True, "revoked": revoked}


@router.get("/session")
def get_session(request: Request, db: Session = Depends(get_db)):
    session_row = lookup_session(db, token_from_request(request))
    if not session_row:
        return {"session": None}
    return {
        "session": SessionSchema(
            user=UserSchema.model_validate(session_row.user),
            expires_at=session_row.expires_at,
            remember_me=session_row.remember_me,
        ).model_dump()
    }
