# File: app/routers/auth.py

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.schemas.auth import LoginIn, LoginOut, SessionOut
from app.core.security import authenticate_user, get_current_user, is_admin, make_tokens
from app.core.session_state import CookieFlagStore, SessionMirror, get_session_mirror

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

NOT_AUTHORIZED = "You are not authorized to access this page."

@router.post("/login", response_model=LoginOut)
def login(
    body: LoginIn,
    request: Request,
    db: Session = Depends(get_db),
    mirror: SessionMirror = Depends(get_session_mirror),
):
    user = authenticate_user(db, body.email, body.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid email or password")

    if not is_admin(user):
        # signed in but not an operator: sign straight back out.
        # cookies staged on the injected response are lost when returning
        # a response object, so the flags are cleared on this one
        logger.info("Non-admin sign-in refused for %s", user.email)
        refused = JSONResponse(status_code=403, content={"detail": NOT_AUTHORIZED})
        SessionMirror(CookieFlagStore(request, refused)).load().logout()
        return refused

    user.last_login = datetime.now(timezone.utc)
    db.commit()

    mirror.login()
    mirror.set_as_admin()
    return {
        **make_tokens(user.email, user.role.value),
        "message": "Welcome back!",
        "session": mirror.snapshot(),
    }

@router.post("/logout", response_model=SessionOut)
def logout(mirror: SessionMirror = Depends(get_session_mirror)):
    mirror.logout()
    return mirror.snapshot()

@router.get("/session", response_model=SessionOut)
def session(mirror: SessionMirror = Depends(get_session_mirror)):
    return mirror.snapshot()

@router.get("/is-admin")
def check_admin(current = Depends(get_current_user)):
    return {"is_admin": is_admin(current)}
