from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from taskmaster.api.deps import get_optional_user, require_auth
from taskmaster.core.config import settings
from taskmaster.core.security import create_access_token, create_csrf_token
from taskmaster.db.session import get_db
from taskmaster.models.user import User
from taskmaster.schemas.auth import LoginRequest, UserOut
from taskmaster.services.users import authenticate_user

logger = logging.getLogger(__name__)

router = APIRouter()


def _user_out(user: User, csrf: str | None = None) -> UserOut:
    return UserOut(id=user.id, username=user.username, display_name=user.actor_name, role=user.role.value, csrf_token=csrf)


@router.post("/login", response_model=UserOut)
def login(payload: LoginRequest, response: Response, db: Session = Depends(get_db)):
    user = authenticate_user(db, payload.username, payload.password)
    token = create_access_token(subject=str(user.id))
    csrf = create_csrf_token()
    production = settings.environment == "production"
    # SameSite=None so the cookie is sent when frontend and API live on different origins.
    samesite = "none" if production else "lax"
    max_age = settings.jwt_expires_minutes * 60
    response.set_cookie(
        settings.jwt_cookie_name, token, httponly=True, secure=production, samesite=samesite, max_age=max_age, path="/"
    )
    # Readable by JS; must be echoed in X-CSRF-Token on unsafe methods in production.
    response.set_cookie(
        settings.csrf_cookie_name, csrf, httponly=False, secure=production, samesite=samesite, max_age=max_age, path="/"
    )
    logger.info("User %s logged in", user.username)
    return _user_out(user, csrf)


@router.post("/logout")
def logout(response: Response, user: User | None = Depends(get_optional_user)):
    if user is not None:
        logger.info("User %s logged out", user.username)
    response.delete_cookie(settings.jwt_cookie_name, path="/")
    response.delete_cookie(settings.csrf_cookie_name, path="/")
    return {"ok": True}


@router.get("/me", response_model=UserOut)
def me(user: User = Depends(require_auth)):
    return _user_out(user)
