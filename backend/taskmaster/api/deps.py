from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError
from sqlalchemy.orm import Session

from taskmaster.core.config import settings
from taskmaster.core.security import decode_access_token
from taskmaster.db.session import get_db
from taskmaster.models.user import User


def _user_from_cookie(request: Request, db: Session) -> User | None:
    token = request.cookies.get(settings.jwt_cookie_name)
    if not token:
        return None
    try:
        claims = decode_access_token(token)
        user_id = int(claims.sub)
    except (JWTError, KeyError, ValueError):
        return None
    user = db.query(User).filter(User.id == user_id).first()
    if not user or not user.is_active:
        return None
    return user


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    if not request.cookies.get(settings.jwt_cookie_name):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    user = _user_from_cookie(request, db)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid session")
    return user


def require_auth(user: User = Depends(get_current_user)) -> User:
    return user


def get_optional_user(request: Request, db: Session = Depends(get_db)) -> User | None:
    """Best-effort auth for idempotent endpoints like logout."""
    return _user_from_cookie(request, db)
